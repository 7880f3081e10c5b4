"""Core runner abstractions and models.

This module provides the foundational types for the runtime runner:
Pydantic models for configuration, sources and outcomes, the structured
logger, and the error taxonomy.
"""

from __future__ import annotations

from .errors import (
    ConfigValidationError,
    DownloadError,
    ExecutionFaultError,
    InstallationAbortedError,
    InvalidLanguageError,
    InvalidModuleError,
    InvalidUrlError,
    MissingEntryPointError,
    MissingHomeError,
    ModuleLoadError,
    PackageFetchError,
    RegistryUnavailableError,
    RunnerError,
    RuntimeNotFoundDeclined,
    ScriptNotFoundError,
    WriteError,
)
from .logging import RunnerLogger, configure_structlog
from .models import (
    CacheEntry,
    ExecutionOutcome,
    ExecutionRequest,
    RegistryReference,
    RemoteUrl,
    RunnerConfig,
    RuntimeSource,
)

__all__ = [
    "CacheEntry",
    "ConfigValidationError",
    "DownloadError",
    "ExecutionFaultError",
    "ExecutionOutcome",
    "ExecutionRequest",
    "InstallationAbortedError",
    "InvalidLanguageError",
    "InvalidModuleError",
    "InvalidUrlError",
    "MissingEntryPointError",
    "MissingHomeError",
    "ModuleLoadError",
    "PackageFetchError",
    "RegistryReference",
    "RegistryUnavailableError",
    "RemoteUrl",
    "RunnerConfig",
    "RunnerError",
    "RunnerLogger",
    "RuntimeNotFoundDeclined",
    "RuntimeSource",
    "ScriptNotFoundError",
    "WriteError",
    "configure_structlog",
]
