"""rchidrun: run scripts in any language through WebAssembly runtimes.

Language runtimes are WASI modules fetched from the Wasmer registry or a
URL, validated, cached under ~/.rchidrun/plugins, and executed with
Wasmtime using the process's own standard streams.
"""

from __future__ import annotations

from rchidrun.cache import RuntimeCache
from rchidrun.config import load_config
from rchidrun.core import (
    CacheEntry,
    ExecutionOutcome,
    ExecutionRequest,
    RegistryReference,
    RemoteUrl,
    RunnerConfig,
    RunnerError,
    RunnerLogger,
)
from rchidrun.core.factory import create_runner
from rchidrun.gate import ConfirmationGate
from rchidrun.host import ExecutionEngine
from rchidrun.installer import Installer
from rchidrun.resolver import resolve
from rchidrun.runner import RuntimeRunner
from rchidrun.sources import PackageSource, WasmerPackageSource

__all__ = [
    "CacheEntry",
    "ConfirmationGate",
    "ExecutionEngine",
    "ExecutionOutcome",
    "ExecutionRequest",
    "Installer",
    "PackageSource",
    "RegistryReference",
    "RemoteUrl",
    "RunnerConfig",
    "RunnerError",
    "RunnerLogger",
    "RuntimeCache",
    "RuntimeRunner",
    "WasmerPackageSource",
    "create_runner",
    "load_config",
    "resolve",
]
