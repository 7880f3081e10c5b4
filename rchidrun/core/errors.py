"""Exception classes for runtime acquisition and execution failures.

Every failure the runner can hit is a RunnerError subclass so the CLI can
report it uniformly. None of these are retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rchidrun.core.models import ExecutionOutcome


class RunnerError(Exception):
    """Base exception for all runner failures.

    Catch this type to handle any fatal condition raised while resolving,
    installing, or executing a language runtime.
    """

    pass


class ConfigValidationError(RunnerError):
    """Raised when runner configuration is invalid.

    Wraps Pydantic ValidationError for values loaded from config.toml
    with a clearer domain-specific name.
    """

    pass


class MissingHomeError(RunnerError):
    """Raised when the home directory environment variable is unset or empty."""

    pass


class InvalidLanguageError(RunnerError):
    """Raised when a language identifier cannot be used as a cache key.

    Identifiers map directly to a directory name, so empty names, path
    separators, and "." / ".." are rejected.
    """

    pass


class ScriptNotFoundError(RunnerError):
    """Raised when the script path does not point to a readable file."""

    pass


class InstallationAbortedError(RunnerError):
    """Raised when the user declines installing a missing runtime."""

    pass


RuntimeNotFoundDeclined = InstallationAbortedError


class InvalidUrlError(RunnerError):
    """Raised when the user supplies an empty or malformed runtime URL."""

    pass


class RegistryUnavailableError(RunnerError):
    """Raised when the package acquisition tool cannot be found or invoked."""

    pass


class PackageFetchError(RunnerError):
    """Raised when the package acquisition tool ran but produced no module."""

    pass


class DownloadError(RunnerError):
    """Raised when fetching a runtime URL fails or returns an empty body."""

    pass


class InvalidModuleError(RunnerError):
    """Raised when downloaded bytes are not a well-formed WASM binary."""

    pass


class MissingEntryPointError(RunnerError):
    """Raised when a well-formed module lacks a `() -> ()` _start export."""

    pass


class ModuleLoadError(RunnerError):
    """Raised when a cached module cannot be read, compiled, or instantiated.

    Distinct from InvalidModuleError: this is the re-check done at execution
    time against a cache entry that was modified after installation.
    """

    pass


class WriteError(RunnerError):
    """Raised when a validated module cannot be committed to the cache."""

    pass


class ExecutionFaultError(RunnerError):
    """Raised when the guest module trapped during execution.

    The mapped ExecutionOutcome is attached so callers can still exit with
    its exit code.
    """

    def __init__(self, message: str, outcome: ExecutionOutcome) -> None:
        super().__init__(message)
        self.outcome = outcome
