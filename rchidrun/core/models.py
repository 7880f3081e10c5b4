"""Pydantic models for runner configuration, runtime sources and outcomes.

Provides validated data models for the runner configuration, the closed
RegistryReference / RemoteUrl source union, cache entries, execution
requests and execution outcomes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from rchidrun.core.errors import ConfigValidationError


class RegistryReference(BaseModel):
    """Prebuilt runtime published on the package registry (e.g. wasmer/python)."""

    model_config = {"frozen": True}

    kind: Literal["registry"] = "registry"
    package: str = Field(min_length=1, description="Registry package name")


class RemoteUrl(BaseModel):
    """Runtime module downloaded from an arbitrary http(s) URL."""

    model_config = {"frozen": True}

    kind: Literal["url"] = "url"
    url: str = Field(min_length=1, description="Direct download URL of the module")


RuntimeSource = Annotated[RegistryReference | RemoteUrl, Field(discriminator="kind")]


class CacheEntry(BaseModel):
    """Installed runtime module for one language identifier."""

    model_config = {"frozen": True}

    language: str
    path: Path


class ExecutionRequest(BaseModel):
    """One `run <language> <script>` invocation."""

    language: str
    script_path: Path


class ExecutionOutcome(BaseModel):
    """Mapped result of running a module's entry point.

    Attributes:
        exit_code: Process exit code (0 on normal return)
        trapped: Whether the guest faulted on an illegal operation
        trap_message: Wasmtime trap description when trapped
        duration_ms: Wall-clock time spent inside the entry point
    """

    exit_code: int = Field(default=0, description="Process exit code (0 = success)")
    trapped: bool = Field(default=False, description="Guest faulted with a WASM trap")
    trap_message: str | None = Field(default=None, description="Trap description")
    duration_ms: float = Field(default=0.0, description="Entry point wall-clock time")


class RunnerConfig(BaseModel):
    """Type-safe configuration resolved once per process.

    Attributes:
        home_dir: User home directory taken from $HOME
        plugins_subdir: Cache location relative to home_dir
        module_filename: File name of each cached module
        download_timeout_seconds: Timeout for remote URL downloads
        registry_command: Acquisition command; "{package}" and "{dest}" are substituted
        entry_point: Exported start routine every runtime must provide
        trap_exit_code: Exit code reported when the guest traps
        fatal_exit_code: Exit code for failures before execution
        mount_cwd: Preopen the working directory at "." for the guest
        cwd_writable: Grant write access to the preopened working directory
        inherit_env: Expose the host environment variables to the guest
    """

    home_dir: Path

    plugins_subdir: str = Field(
        default=".rchidrun/plugins",
        min_length=1,
        description="Cache location relative to home_dir",
    )

    module_filename: str = Field(
        default="runtime.wasm",
        min_length=1,
        description="File name of each cached module",
    )

    download_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for remote URL downloads",
    )

    registry_command: list[str] = Field(
        default_factory=lambda: ["wasmer", "install", "{package}", "--to", "{dest}"],
        min_length=1,
        description="Registry acquisition command template",
    )

    entry_point: str = Field(
        default="_start",
        min_length=1,
        description="Exported zero-argument start routine",
    )

    trap_exit_code: int = Field(default=1, ge=1, le=255)

    fatal_exit_code: int = Field(default=1, ge=1, le=255)

    mount_cwd: bool = True

    cwd_writable: bool = False

    inherit_env: bool = False

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid runner configuration: {e}") from e

    @field_validator("plugins_subdir")
    @classmethod
    def validate_relative(cls, v: str) -> str:
        """Keep the cache inside the home directory."""
        if Path(v).is_absolute() or ".." in Path(v).parts:
            raise ValueError("plugins_subdir must be a relative path inside home_dir")
        return v

    @property
    def plugins_dir(self) -> Path:
        """Root directory holding one subdirectory per installed language."""
        return self.home_dir / self.plugins_subdir
