"""Configuration loading for the runtime runner.

Resolves the home directory from the environment exactly once and merges an
optional TOML file over DEFAULT_CONFIG, returning a validated RunnerConfig
that is threaded explicitly through every component.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from rchidrun.core.errors import ConfigValidationError, MissingHomeError
from rchidrun.core.models import RunnerConfig

HOME_ENV_VAR = "HOME"

CONFIG_FILENAME = "config.toml"

DEFAULT_CONFIG: dict[str, Any] = {
    # Cache layout: <home>/.rchidrun/plugins/<language>/runtime.wasm
    "plugins_subdir": ".rchidrun/plugins",
    "module_filename": "runtime.wasm",

    "download_timeout_seconds": 60.0,

    # Registry acquisition via the Wasmer CLI
    "registry_command": ["wasmer", "install", "{package}", "--to", "{dest}"],

    # WASI command convention
    "entry_point": "_start",

    "trap_exit_code": 1,
    "fatal_exit_code": 1,

    # Guest filesystem and environment exposure
    "mount_cwd": True,
    "cwd_writable": False,
    "inherit_env": False,
}


def resolve_home(env: Mapping[str, str] | None = None) -> Path:
    """Return the home directory named by $HOME.

    Performs no filesystem access so a missing variable is always the first
    failure a command reports.

    Raises:
        MissingHomeError: If the variable is unset or empty
    """
    env = os.environ if env is None else env
    home = env.get(HOME_ENV_VAR, "")
    if not home:
        raise MissingHomeError(f"${HOME_ENV_VAR} not set")
    return Path(home)


def load_config(
    env: Mapping[str, str] | None = None, path: str | Path | None = None
) -> RunnerConfig:
    """Build the process-wide RunnerConfig.

    Args:
        env: Environment mapping (defaults to os.environ)
        path: Optional TOML override file. Defaults to
              <home>/.rchidrun/config.toml; ignored if it does not exist.

    Returns:
        RunnerConfig: Validated configuration with DEFAULT_CONFIG merged
        under any file values. home_dir always comes from the environment.

    Raises:
        MissingHomeError: If $HOME is unset or empty (checked first)
        ConfigValidationError: If the file is malformed or contains invalid values
    """
    home = resolve_home(env)

    config_path = Path(path) if path is not None else home / ".rchidrun" / CONFIG_FILENAME

    data: dict[str, Any] = {}
    if config_path.is_file():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigValidationError(f"Malformed config file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file {config_path}: {e}") from e
        data.pop("home_dir", None)

    # Top-level keys only; user values take precedence
    merged = DEFAULT_CONFIG | data

    return RunnerConfig(home_dir=home, **merged)
