"""Factory function wiring the runner components together.

Provides create_runner() which resolves configuration once and shares it,
along with a single Wasmtime engine and logger, across cache, installer,
gate and execution engine.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from wasmtime import Engine

from rchidrun.cache import RuntimeCache
from rchidrun.config import load_config
from rchidrun.core.logging import RunnerLogger
from rchidrun.gate import ConfirmationGate, Prompter, console_prompt
from rchidrun.host import ExecutionEngine
from rchidrun.installer import Installer
from rchidrun.runner import RuntimeRunner
from rchidrun.sources import WasmerPackageSource

if TYPE_CHECKING:
    from rchidrun.core.models import RunnerConfig
    from rchidrun.sources import PackageSource


def create_runner(
    config: RunnerConfig | None = None,
    prompt: Prompter | None = None,
    package_source: PackageSource | None = None,
    logger: RunnerLogger | None = None,
    echo: Callable[[str], None] = print,
    env: Mapping[str, str] | None = None,
) -> RuntimeRunner:
    """Create a RuntimeRunner with default or injected collaborators.

    Args:
        config: Optional RunnerConfig. If None, load_config(env) is used, which
                fails with MissingHomeError before touching the filesystem.
        prompt: Optional Prompter for install confirmation. Default: console_prompt.
        package_source: Optional registry backend. Default: WasmerPackageSource
                        built from config.registry_command.
        logger: Optional RunnerLogger. If None, a default structlog logger is used.
        echo: Output for informational lines such as "Installed ...".
        env: Environment mapping used when config is None.

    Returns:
        RuntimeRunner ready to run requests

    Examples:
        >>> runner = create_runner()
        >>> outcome = runner.run_script("python", "hello.py")

        >>> # Scripted confirmation and a custom registry backend
        >>> runner = create_runner(prompt=lambda q: "y", package_source=my_source)
    """
    if config is None:
        config = load_config(env)

    if logger is None:
        logger = RunnerLogger()

    if package_source is None:
        package_source = WasmerPackageSource(
            config.registry_command, module_filename=config.module_filename
        )

    engine = Engine()
    cache = RuntimeCache(config, logger=logger)
    installer = Installer(config, cache, package_source, engine=engine, logger=logger)
    gate = ConfirmationGate(
        cache, installer, prompt=prompt or console_prompt, echo=echo, logger=logger
    )
    execution_engine = ExecutionEngine(config, engine=engine, logger=logger)

    return RuntimeRunner(config, cache, gate, execution_engine)
