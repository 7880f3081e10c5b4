"""WASI host layer for running a cached language runtime on a script.

Loads the runtime module with Wasmtime, exposes the script as the guest's
program argument, wires the process's own stdin/stdout/stderr straight through,
preopens the working directory, and calls the `_start` entry point. Guest
traps are mapped to an ExecutionOutcome and never escape as host faults.
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

from wasmtime import (
    DirPerms,
    Engine,
    ExitTrap,
    FilePerms,
    Linker,
    Module,
    Store,
    Trap,
    WasiConfig,
    WasmtimeError,
)

from rchidrun.core.errors import (
    InvalidModuleError,
    MissingEntryPointError,
    ModuleLoadError,
    ScriptNotFoundError,
)
from rchidrun.core.logging import RunnerLogger
from rchidrun.core.models import ExecutionOutcome, RunnerConfig
from rchidrun.validation import check_entry_point, compile_module


class ExecutionEngine:
    """Runs runtime modules under WASI with inherited standard streams.

    No fuel or memory limits are applied: a guest that never returns blocks
    the calling process until it is terminated externally.

    Attributes:
        config: RunnerConfig controlling mounts, environment and exit codes
        engine: Wasmtime engine used to compile modules
        logger: RunnerLogger for execution.* events
    """

    def __init__(
        self,
        config: RunnerConfig,
        engine: Engine | None = None,
        logger: RunnerLogger | None = None,
    ) -> None:
        self.config = config
        self.engine = engine if engine is not None else Engine()
        self.logger = logger if logger is not None else RunnerLogger()

    def execute(
        self, module_path: str | Path, script_path: str | Path, language: str = "runtime"
    ) -> ExecutionOutcome:
        """Execute a runtime module with the script as its program argument.

        Args:
            module_path: Cached module file
            script_path: Script handed to the runtime as argv[1]
            language: Program name exposed to the guest as argv[0]

        Returns:
            ExecutionOutcome: exit code 0 on normal return, the requested code on
            proc_exit, or trap_exit_code with trapped=True on a trap

        Raises:
            ModuleLoadError: If the module cannot be read, compiled, or instantiated
            ScriptNotFoundError: If script_path is not a readable file
        """
        module_path = Path(module_path)
        script_path = Path(script_path)

        try:
            data = module_path.read_bytes()
        except OSError as e:
            raise ModuleLoadError(f"Failed to read runtime module {module_path}: {e}") from e

        try:
            module = compile_module(self.engine, data)
            check_entry_point(module, self.config.entry_point)
        except (InvalidModuleError, MissingEntryPointError) as e:
            raise ModuleLoadError(f"Runtime module {module_path} is unusable: {e}") from e

        if not script_path.is_file() or not os.access(script_path, os.R_OK):
            raise ScriptNotFoundError(f"Script not found: {script_path}")

        guest_script, extra_mounts = self._map_script(script_path)

        wasi = WasiConfig()
        wasi.argv = (language, guest_script)
        wasi.inherit_stdin()
        wasi.inherit_stdout()
        wasi.inherit_stderr()
        if self.config.inherit_env:
            wasi.inherit_env()

        if self.config.mount_cwd:
            perms = (
                (DirPerms.READ_WRITE, FilePerms.READ_WRITE)
                if self.config.cwd_writable
                else (DirPerms.READ_ONLY, FilePerms.READ_ONLY)
            )
            wasi.preopen_dir(os.getcwd(), ".", *perms)

        # Script lives outside the working directory: expose only its folder
        for host_dir in extra_mounts:
            wasi.preopen_dir(host_dir, host_dir, DirPerms.READ_ONLY, FilePerms.READ_ONLY)

        store = Store(self.engine)
        store.set_wasi(wasi)

        linker = Linker(self.engine)
        linker.define_wasi()

        self.logger.log_execution_start(language, module_path, script_path)

        # Guest writes go straight to the file descriptors
        sys.stdout.flush()
        sys.stderr.flush()

        trapped = False
        trap_message: str | None = None
        start_time = time.perf_counter()

        try:
            self._run_entry_point(linker, store, module, module_path)
            exit_code = 0
        except ExitTrap as trap:
            # WASI proc_exit
            exit_code = trap.code
        except (Trap, WasmtimeError) as trap:
            trapped = True
            trap_message = str(trap)
            exit_code = self.config.trap_exit_code
            self.logger.log_execution_trap(language, trap_message)

        outcome = ExecutionOutcome(
            exit_code=exit_code,
            trapped=trapped,
            trap_message=trap_message,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        self.logger.log_execution_complete(language, outcome)
        return outcome

    def _run_entry_point(
        self, linker: Linker, store: Store, module: Module, module_path: Path
    ) -> None:
        """Instantiate the module and call its entry point.

        A start section runs during instantiation, so its traps and proc_exit
        propagate like those of the entry point. Link failures do not.

        Raises:
            ModuleLoadError: If imports cannot be resolved or the export is missing
        """
        try:
            instance = linker.instantiate(store, module)
        except (ExitTrap, Trap):
            raise
        except WasmtimeError as e:
            raise ModuleLoadError(f"Failed to instantiate runtime module {module_path}: {e}") from e

        try:
            start = instance.exports(store)[self.config.entry_point]
        except KeyError as e:
            raise ModuleLoadError(
                f"Runtime module {module_path} has no '{self.config.entry_point}' export"
            ) from e

        start(store)  # type: ignore[operator]

    def _map_script(self, script_path: Path) -> tuple[str, list[str]]:
        """Guest-visible script path plus any extra host directories to preopen."""
        resolved = script_path.resolve()
        if self.config.mount_cwd:
            cwd = Path.cwd().resolve()
            if resolved.is_relative_to(cwd):
                return resolved.relative_to(cwd).as_posix(), []
        return resolved.as_posix(), [resolved.parent.as_posix()]
