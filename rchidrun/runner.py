"""End-to-end `run` pipeline: make the runtime available, then execute it."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rchidrun.core.errors import ExecutionFaultError
from rchidrun.core.models import ExecutionOutcome, ExecutionRequest

if TYPE_CHECKING:
    from rchidrun.cache import RuntimeCache
    from rchidrun.core.models import RunnerConfig
    from rchidrun.gate import ConfirmationGate
    from rchidrun.host import ExecutionEngine


class RuntimeRunner:
    """Drives Confirmation Gate then Execution Engine for one request.

    Attributes:
        config: RunnerConfig resolved once at startup
        cache: RuntimeCache shared with the gate (used by `sdk list`)
        gate: ConfirmationGate that installs missing runtimes
        engine: ExecutionEngine that runs the module
    """

    def __init__(
        self,
        config: RunnerConfig,
        cache: RuntimeCache,
        gate: ConfirmationGate,
        engine: ExecutionEngine,
    ) -> None:
        self.config = config
        self.cache = cache
        self.gate = gate
        self.engine = engine

    def run(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Run a script with the runtime for request.language.

        Returns:
            ExecutionOutcome of a guest that returned or called proc_exit

        Raises:
            ExecutionFaultError: If the guest trapped; carries the outcome
            RunnerError: Any failure before execution
        """
        module_path = self.gate.ensure_available(request.language)
        outcome = self.engine.execute(module_path, request.script_path, request.language)
        if outcome.trapped:
            raise ExecutionFaultError(f"Runtime trapped: {outcome.trap_message}", outcome)
        return outcome

    def run_script(self, language: str, script_path: str | Path) -> ExecutionOutcome:
        """Convenience wrapper building the ExecutionRequest."""
        return self.run(ExecutionRequest(language=language, script_path=Path(script_path)))
