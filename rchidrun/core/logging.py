"""Structured logging for runtime installation and execution events.

Provides RunnerLogger which uses structlog for structured event emission
(cache.hit, install.complete, execution.complete, ...). Log output goes to
stderr so the guest's stdout stays byte-for-byte untouched.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from pathlib import Path

    from rchidrun.core.models import ExecutionOutcome


def configure_structlog(level: int = logging.WARNING, use_json: bool = False) -> None:
    """Configure structlog for runner logging.

    Args:
        level: Minimum log level (default: logging.WARNING)
        use_json: If True, use JSON renderer; otherwise use console renderer
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


class RunnerLogger:
    """Wrapper for structured logging of runner events.

    Accepts either structlog or standard logging.Logger instances and normalizes
    emission so callers do not need to care which backend is in use.
    """

    def __init__(self, logger: Any = None) -> None:
        """Initialize RunnerLogger with optional custom logger.

        Args:
            logger: Optional structlog BoundLogger, logging.Logger, or string name.
                    If None, a default structlog logger named 'rchidrun' is created.
        """
        if logger is None:
            self._logger = structlog.get_logger("rchidrun")
        elif isinstance(logger, str):
            self._logger = structlog.get_logger(logger)
        else:
            self._logger = logger

    @property
    def logger(self) -> Any:
        """Expose the underlying logger instance (structlog or logging.Logger)."""
        return self._logger

    def _emit(self, level: int, message: str, **fields: Any) -> None:
        """Emit a log record regardless of logger backend."""
        extra = dict(fields)
        extra.setdefault("log_message", message)
        extra.setdefault("event", message.split(".", 1)[-1] if "." in message else message)

        if isinstance(self._logger, logging.Logger):
            self._logger.log(level, message, extra=extra)
            return

        method_name = logging.getLevelName(level).lower()
        log_method = getattr(self._logger, method_name, None)
        if not callable(log_method):
            log_method = self._logger.info

        log_kwargs = dict(extra)
        event_value = log_kwargs.pop("event", None)
        log_method(event_value if event_value is not None else message, **log_kwargs)

    def log_cache_hit(self, language: str, path: Path) -> None:
        """Log that an installed runtime was found for the language."""
        self._emit(
            logging.DEBUG, "rchidrun.cache.hit", event="cache.hit", language=language, path=str(path)
        )

    def log_cache_miss(self, language: str) -> None:
        """Log that no runtime is installed for the language."""
        self._emit(logging.INFO, "rchidrun.cache.miss", event="cache.miss", language=language)

    def log_cache_commit(self, language: str, path: Path, size_bytes: int) -> None:
        """Log an atomic cache publish of a validated module.

        Args:
            language: Language identifier the module was stored under
            path: Final module path
            size_bytes: Module size in bytes
        """
        self._emit(
            logging.INFO,
            "rchidrun.cache.commit",
            event="cache.commit",
            language=language,
            path=str(path),
            size_bytes=size_bytes,
        )

    def log_install_start(self, language: str, source_kind: str, target: str) -> None:
        """Log the start of a runtime installation.

        Args:
            language: Language identifier being installed
            source_kind: "registry" or "url"
            target: Registry package name or download URL
        """
        self._emit(
            logging.INFO,
            "rchidrun.install.start",
            event="install.start",
            language=language,
            source_kind=source_kind,
            target=target,
        )

    def log_install_complete(self, language: str, source_kind: str, size_bytes: int) -> None:
        """Log a successful installation."""
        self._emit(
            logging.INFO,
            "rchidrun.install.complete",
            event="install.complete",
            language=language,
            source_kind=source_kind,
            size_bytes=size_bytes,
        )

    def log_install_rejected(self, language: str, reason: str, detail: str) -> None:
        """Log a module that failed validation and was not cached.

        Emits a WARNING-level event; the caller still raises.

        Args:
            language: Language identifier being installed
            reason: "invalid_module" or "missing_entry_point"
            detail: Validator message
        """
        self._emit(
            logging.WARNING,
            "rchidrun.install.rejected",
            event="install.rejected",
            language=language,
            reason=reason,
            detail=detail,
        )

    def log_execution_start(self, language: str, module_path: Path, script_path: Path) -> None:
        """Log the start of a guest execution."""
        self._emit(
            logging.INFO,
            "rchidrun.execution.start",
            event="execution.start",
            language=language,
            module_path=str(module_path),
            script_path=str(script_path),
        )

    def log_execution_complete(self, language: str, outcome: ExecutionOutcome) -> None:
        """Log completion of a guest execution with its mapped outcome."""
        self._emit(
            logging.INFO,
            "rchidrun.execution.complete",
            event="execution.complete",
            language=language,
            exit_code=outcome.exit_code,
            trapped=outcome.trapped,
            duration_ms=outcome.duration_ms,
        )

    def log_execution_trap(self, language: str, message: str) -> None:
        """Log a guest trap at WARNING level."""
        self._emit(
            logging.WARNING,
            "rchidrun.execution.trap",
            event="execution.trap",
            language=language,
            trap_message=message,
        )
