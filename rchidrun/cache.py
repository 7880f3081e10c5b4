"""Disk-backed cache of installed runtime modules.

One module per language identifier at
<plugins_dir>/<language>/<module_filename>. Modules are published with a
temp-file-then-rename so a lookup never observes a partially written file.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from rchidrun.core.errors import InvalidLanguageError, WriteError
from rchidrun.core.models import CacheEntry

if TYPE_CHECKING:
    from rchidrun.core.logging import RunnerLogger
    from rchidrun.core.models import RunnerConfig


def _current_umask() -> int:
    """Read the process umask (only settable, so set and restore)."""
    umask = os.umask(0)
    os.umask(umask)
    return umask


class RuntimeCache:
    """Filesystem store of validated runtime modules keyed by language.

    The cache trusts earlier validation: lookup is an existence check only.
    No cross-process locking is done; concurrent installs of the same
    language may both download, but the final rename always leaves a
    complete module in place.

    Attributes:
        config: RunnerConfig providing the base directory and module file name
        logger: Optional RunnerLogger for cache.commit events
    """

    TEMP_PREFIX = ".runtime-"
    TEMP_SUFFIX = ".tmp"
    PUBLISHED_MODE = 0o666

    def __init__(self, config: RunnerConfig, logger: RunnerLogger | None = None) -> None:
        self.config = config
        self.logger = logger

    def base_directory(self) -> Path:
        """Root directory holding one subdirectory per language."""
        return self.config.plugins_dir

    def _validate_language(self, language: str) -> None:
        """Reject identifiers that would escape or collapse the base directory.

        Raises:
            InvalidLanguageError: If language is empty, is "." / "..", or
                contains a path separator or NUL byte
        """
        if (
            not language
            or language in (".", "..")
            or any(c in language for c in ("/", "\\", "\x00"))
        ):
            raise InvalidLanguageError(
                f"Invalid language '{language}': must be a non-empty name without path separators"
            )

    def entry_path(self, language: str) -> Path:
        """Deterministic module path for a language."""
        self._validate_language(language)
        return self.base_directory() / language / self.config.module_filename

    def lookup(self, language: str) -> Path | None:
        """Return the installed module path, or None when not installed.

        A language directory without the module file counts as not installed.
        """
        path = self.entry_path(language)
        return path if path.is_file() else None

    def commit(self, language: str, data: bytes) -> CacheEntry:
        """Atomically publish module bytes for a language.

        Args:
            language: Language identifier to store the module under
            data: Module bytes (already validated by the installer)

        Returns:
            CacheEntry for the published module

        Raises:
            InvalidLanguageError: If language is not usable as a directory name
            WriteError: If the directory, temp file, or rename fails
        """
        final_path = self.entry_path(language)
        language_dir = final_path.parent

        try:
            language_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Failed to create runtime directory {language_dir}: {e}") from e

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=language_dir, prefix=self.TEMP_PREFIX, suffix=self.TEMP_SUFFIX
            )
        except OSError as e:
            raise WriteError(f"Failed to create temporary file in {language_dir}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                # mkstemp creates 0o600; publish with the usual umask-derived mode
                if hasattr(os, "fchmod"):
                    os.fchmod(f.fileno(), self.PUBLISHED_MODE & ~_current_umask())
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise WriteError(f"Failed to write runtime for '{language}' to {final_path}: {e}") from e

        if self.logger is not None:
            self.logger.log_cache_commit(language, final_path, len(data))

        return CacheEntry(language=language, path=final_path)

    def list_installed(self) -> list[str]:
        """Languages with an installed module, in directory enumeration order."""
        base = self.base_directory()
        if not base.is_dir():
            return []

        installed = []
        for entry in os.scandir(base):
            if entry.is_dir() and (Path(entry.path) / self.config.module_filename).is_file():
                installed.append(entry.name)
        return installed
