"""Tests for rchidrun.cache.RuntimeCache.

Verifies deterministic entry paths, existence-only lookups, atomic commits
(including a crash between write and rename), and installed listing.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from rchidrun.cache import RuntimeCache
from rchidrun.core.errors import InvalidLanguageError, WriteError
from rchidrun.core.models import CacheEntry, RunnerConfig


class SimulatedCrash(BaseException):
    """Stands in for the process dying between write and rename."""


class TestEntryPath:
    """Test deterministic module paths."""

    def test_entry_path_layout(self, cache: RuntimeCache, home_dir: Path) -> None:
        """Path is <home>/.rchidrun/plugins/<language>/runtime.wasm."""
        expected = home_dir / ".rchidrun" / "plugins" / "python" / "runtime.wasm"
        assert cache.entry_path("python") == expected

    def test_identifiers_are_case_sensitive(self, cache: RuntimeCache) -> None:
        """No normalization: different case means a different entry."""
        assert cache.entry_path("Python") != cache.entry_path("python")

    @pytest.mark.parametrize(
        "language", ["", ".", "..", "a/b", "..\\x", "../escape", "py\x00thon"]
    )
    def test_rejects_unsafe_identifiers(self, cache: RuntimeCache, language: str) -> None:
        """Identifiers that are not a single directory name are rejected."""
        with pytest.raises(InvalidLanguageError):
            cache.entry_path(language)

    def test_base_directory_from_config(self, cache: RuntimeCache, config: RunnerConfig) -> None:
        assert cache.base_directory() == config.plugins_dir


class TestLookup:
    """Test existence-only lookups."""

    def test_lookup_missing_returns_none(self, cache: RuntimeCache) -> None:
        assert cache.lookup("python") is None

    def test_lookup_returns_committed_path(self, cache: RuntimeCache, hello_wasm: bytes) -> None:
        entry = cache.commit("python", hello_wasm)

        assert cache.lookup("python") == entry.path

    def test_lookup_does_not_validate_content(self, cache: RuntimeCache) -> None:
        """Cache trusts prior validation: any file at the path is a hit."""
        path = cache.entry_path("custom")
        path.parent.mkdir(parents=True)
        path.write_bytes(b"not wasm")

        assert cache.lookup("custom") == path

    def test_directory_without_module_is_a_miss(self, cache: RuntimeCache) -> None:
        """A language directory whose module was deleted counts as not installed."""
        cache.entry_path("python").parent.mkdir(parents=True)

        assert cache.lookup("python") is None


class TestCommit:
    """Test atomic publication of modules."""

    def test_commit_writes_bytes_and_returns_entry(
        self, cache: RuntimeCache, hello_wasm: bytes
    ) -> None:
        entry = cache.commit("python", hello_wasm)

        assert isinstance(entry, CacheEntry)
        assert entry.language == "python"
        assert entry.path == cache.entry_path("python")
        assert entry.path.read_bytes() == hello_wasm

    def test_commit_creates_missing_parents(self, cache: RuntimeCache, home_dir: Path) -> None:
        assert not (home_dir / ".rchidrun").exists()

        cache.commit("ruby", b"\x00asm\x01\x00\x00\x00")

        assert (home_dir / ".rchidrun" / "plugins" / "ruby").is_dir()

    def test_commit_rejects_nul_identifier(self, cache: RuntimeCache) -> None:
        with pytest.raises(InvalidLanguageError):
            cache.commit("py\x00thon", b"module")

    @pytest.mark.skipif(not hasattr(os, "fchmod"), reason="POSIX permissions only")
    def test_published_module_follows_umask(self, cache: RuntimeCache) -> None:
        previous = os.umask(0o022)
        try:
            path = cache.commit("python", b"module").path
        finally:
            os.umask(previous)

        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_commit_replaces_existing_module(self, cache: RuntimeCache) -> None:
        cache.commit("python", b"first")
        cache.commit("python", b"second")

        assert cache.entry_path("python").read_bytes() == b"second"

    def test_commit_leaves_no_temp_files(self, cache: RuntimeCache) -> None:
        cache.commit("python", b"module")

        assert sorted(p.name for p in cache.entry_path("python").parent.iterdir()) == [
            "runtime.wasm"
        ]

    def test_crash_before_rename_never_exposes_partial_module(
        self, cache: RuntimeCache, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Dying between temp write and rename leaves the canonical path absent."""

        def crash(src: object, dst: object) -> None:
            raise SimulatedCrash()

        with monkeypatch.context() as m:
            m.setattr(os, "replace", crash)
            with pytest.raises(SimulatedCrash):
                cache.commit("python", b"\x00asm" + b"\x00" * 1024)

        assert cache.lookup("python") is None
        leftovers = list(cache.entry_path("python").parent.glob(".runtime-*.tmp"))
        assert len(leftovers) == 1

    def test_crash_before_rename_keeps_previous_module(
        self, cache: RuntimeCache, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An interrupted re-install leaves the old complete module in place."""
        cache.commit("python", b"old-complete")

        def crash(src: object, dst: object) -> None:
            raise SimulatedCrash()

        with monkeypatch.context() as m:
            m.setattr(os, "replace", crash)
            with pytest.raises(SimulatedCrash):
                cache.commit("python", b"new")

        assert cache.entry_path("python").read_bytes() == b"old-complete"

    def test_rename_failure_raises_write_error_and_cleans_up(
        self, cache: RuntimeCache, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fail(src: object, dst: object) -> None:
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr(os, "replace", fail)
            with pytest.raises(WriteError) as exc_info:
                cache.commit("python", b"module")

        assert "disk full" in str(exc_info.value)
        assert cache.lookup("python") is None
        assert list(cache.entry_path("python").parent.iterdir()) == []

    def test_unwritable_base_raises_write_error(self, home_dir: Path) -> None:
        """A file where the plugins directory should be makes mkdir fail."""
        (home_dir / ".rchidrun").mkdir()
        (home_dir / ".rchidrun" / "plugins").write_text("not a directory")
        cache = RuntimeCache(RunnerConfig(home_dir=home_dir))

        with pytest.raises(WriteError):
            cache.commit("python", b"module")

    def test_commit_logs_event(self, config: RunnerConfig) -> None:
        from unittest.mock import MagicMock

        logger = MagicMock()
        cache = RuntimeCache(config, logger=logger)

        entry = cache.commit("python", b"abc")

        logger.log_cache_commit.assert_called_once_with("python", entry.path, 3)


class TestListInstalled:
    """Test installed language enumeration."""

    def test_empty_when_base_missing(self, cache: RuntimeCache) -> None:
        assert cache.list_installed() == []

    def test_lists_languages_with_modules(self, cache: RuntimeCache) -> None:
        cache.commit("python", b"a")
        cache.commit("lua", b"b")

        assert sorted(cache.list_installed()) == ["lua", "python"]

    def test_skips_directories_without_module(self, cache: RuntimeCache) -> None:
        cache.commit("python", b"a")
        (cache.base_directory() / "empty").mkdir()
        (cache.base_directory() / "stray.txt").write_text("x")

        assert cache.list_installed() == ["python"]
