"""Shared pytest fixtures for all tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from wasmtime import wat2wasm

from rchidrun.cache import RuntimeCache
from rchidrun.core.logging import RunnerLogger
from rchidrun.core.models import RunnerConfig
from rchidrun.sources import PackageSource

HELLO_OUTPUT = "hello from wasm\n"

HELLO_WAT = """
(module
  (import "wasi_snapshot_preview1" "fd_write"
    (func $fd_write (param i32 i32 i32 i32) (result i32)))
  (memory (export "memory") 1)
  (data (i32.const 16) "hello from wasm\\n")
  (func (export "_start")
    (i32.store (i32.const 0) (i32.const 16))
    (i32.store (i32.const 4) (i32.const 16))
    (drop (call $fd_write (i32.const 1) (i32.const 0) (i32.const 1) (i32.const 8)))))
"""

EXIT_3_WAT = """
(module
  (import "wasi_snapshot_preview1" "proc_exit" (func $proc_exit (param i32)))
  (memory (export "memory") 1)
  (func (export "_start") (call $proc_exit (i32.const 3))))
"""

TRAP_WAT = """
(module
  (memory (export "memory") 1)
  (func (export "_start") unreachable))
"""

NOOP_WAT = '(module (func (export "_start")))'

NO_ENTRY_WAT = '(module (func (export "main")))'

BAD_SIGNATURE_WAT = '(module (func (export "_start") (param i32)))'

GLOBAL_ENTRY_WAT = '(module (global (export "_start") i32 (i32.const 0)))'

UNRESOLVED_IMPORT_WAT = """
(module
  (import "env" "missing" (func))
  (func (export "_start")))
"""

# Writes argv[1] and a newline to stdout
ECHO_ARG_WAT = """
(module
  (import "wasi_snapshot_preview1" "args_sizes_get"
    (func $args_sizes_get (param i32 i32) (result i32)))
  (import "wasi_snapshot_preview1" "args_get"
    (func $args_get (param i32 i32) (result i32)))
  (import "wasi_snapshot_preview1" "fd_write"
    (func $fd_write (param i32 i32 i32 i32) (result i32)))
  (memory (export "memory") 1)
  (data (i32.const 32) "\\n")
  (func (export "_start")
    (local $arg i32)
    (local $len i32)
    (drop (call $args_sizes_get (i32.const 0) (i32.const 4)))
    (drop (call $args_get (i32.const 64) (i32.const 1024)))
    (local.set $arg (i32.load (i32.const 68)))
    (local.set $len (i32.const 0))
    (block $done
      (loop $scan
        (br_if $done (i32.eqz (i32.load8_u (i32.add (local.get $arg) (local.get $len)))))
        (local.set $len (i32.add (local.get $len) (i32.const 1)))
        (br $scan)))
    (i32.store (i32.const 16) (local.get $arg))
    (i32.store (i32.const 20) (local.get $len))
    (i32.store (i32.const 24) (i32.const 32))
    (i32.store (i32.const 28) (i32.const 1))
    ;; one iovec per call, a multi-iovec fd_write may stop after the first
    (drop (call $fd_write (i32.const 1) (i32.const 16) (i32.const 1) (i32.const 40)))
    (drop (call $fd_write (i32.const 1) (i32.const 24) (i32.const 1) (i32.const 40)))))
"""

# Traps in the start section, i.e. while instantiating
START_TRAP_WAT = """
(module
  (func $boom unreachable)
  (start $boom)
  (func (export "_start")))
"""


def wasm(wat: str) -> bytes:
    """Compile WAT text to a binary module."""
    return bytes(wat2wasm(wat))


class FakePackageSource(PackageSource):
    """In-memory registry backend recording every fetch."""

    def __init__(self, modules: dict[str, bytes] | None = None, error: Exception | None = None):
        self.modules = modules or {}
        self.error = error
        self.calls: list[str] = []

    def fetch(self, package: str) -> bytes:
        self.calls.append(package)
        if self.error is not None:
            raise self.error
        return self.modules[package]


class ScriptedPrompt:
    """Prompter returning canned answers and recording the questions."""

    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.questions: list[str] = []

    def __call__(self, question: str) -> str:
        self.questions.append(question)
        return self.answers.pop(0)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, content: bytes = b"", status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


@pytest.fixture
def hello_wasm() -> bytes:
    return wasm(HELLO_WAT)


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def config(home_dir: Path) -> RunnerConfig:
    return RunnerConfig(home_dir=home_dir)


@pytest.fixture
def cache(config: RunnerConfig) -> RuntimeCache:
    return RuntimeCache(config)


@pytest.fixture
def quiet_logger() -> RunnerLogger:
    """RunnerLogger backed by a discarding structlog-like object."""

    class _Discard:
        def __getattr__(self, name: str) -> Any:
            return lambda *args, **kwargs: None

    return RunnerLogger(logger=_Discard())


@pytest.fixture
def script(tmp_path: Path) -> Path:
    path = tmp_path / "work" / "hello.py"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('print("hello")\n', encoding="utf-8")
    return path
