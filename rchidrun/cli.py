"""Command-line interface for rchidrun.

Subcommands:
    run <language> <script>   Run a script with the language's WASM runtime
    sdk list                  List installed runtimes and predefined languages
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Mapping, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rchidrun.cache import RuntimeCache
from rchidrun.config import load_config
from rchidrun.core.errors import ExecutionFaultError, RunnerError
from rchidrun.core.factory import create_runner
from rchidrun.core.logging import configure_structlog
from rchidrun.core.models import ExecutionRequest, RunnerConfig
from rchidrun.resolver import supported_languages

try:
    import importlib.metadata

    __version__ = importlib.metadata.version("rchidrun")
except Exception:
    __version__ = "unknown"

FATAL_EXIT_CODE = 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rchidrun",
        description="Run scripts in any language through WebAssembly runtimes",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Emit structured INFO logs on stderr"
    )
    parser.add_argument("--log-json", action="store_true", help="Render logs as JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a script with a language")
    run_parser.add_argument("language", help="Programming language (e.g., python, javascript)")
    run_parser.add_argument("script", help="Path to the script")

    sdk_parser = subparsers.add_parser("sdk", help="Manage language runtimes")
    sdk_subparsers = sdk_parser.add_subparsers(dest="sdk_command", required=True)
    sdk_subparsers.add_parser("list", help="List installed SDKs and supported languages")

    return parser


def render_sdk_list(installed: Sequence[str], console: Console) -> None:
    """Print installed runtimes and the predefined registry table."""
    console.print("Installed SDKs:")
    if installed:
        for language in installed:
            console.print(f"- {escape(language)}")
    else:
        console.print("  (none)")

    table = Table(title="Supported languages (via Wasmer)", title_justify="left")
    table.add_column("Language")
    table.add_column("Package")
    for language, package in supported_languages().items():
        table.add_row(language, package)
    console.print()
    console.print(table)


def cmd_run(args: argparse.Namespace, config: RunnerConfig) -> int:
    runner = create_runner(config=config)
    try:
        outcome = runner.run(ExecutionRequest(language=args.language, script_path=args.script))
    except ExecutionFaultError as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return e.outcome.exit_code
    return outcome.exit_code


def cmd_sdk_list(config: RunnerConfig, console: Console) -> int:
    render_sdk_list(RuntimeCache(config).list_installed(), console)
    return 0


def main(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    """CLI entry point; returns the process exit code.

    Configuration (and with it $HOME) is resolved before any subcommand runs.
    """
    args = build_parser().parse_args(argv)

    configure_structlog(
        level=logging.INFO if args.verbose else logging.WARNING, use_json=args.log_json
    )

    config: RunnerConfig | None = None
    try:
        config = load_config(env)
        if args.command == "run":
            return cmd_run(args, config)
        return cmd_sdk_list(config, Console())
    except RunnerError as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return config.fatal_exit_code if config is not None else FATAL_EXIT_CODE
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
