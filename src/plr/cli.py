from __future__ import annotations

import argparse
import json
import logging
from functools import partial
from pathlib import Path
from typing import Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter
from polyglot_runner import (
    DEFAULT_LANGUAGES,
    ExecutionOutcome,
    ExecutionPipeline,
    ExecutionRequest,
    ExecutionSettings,
    ExecutionStatus,
)

_CONSOLE = Console(no_color=False)

_STATUS_STYLES = {
    ExecutionStatus.SUCCESS: "green",
    ExecutionStatus.COMPILE_ERROR: "red",
    ExecutionStatus.RUNTIME_ERROR: "red",
    ExecutionStatus.TIMEOUT: "yellow",
    ExecutionStatus.RESOURCE_EXCEEDED: "yellow",
    ExecutionStatus.INTERNAL_ERROR: "magenta",
}


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m plr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for polyglot-runner.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m plr",
        description=(
            "polyglot-runner CLI\n"
            "Compile and run a source file in a throwaway workspace.\n"
            "No OS-level sandboxing is applied; run untrusted code inside a container."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m plr languages\n"
            "  python -m plr run python hello.py\n"
            "  python -m plr run java Main.java --stdin '3 4'\n"
            "  python -m plr run cpp main.cpp --stdin-file input.txt --json\n"
            "  python -m plr --verbose run c main.c --config runner.toml"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log pipeline phases and commands to stderr.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Execute one source file.",
        description=(
            "Write the file into a fresh workspace, compile it when the language\n"
            "needs it, run it under the configured limits and report the outcome."
        ),
        epilog=(
            "Examples:\n"
            "  python -m plr run python hello.py\n"
            "  python -m plr run rust main.rs --config runner.toml"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("language", help="Language id, e.g. python, java, cpp.")
    run_cmd.add_argument("source_file", help="Path of the source file to execute.")
    stdin_group = run_cmd.add_mutually_exclusive_group()
    stdin_group.add_argument("--stdin", default=None, help="Text passed to standard input.")
    stdin_group.add_argument(
        "--stdin-file",
        default=None,
        help="File whose contents are passed to standard input.",
    )
    run_cmd.add_argument(
        "--config",
        default=None,
        help=(
            "TOML settings file with an [execution] table.\n"
            "Keys: timeout_ms, memory_limit_bytes, max_output_chars, temp_root,\n"
            "drain_grace_seconds."
        ),
    )
    run_cmd.add_argument(
        "--json",
        action="store_true",
        help="Print the raw response object instead of a panel.",
    )

    sub.add_parser(
        "languages",
        help="List supported languages.",
        description="Show every language id with its file extension and compile step.",
        formatter_class=_HELP_FORMATTER,
    )

    return parser


def build_pipeline(settings: ExecutionSettings) -> ExecutionPipeline:
    """Create the execution pipeline used by the `run` command.

    Example:
        ```python
        pipeline = build_pipeline(ExecutionSettings())
        ```
    """
    return ExecutionPipeline(settings)


def _configure_logging(verbose: bool) -> None:
    """Route library logs through Rich when verbose output is requested.

    Example:
        ```python
        _configure_logging(True)
        ```
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_languages() -> None:
    """Render supported languages in a rich table.

    Example:
        ```python
        _print_languages()
        ```
    """
    table = Table(title="Supported Languages")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Extension")
    table.add_column("Compiled")
    for profile in DEFAULT_LANGUAGES:
        table.add_row(
            profile.id,
            profile.display_name,
            profile.extension,
            "yes" if profile.requires_compilation else "no",
        )
    _CONSOLE.print(table)


def _print_outcome(outcome: ExecutionOutcome) -> None:
    """Render an execution outcome as rich panels.

    Example:
        ```python
        _print_outcome(outcome)
        ```
    """
    style = _STATUS_STYLES.get(outcome.status, "white")
    _CONSOLE.print(
        Panel.fit(
            f"[bold {style}]{outcome.status.value}[/bold {style}] in {outcome.execution_time_ms}ms",
            title="Status",
            border_style=style,
        )
    )
    if outcome.output:
        _CONSOLE.print(Panel(Text(outcome.output), title="Output", border_style="cyan"))
    if outcome.error:
        _CONSOLE.print(Panel(Text(outcome.error), title="Error", border_style=style))


def _read_stdin_arg(args: argparse.Namespace) -> str:
    """Return the stdin text selected by --stdin or --stdin-file.

    Example:
        ```python
        text = _read_stdin_arg(args)
        ```
    """
    if args.stdin_file is not None:
        return Path(args.stdin_file).read_text(encoding="utf-8")
    return args.stdin or ""


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `plr` CLI command handler.

    Example:
        ```python
        code = main(["run", "python", "hello.py"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.verbose)

    if args.command == "languages":
        _print_languages()
        return 0
    if args.command == "run":
        source_path = Path(args.source_file)
        if not source_path.is_file():
            _CONSOLE.print(Panel.fit(f"Source file not found: {source_path}", style="bold red"))
            return 1
        try:
            settings = (
                ExecutionSettings.from_file(args.config)
                if args.config is not None
                else ExecutionSettings()
            )
            stdin_text = _read_stdin_arg(args)
            source = source_path.read_text(encoding="utf-8")
        except (OSError, ValueError) as exc:
            _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {exc}", border_style="red"))
            return 1
        outcome = build_pipeline(settings).execute(
            ExecutionRequest(
                language=args.language,
                source=source,
                stdin=stdin_text,
            )
        )
        if args.json:
            _CONSOLE.print_json(json.dumps(outcome.as_response()))
        else:
            _print_outcome(outcome)
        return 0 if outcome.ok else 1

    parser.error("Unhandled command")
    return 2
