"""
wipman CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

from pathlib import Path

import typer
from rich.console import Console

from wipman import __version__
from wipman.cli import files, init_cmd, status, task, verify, view
from wipman.cli.common import configure_logging

app = typer.Typer(
    name="wipman",
    help="Plain-text task manager: keeps task files and view files in sync",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"wipman {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        "-r",
        help="wipman directory (default: $WIPMAN_ROOT or the current directory)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """
    wipman - keep a directory of task and view files consistent.

    Quick Start:
        1. wipman init ~/notes
        2. wipman --root ~/notes task new "Buy milk"
        3. edit ~/notes/views/backlog.md, then: wipman saved views/backlog.md
    """
    configure_logging(debug)
    ctx.obj = {"debug": debug, "root": root.expanduser().resolve() if root else None}


app.command(name="init")(init_cmd.main)
app.add_typer(task.app, name="task")
app.add_typer(view.app, name="view")
app.command(name="saved")(files.saved)
app.command(name="deleted")(files.deleted)
app.command(name="verify")(verify.verify_command)
app.command(name="status")(status.status)


def cli_main() -> None:
    app()


__all__ = ["app", "cli_main"]
