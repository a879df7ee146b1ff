"""
wipman init - create a wipman directory.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from wipman.cli.errors import ExitCode, print_error
from wipman.core.files.indexer import DirectoryStatus, check_directory, initialize_directory

console = Console()


def main(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Argument(help="Directory to initialize (default: --root or current directory)"),
    ] = None,
) -> None:
    """
    Create a wipman directory with an empty backlog.

    Examples:
        wipman init
        wipman init ~/notes
    """
    obj = ctx.obj or {}
    target = (root or obj.get("root") or Path.cwd()).expanduser().resolve()

    status = check_directory(target)
    if status is DirectoryStatus.WIPMAN:
        console.print(f"[yellow]{target} is already a wipman directory[/yellow]")
        return
    if status is DirectoryStatus.IS_FILE:
        print_error(f"{target} is a file", solution="pick a directory instead")
        raise typer.Exit(ExitCode.USER_ERROR)
    if status is DirectoryStatus.NOT_WIPMAN and (target / "views").exists():
        print_error(
            f"{target} has a views directory but no readable backlog",
            solution="fix or remove views/backlog.md",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    target.mkdir(parents=True, exist_ok=True)
    backlog = initialize_directory(target)
    console.print(f"[green]✓[/green] Initialized wipman directory at {target}")
    console.print(f"[dim]Backlog: {backlog}[/dim]")
