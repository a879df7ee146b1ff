"""
wipman saved / wipman deleted - reconcile files edited outside wipman.

Meant to be wired to an editor's on-save hook or a file watcher.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from wipman.cli.common import open_workspace

console = Console()


def _under_root(root: Path, path: Path) -> Path:
    """Relative paths are taken relative to the wipman root."""
    path = path.expanduser()
    return path if path.is_absolute() else root / path


def saved(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="File that was saved")],
) -> None:
    """
    Reconcile a saved task or view file and update every file it affects.

    Examples:
        wipman saved views/backlog.md
        wipman saved aa/aaaaaaaa
    """
    with open_workspace(ctx) as workspace:
        kind = workspace.on_save(_under_root(workspace.config.root, path))

    if kind is None:
        console.print(f"[dim]Ignored {path}: not a task or view file[/dim]")
    else:
        console.print(f"[green]✓[/green] Reconciled {kind.value} file {path}")


def deleted(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="File that was deleted")],
) -> None:
    """
    Reconcile a deleted file.

    Deleting a task file deletes the task from every view. Deleting a view
    file deletes the view.
    """
    with open_workspace(ctx) as workspace:
        kind = workspace.on_delete(_under_root(workspace.config.root, path))

    if kind is None:
        console.print(f"[dim]Ignored {path}: not a task or view file[/dim]")
    else:
        console.print(f"[green]✓[/green] Removed {kind.value} for {path}")
