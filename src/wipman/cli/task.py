"""
wipman task - work with tasks.
"""

from typing import Annotated

import typer
from rich.console import Console

from wipman.cli.common import open_workspace

app = typer.Typer(
    name="task",
    help="Create tasks",
    no_args_is_help=True,
)

console = Console()


@app.command()
def new(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Task title")],
    tag: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="Tag to add (repeatable)"),
    ] = None,
) -> None:
    """
    Create a task and list it in every view it matches.

    Examples:
        wipman task new "Buy milk"
        wipman task new "Fix the bike" --tag hiru --tag weekend
    """
    with open_workspace(ctx) as workspace:
        task = workspace.create_task(title, tags=tag or [])
        path = workspace.synchronizer.task_path(task.id)
        views = workspace.view_store.views_showing(task.id)

    console.print(f"[green]✓[/green] Created task [bold]{task.id}[/bold]: {task.title}")
    console.print(f"[dim]{path} - listed in {len(views)} view(s)[/dim]")
