"""
wipman view - work with views.
"""

from typing import Annotated

import typer
from rich.console import Console

from wipman.cli.common import open_workspace

app = typer.Typer(
    name="view",
    help="Create views",
    no_args_is_help=True,
)

console = Console()


@app.command()
def new(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="View title")] = "untitled",
) -> None:
    """
    Create a view listing every task.

    Edit its `tags=` line afterwards to narrow it down.
    """
    with open_workspace(ctx) as workspace:
        view = workspace.create_view(title)
        path = workspace.synchronizer.view_path(view.id)

    console.print(f"[green]✓[/green] Created view [bold]{view.title}[/bold] ({len(view.content)} tasks)")
    console.print(f"[dim]{path}[/dim]")
