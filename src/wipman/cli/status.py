"""
wipman status - summary of a wipman directory.
"""

import typer
from rich.console import Console
from rich.table import Table

from wipman.cli.common import open_workspace

console = Console()


def status(ctx: typer.Context) -> None:
    """Show how many tasks and views there are, and pending sync records."""
    with open_workspace(ctx) as workspace:
        tasks = workspace.task_store.all()
        views = workspace.view_store.all()
        pending = workspace.pending_changes()
        root = workspace.config.root

    completed = sum(1 for task in tasks if task.completed)

    table = Table(title=str(root), show_header=False)
    table.add_column("Item", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Tasks", str(len(tasks)))
    table.add_row("  completed", str(completed))
    table.add_row("Views", str(len(views)))
    table.add_row("Pending sync records", str(pending))
    console.print(table)

    for view in sorted(views, key=lambda v: v.title.lower()):
        tags = ", ".join(sorted(view.tags)) or "all tasks"
        console.print(f"  [cyan]{view.title}[/cyan] [dim]({tags})[/dim]: {len(view.task_ids())} tasks")
