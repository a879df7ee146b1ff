"""
wipman verify - check that views and tasks agree.
"""

import typer
from rich.console import Console
from rich.table import Table

from wipman.cli.common import get_config
from wipman.cli.errors import ExitCode, report_error
from wipman.core.errors import WipmanError
from wipman.core.verify import verify_directory

console = Console()


def verify_command(ctx: typer.Context) -> None:
    """
    Audit the wipman directory.

    Reports files that do not parse, and every (task, view) pair where the
    view does not list the task as it should. Exits with 1 when anything is
    found.
    """
    try:
        report = verify_directory(get_config(ctx))
    except WipmanError as e:
        raise typer.Exit(report_error(e)) from e

    if report.files_with_invalid_format:
        table = Table(title="Files With Invalid Format", show_header=True)
        table.add_column("File", style="cyan")
        table.add_column("Problem")
        for invalid in report.files_with_invalid_format:
            table.add_row(str(invalid.path), invalid.reason)
        console.print(table)

    if report.disconnected_pairs:
        table = Table(title="Disconnected Task/View Pairs", show_header=True)
        table.add_column("Task", style="cyan")
        table.add_column("View", style="cyan")
        table.add_column("Problems")
        for pair in report.disconnected_pairs:
            table.add_row(
                str(pair.task),
                str(pair.view),
                "\n".join(problem.value for problem in pair.problems),
            )
        console.print(table)

    if report.problems_found:
        console.print("[red]✗ Problems found[/red]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print("[green]✓ No issues found - every view agrees with its tasks[/green]")
