"""
Standardized error handling and exit codes for the wipman CLI.
"""

from enum import IntEnum

from pydantic import ValidationError
from rich.console import Console

from wipman.core.errors import (
    InvariantViolation,
    JournalError,
    NotAWipmanDirectoryError,
    ParseError,
    UnknownPathError,
    UnknownViewError,
    WipmanError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for wipman CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or problems found by verify."""

    USER_ERROR = 2
    """Wrong directory or malformed file (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Example:
        >>> print_error(
        ...     "Not a wipman directory",
        ...     reason="No backlog found in ~/notes",
        ...     solution="wipman init ~/notes",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def report_error(error: WipmanError) -> ExitCode:
    """Print a wipman error and return the exit code the command should use."""
    match error:
        case NotAWipmanDirectoryError():
            print_error(
                "Not a wipman directory",
                reason=f"{error.path} ({error.status})",
                solution=f"wipman init {error.path}",
            )
            return ExitCode.USER_ERROR
        case ParseError():
            print_error(
                f"Cannot parse {error.path}" if error.path else "Cannot parse file",
                reason=error.reason,
                solution="fix the file and save it again",
            )
            return ExitCode.USER_ERROR
        case UnknownViewError() | UnknownPathError():
            print_error(
                str(error),
                solution="wipman verify  # re-reads the whole directory",
            )
            return ExitCode.USER_ERROR
        case JournalError():
            print_error("The sync journal is inconsistent", reason=str(error))
            return ExitCode.GENERAL_ERROR
        case InvariantViolation():
            print_error(
                "Internal consistency error",
                reason=str(error),
                solution="wipman verify  # to see which files disagree",
            )
            return ExitCode.GENERAL_ERROR
        case _:
            print_error(str(error))
            return ExitCode.GENERAL_ERROR


def report_validation_error(error: ValidationError) -> ExitCode:
    """Print why a model rejected its input."""
    reasons = "\n".join(str(detail["msg"]) for detail in error.errors())
    print_error(f"Invalid {error.title}", reason=reasons)
    return ExitCode.USER_ERROR
