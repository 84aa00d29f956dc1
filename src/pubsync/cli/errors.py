"""
Standardized error handling and exit codes for the pubsync CLI.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for pubsync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including a failed publish."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

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

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_a_repository_error(path: str) -> None:
    print_error(
        f"Not a git repository: {path}",
        reason="pubsync works on the root of a git working tree",
        solution="pubsync --project-dir <repo> ...",
    )


def print_no_base_revision_error() -> None:
    print_error(
        "No base revision given and nothing has been published yet",
        reason="Changes are computed relative to the last published revision",
        solution="pubsync changes <revision>",
    )
