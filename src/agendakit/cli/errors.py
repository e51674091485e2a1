"""
Standardized error handling and exit codes for the agenda CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum
from typing import NoReturn

import typer
from rich.console import Console

from agendakit.core.store.exceptions import (
    AgendaError,
    ConfirmationDeclined,
    FetchError,
    ValidationError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for agenda CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including failed store calls."""

    USER_ERROR = 2
    """Missing configuration, invalid input, or a declined confirmation."""

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

    Example:
        >>> print_error(
        ...     "Could not reach the agenda store",
        ...     reason="Network error: Connection refused",
        ...     solution="agenda events list  # try again",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_configured_error() -> None:
    """Print error when no store endpoint is configured."""
    print_error(
        "No agenda store configured",
        reason="Set the script endpoint URL in .env, .agendakit.json or the environment",
        solution="export AGENDA_API_URL=https://script.google.com/macros/s/<deployment>/exec",
    )


def handle_error(error: AgendaError) -> NoReturn:
    """
    Print an AgendaError and exit with the matching code.

    Raises:
        typer.Exit: Always
    """
    if isinstance(error, ConfirmationDeclined):
        console.print(f"[yellow]Cancelled:[/yellow] nothing was changed ({error.target_id})")
        raise typer.Exit(ExitCode.USER_ERROR)

    if isinstance(error, ValidationError):
        print_error(error.message, reason=f"Field: {error.field}")
        raise typer.Exit(ExitCode.USER_ERROR)

    if isinstance(error, FetchError):
        print_error(
            "The agenda store request failed",
            reason=str(error),
            solution="run the command again; nothing is retried automatically",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    print_error(str(error))
    raise typer.Exit(ExitCode.GENERAL_ERROR)
