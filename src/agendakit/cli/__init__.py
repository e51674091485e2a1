"""
Agenda CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer
from rich.console import Console

from agendakit import __version__
from agendakit.cli import edit, events, open_cmd, view
from agendakit.cli.runtime import setup_logging
from agendakit.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_ORGANIZE = "Organize Events"
PANEL_PUBLISH = "Publish Agendas"

app = typer.Typer(
    name="agenda",
    help="Build event agendas and publish them as a live, read-only view",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"agenda {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
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
    Agenda - event agenda builder.

    Organizers create events, add days and time slots, and share a
    public agenda that refreshes itself while it is open.

    Quick Start:
        1. export AGENDA_API_URL=https://script.google.com/macros/s/<id>/exec
        2. agenda events create "DevDays"      # Create an event
        3. agenda edit add-day <event> -n "Day 1" -d 2026-03-14
        4. agenda edit add-slot <event> <day> -t Keynote -s 09:00 -e 10:00
        5. agenda view <event> --watch         # Live public agenda
    """
    # Load layered env files early so the endpoint URL is available to all commands.
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)
    ctx.obj = {"debug": debug}


# =============================================================================
# Organize Events
# =============================================================================

app.add_typer(events.app, name="events", rich_help_panel=PANEL_ORGANIZE)
app.add_typer(edit.app, name="edit", rich_help_panel=PANEL_ORGANIZE)


# =============================================================================
# Publish Agendas
# =============================================================================

app.command(name="view", rich_help_panel=PANEL_PUBLISH)(view.view)
app.command(name="open", rich_help_panel=PANEL_PUBLISH)(open_cmd.main)


def cli_main() -> None:
    """Entry point for the console script."""
    app()


__all__ = ["app", "cli_main"]
