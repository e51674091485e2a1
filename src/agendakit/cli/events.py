"""
Agenda CLI - Event commands (the dashboard).

List, create and delete events, and print shareable links.
"""

import asyncio

import typer
from rich.console import Console

from agendakit.cli import runtime
from agendakit.cli.errors import handle_error
from agendakit.cli.render import render_events
from agendakit.core.config import load_config
from agendakit.core.events import EventCatalog
from agendakit.core.routes import Route, path_for, share_url
from agendakit.core.store.exceptions import AgendaError

console = Console()
app = typer.Typer(
    name="events",
    help="List, create and delete events",
    no_args_is_help=True,
)


def show_dashboard() -> None:
    """Print every event as a table."""

    async def _list() -> None:
        async with runtime.open_client() as client:
            events = await EventCatalog(client).list_events()
        console.print(render_events(events))

    try:
        asyncio.run(_list())
    except AgendaError as e:
        handle_error(e)


@app.command(name="list")
def list_events() -> None:
    """
    List all events.

    Examples:
        agenda events list
    """
    show_dashboard()


@app.command()
def create(
    name: str = typer.Argument(..., help="Event name"),
    header: str = typer.Option("", "--header", help="Header image URL"),
    background: str = typer.Option("", "--background", help="Background image URL"),
    footer: str = typer.Option("", "--footer", help="Footer image URL"),
) -> None:
    """
    Create an event and print where to edit and share it.

    Examples:
        agenda events create "DevDays 2026"
        agenda events create "DevDays" --header https://drive.google.com/file/d/<id>/view
    """

    async def _create() -> str | None:
        async with runtime.open_client() as client:
            return await EventCatalog(client).create_event(name, header, background, footer)

    try:
        event_id = asyncio.run(_create())
    except AgendaError as e:
        handle_error(e)

    console.print(f"[green]✓[/green] Created event [bold]{name.strip()}[/bold]")
    if event_id is None:
        console.print("[dim]The store did not return an id; run 'agenda events list'.[/dim]")
        return

    console.print(f"  Editor: agenda open {path_for(Route.EDITOR, event_id)}")
    console.print(f"  Share:  {share_url(load_config().share.base_url, event_id)}")


@app.command()
def delete(
    event_id: str = typer.Argument(..., help="Event to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """
    Delete an event.

    Examples:
        agenda events delete ev-123
        agenda events delete ev-123 --yes
    """

    async def _delete() -> None:
        async with runtime.open_client() as client:
            await EventCatalog(client, confirm=runtime.confirmer(yes)).delete_event(event_id)

    try:
        asyncio.run(_delete())
    except AgendaError as e:
        handle_error(e)

    console.print(f"[green]✓[/green] Deleted event {event_id}")


@app.command()
def link(event_id: str = typer.Argument(..., help="Event to share")) -> None:
    """
    Print the public, shareable agenda link for an event.

    Examples:
        agenda events link ev-123
    """
    console.print(share_url(load_config().share.base_url, event_id))
