"""
Agenda CLI - Public agenda viewer.

Shows the read-only agenda of one event. With --watch, the agenda is
re-fetched on the configured interval and redrawn in place until Ctrl+C.
"""

import asyncio

import typer
from rich.console import Console
from rich.live import Live

from agendakit.cli import runtime
from agendakit.cli.errors import ExitCode, handle_error, print_error
from agendakit.cli.render import render_reader
from agendakit.core.config import load_config
from agendakit.core.store.exceptions import AgendaError
from agendakit.core.viewer import AgendaReader, ReaderState

console = Console()


async def _show_once(event_id: str, day: int, thumbnail_width: int) -> ReaderState:
    async with runtime.open_client() as client:
        reader = AgendaReader(client, event_id)
        state = await reader.start()
        await reader.stop()
        if state is ReaderState.LOADED:
            if day:
                reader.select_day(day - 1)
            console.print(render_reader(reader, thumbnail_width))
        return state


async def _watch(event_id: str, day: int, interval: float, thumbnail_width: int) -> ReaderState:
    async with runtime.open_client() as client:
        reader = AgendaReader(client, event_id, interval=interval)
        with Live(render_reader(reader), console=console, refresh_per_second=4) as live:
            reader.on_update = lambda r: live.update(render_reader(r, thumbnail_width))
            state = await reader.start()
            if state is not ReaderState.LOADED:
                return state
            try:
                if day:
                    reader.select_day(day - 1)
                while reader.running:
                    await asyncio.sleep(1)
            finally:
                await reader.stop()
        return state


def show_agenda(event_id: str, day: int = 0, watch: bool = False) -> None:
    """Render an event's public agenda, optionally refreshing until interrupted."""
    config = load_config()
    try:
        if watch:
            state = asyncio.run(
                _watch(event_id, day, config.viewer.poll_interval, config.images.thumbnail_width)
            )
        else:
            state = asyncio.run(_show_once(event_id, day, config.images.thumbnail_width))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
        raise typer.Exit(ExitCode.SIGINT)
    except AgendaError as e:
        handle_error(e)

    if state is ReaderState.NOT_FOUND:
        print_error(f"No agenda found for event {event_id}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def view(
    event_id: str = typer.Argument(..., help="Event whose agenda to show"),
    day: int = typer.Option(0, "--day", "-d", min=0, help="Day to show (1-based)"),
    watch: bool = typer.Option(
        False,
        "--watch",
        "-w",
        help="Keep refreshing (interval from viewer.poll_interval, default 30s)",
    ),
) -> None:
    """
    Show the public agenda of an event.

    Examples:
        agenda view ev-123
        agenda view ev-123 --day 2
        agenda view ev-123 --watch
    """
    show_agenda(event_id, day, watch)
