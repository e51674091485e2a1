"""
Agenda CLI - Editor commands.

Every command loads the event through the sync engine, applies one change,
waits for background saves to settle, and prints the result. Slot changes
are shown optimistically first and confirmed once the store answers.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console

from agendakit.cli import runtime
from agendakit.cli.errors import ExitCode, handle_error, print_error
from agendakit.cli.render import render_editor
from agendakit.core.config import load_config
from agendakit.core.routes import share_url
from agendakit.core.store.exceptions import AgendaError, FetchError, ValidationError
from agendakit.core.sync import AgendaSnapshot, PendingMutation, SyncEngine

T = TypeVar("T")

WRITE_ACTIONS = frozenset({"createSlot", "updateSlot"})

console = Console()
app = typer.Typer(
    name="edit",
    help="Edit an event's days, slots and images",
    no_args_is_help=True,
)


def _warn_background(error: FetchError) -> None:
    console.print(f"[yellow]⚠[/yellow]  Background sync failed: {error}")


def _with_engine(
    event_id: str,
    action: Callable[[SyncEngine], Awaitable[T]],
    *,
    yes: bool = False,
) -> tuple[AgendaSnapshot, T]:
    """Load the event, run one editor action, and wait for background work."""

    async def _go() -> tuple[AgendaSnapshot, T]:
        async with runtime.open_client() as client:
            engine = SyncEngine(client, event_id, confirm=runtime.confirmer(yes))
            engine.on_error(_warn_background)
            await engine.load_all()
            result = await action(engine)
            await engine.drain()
            return engine.snapshot(), result

    try:
        return asyncio.run(_go())
    except AgendaError as e:
        handle_error(e)


def _refused(marker: PendingMutation) -> bool:
    """True if the store rejected the write itself (not just the follow-up reload)."""
    return marker.error is not None and marker.error.action in WRITE_ACTIONS


def _settle(marker: PendingMutation, engine: SyncEngine) -> None:
    """Undo a change the store refused, so the printed state matches the store."""
    if _refused(marker):
        engine.rollback(marker)


def _exit_if_failed(marker: PendingMutation) -> None:
    if _refused(marker):
        print_error("The change was not saved", reason=str(marker.error))
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def show_editor(event_id: str) -> None:
    """Print an event's days and slots with its share link."""

    async def _noop(engine: SyncEngine) -> None:
        return None

    snapshot, _ = _with_engine(event_id, _noop)
    console.print(render_editor(snapshot, share_url(load_config().share.base_url, event_id)))


@app.command()
def show(event_id: str = typer.Argument(..., help="Event to show")) -> None:
    """
    Show an event's days and slots.

    Examples:
        agenda edit show ev-123
    """
    show_editor(event_id)


@app.command(name="add-day")
def add_day(
    event_id: str = typer.Argument(..., help="Event to add the day to"),
    name: str = typer.Option(..., "--name", "-n", help="Day name, e.g. 'Day 1'"),
    date: str = typer.Option(..., "--date", "-d", help="Calendar date (YYYY-MM-DD)"),
) -> None:
    """
    Add a day at the end of an event.

    Examples:
        agenda edit add-day ev-123 --name "Workshops" --date 2026-03-14
    """

    async def _add(engine: SyncEngine) -> Any:
        return await engine.add_day(name, date)

    _, day = _with_engine(event_id, _add)
    console.print(f"[green]✓[/green] Added day {day.day_number}: [bold]{day.day_name}[/bold]")


@app.command(name="update-day")
def update_day(
    event_id: str = typer.Argument(..., help="Event the day belongs to"),
    day_id: str = typer.Argument(..., help="Day to update"),
    name: str | None = typer.Option(None, "--name", "-n", help="New day name"),
    date: str | None = typer.Option(None, "--date", "-d", help="New calendar date"),
) -> None:
    """
    Rename or re-date a day. Unspecified values are kept.

    Examples:
        agenda edit update-day ev-123 d-1 --name "Opening day"
    """

    async def _update(engine: SyncEngine) -> None:
        current = next((d for d in engine.snapshot().days if d.day_id == day_id), None)
        if current is None:
            raise ValidationError("day_id", f"Unknown day: {day_id}")
        await engine.update_day(
            day_id,
            name if name is not None else current.day_name,
            date if date is not None else current.day_date,
        )

    _with_engine(event_id, _update)
    console.print(f"[green]✓[/green] Updated day {day_id}")


@app.command(name="delete-day")
def delete_day(
    event_id: str = typer.Argument(..., help="Event the day belongs to"),
    day_id: str = typer.Argument(..., help="Day to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """
    Delete a day and all of its slots.

    Examples:
        agenda edit delete-day ev-123 d-2
    """

    async def _delete(engine: SyncEngine) -> None:
        await engine.delete_day(day_id)

    _with_engine(event_id, _delete, yes=yes)
    console.print(f"[green]✓[/green] Deleted day {day_id}")


@app.command(name="add-slot")
def add_slot(
    event_id: str = typer.Argument(..., help="Event the day belongs to"),
    day_id: str = typer.Argument(..., help="Day to add the slot to"),
    title: str = typer.Option(..., "--title", "-t", help="Slot title"),
    start: str = typer.Option("09:00", "--start", "-s", help="Start time (HH:MM)"),
    end: str = typer.Option("10:00", "--end", "-e", help="End time (HH:MM)"),
    presenter: str = typer.Option("", "--presenter", "-p", help="Presenter name"),
) -> None:
    """
    Add a slot to a day.

    Examples:
        agenda edit add-slot ev-123 d-1 --title Keynote --start 09:00 --end 09:45
        agenda edit add-slot ev-123 d-1 -t "Panel" -s 10:00 -e 11:00 -p "Dana Q."
    """

    async def _add(engine: SyncEngine) -> PendingMutation:
        marker = await engine.add_slot(day_id, start, end, title, presenter)
        console.print(f"[blue]Saving[/blue] {title} ({start}-{end})...")
        await marker.wait()
        _settle(marker, engine)
        return marker

    snapshot, marker = _with_engine(event_id, _add)
    _exit_if_failed(marker)
    console.print(f"[green]✓[/green] Added slot [bold]{title}[/bold]")
    console.print(render_editor(snapshot))


@app.command(name="update-slot")
def update_slot(
    event_id: str = typer.Argument(..., help="Event the slot belongs to"),
    slot_id: str = typer.Argument(..., help="Slot to update"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    start: str | None = typer.Option(None, "--start", "-s", help="New start time"),
    end: str | None = typer.Option(None, "--end", "-e", help="New end time"),
    presenter: str | None = typer.Option(None, "--presenter", "-p", help="New presenter"),
) -> None:
    """
    Change a slot's time, title or presenter.

    Examples:
        agenda edit update-slot ev-123 s-9 --title "Opening"
    """
    fields = {
        key: value
        for key, value in (
            ("slot_title", title),
            ("start_time", start),
            ("end_time", end),
            ("presenter_name", presenter),
        )
        if value is not None
    }

    async def _update(engine: SyncEngine) -> PendingMutation:
        marker = await engine.update_slot(slot_id, fields)
        await marker.wait()
        _settle(marker, engine)
        return marker

    _, marker = _with_engine(event_id, _update)
    _exit_if_failed(marker)
    console.print(f"[green]✓[/green] Updated slot {slot_id}")


@app.command(name="delete-slot")
def delete_slot(
    event_id: str = typer.Argument(..., help="Event the slot belongs to"),
    slot_id: str = typer.Argument(..., help="Slot to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """
    Delete a slot.

    Examples:
        agenda edit delete-slot ev-123 s-9 --yes
    """

    async def _delete(engine: SyncEngine) -> None:
        await engine.delete_slot(slot_id)

    _with_engine(event_id, _delete, yes=yes)
    console.print(f"[green]✓[/green] Deleted slot {slot_id}")


@app.command(name="toggle-presenter")
def toggle_presenter(
    event_id: str = typer.Argument(..., help="Event the slot belongs to"),
    slot_id: str = typer.Argument(..., help="Slot whose presenter to show or hide"),
) -> None:
    """
    Show or hide a slot's presenter on the public agenda.

    Examples:
        agenda edit toggle-presenter ev-123 s-9
    """

    async def _toggle(engine: SyncEngine) -> PendingMutation:
        marker = await engine.toggle_slot_presenter_visibility(slot_id)
        await marker.wait()
        return marker

    _, marker = _with_engine(event_id, _toggle)
    _exit_if_failed(marker)
    state = "shown" if marker.slot.show_presenter else "hidden"
    console.print(f"[green]✓[/green] Presenter {state} for slot {slot_id}")


@app.command()
def images(
    event_id: str = typer.Argument(..., help="Event to update"),
    header: str | None = typer.Option(None, "--header", help="Header image URL"),
    height: str | None = typer.Option(None, "--height", help="Header height, e.g. 18rem"),
    background: str | None = typer.Option(None, "--background", help="Background image URL"),
    footer: str | None = typer.Option(None, "--footer", help="Footer image URL"),
) -> None:
    """
    Save the header, background and footer images. Unspecified values are kept.

    Pass an empty string to clear an image.

    Examples:
        agenda edit images ev-123 --header https://drive.google.com/file/d/<id>/view
        agenda edit images ev-123 --height 20rem --footer ""
    """

    async def _save(engine: SyncEngine) -> Any:
        event = engine.snapshot().event

        def keep(value: str | None, current: str | None) -> str:
            return value if value is not None else (current or "")

        return await engine.save_event_settings(
            header_image_url=keep(header, event.header_image_url if event else None),
            header_height=keep(height, event.header_height if event else None),
            background_image_url=keep(background, event.background_image_url if event else None),
            footer_image_url=keep(footer, event.footer_image_url if event else None),
        )

    _with_engine(event_id, _save)
    console.print("[green]✓[/green] Images saved")
