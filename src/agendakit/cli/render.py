"""
Rich renderables for events, the editor view and the public agenda.
"""

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from agendakit.core.store.models import Event, FullAgenda, Slot
from agendakit.core.sync.models import AgendaSnapshot
from agendakit.core.viewer.reader import AgendaReader, ReaderState
from agendakit.utils.formatting import format_date, format_time, google_drive_direct_link


def _time_range(slot: Slot) -> str:
    return f"{format_time(slot.start_time)} - {format_time(slot.end_time)}"


def render_events(events: Sequence[Event]) -> RenderableType:
    if not events:
        return Text("No events yet. Create one with: agenda events create NAME", style="dim")

    table = Table(title="Events")
    table.add_column("Name", style="bold")
    table.add_column("Created")
    table.add_column("Status")
    table.add_column("ID", style="dim")
    for event in events:
        status_style = "green" if event.is_active else "dim"
        table.add_row(
            event.event_name,
            format_date(event.created_at),
            f"[{status_style}]{event.status}[/{status_style}]",
            event.event_id,
        )
    return table


def render_editor(snapshot: AgendaSnapshot, link: str | None = None) -> RenderableType:
    """Days with their slots, including placeholders not yet saved."""
    parts: list[RenderableType] = []
    title = snapshot.event.event_name if snapshot.event else "Event"
    header = Text(title, style="bold")
    if link:
        header.append(f"\n{link}", style="cyan")
    parts.append(Panel(header))

    if not snapshot.days:
        parts.append(Text("No days yet. Add one with: agenda edit add-day", style="dim"))
        return Group(*parts)

    for day in snapshot.days:
        table = Table(
            title=f"Day {day.day_number}: {day.day_name} ({format_date(day.day_date)})",
            caption=f"day id {day.day_id}",
        )
        table.add_column("Time")
        table.add_column("Title", style="bold")
        table.add_column("Presenter")
        table.add_column("Shown")
        table.add_column("ID", style="dim")
        for slot in snapshot.slots_for(day.day_id):
            shown = "[green]yes[/green]" if slot.show_presenter else "[dim]no[/dim]"
            slot_id = "[yellow]saving...[/yellow]" if slot.unconfirmed else slot.slot_id
            table.add_row(_time_range(slot), slot.slot_title, slot.presenter_name, shown, slot_id)
        parts.append(table)
    return Group(*parts)


def render_agenda(
    agenda: FullAgenda,
    selected_day: int = 0,
    thumbnail_width: int = 1500,
) -> RenderableType:
    """The public, read-only agenda for one day."""
    event = agenda.event
    parts: list[RenderableType] = []

    header = Text(event.event_name, style="bold")
    for label, url in (
        ("header", event.header_image_url),
        ("background", event.background_image_url),
        ("footer", event.footer_image_url),
    ):
        if url:
            direct = google_drive_direct_link(url, thumbnail_width)
            header.append(f"\n{label}: {direct}", style="dim")
    parts.append(Panel(header))

    if len(agenda.days) > 1:
        tabs = Text()
        for index, day in enumerate(agenda.days):
            style = "reverse bold" if index == selected_day else ""
            tabs.append(f" {day.day_name} ", style=style)
            tabs.append(" ")
        parts.append(tabs)

    day = agenda.day(selected_day)
    if day is None:
        parts.append(Text("No agenda published yet.", style="dim"))
        return Group(*parts)

    if len(agenda.days) == 1:
        parts.append(Text(f"{day.day_name} - {format_date(day.day_date)}", style="bold"))

    if not day.slots:
        parts.append(Text("No sessions scheduled for this day.", style="dim"))
        return Group(*parts)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Session")
    for slot in day.slots:
        session = Text(slot.slot_title, style="bold")
        if slot.show_presenter and slot.presenter_name:
            session.append(f"\n{slot.presenter_name}", style="dim")
        table.add_row(_time_range(slot), session)
    parts.append(table)
    return Group(*parts)


def render_reader(reader: AgendaReader, thumbnail_width: int = 1500) -> RenderableType:
    if reader.state is ReaderState.LOADING:
        return Text("Loading agenda...", style="dim")
    if reader.state is ReaderState.NOT_FOUND or reader.agenda is None:
        return Text("Agenda not found.", style="red")
    return render_agenda(reader.agenda, reader.selected_day, thumbnail_width)
