"""
Agenda CLI - Open a path or share link in the matching view.
"""

import typer

from agendakit.cli.edit import show_editor
from agendakit.cli.errors import handle_error
from agendakit.cli.events import show_dashboard
from agendakit.cli.view import show_agenda
from agendakit.core.routes import Route, resolve
from agendakit.core.store.exceptions import ValidationError


def main(
    path: str = typer.Argument("/", help="Path or share link, e.g. /agenda/ev-123"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep refreshing agenda views"),
) -> None:
    """
    Open the dashboard, an editor or a public agenda by path.

    Examples:
        agenda open                                   # dashboard
        agenda open /event/ev-123                     # editor
        agenda open "https://host/#/agenda/ev-123"    # public agenda
    """
    try:
        match = resolve(path)
    except ValidationError as e:
        handle_error(e)

    if match.route is Route.DASHBOARD:
        show_dashboard()
    elif match.route is Route.EDITOR:
        show_editor(match.event_id or "")
    else:
        show_agenda(match.event_id or "", watch=watch)
