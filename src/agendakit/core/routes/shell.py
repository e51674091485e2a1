"""
Navigation shell - map paths to the three views.

Paths:
    /                     dashboard (list, create and delete events)
    /event/<event_id>     editor for one event
    /agenda/<event_id>    public viewer for one event

Shareable links use a hash fragment so a static host can serve them:
``<base_url>/#/agenda/<event_id>``. The event id is the only state a path
carries.
"""

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote, urlsplit

from agendakit.core.store.exceptions import ValidationError


class Route(str, Enum):
    DASHBOARD = "dashboard"
    EDITOR = "editor"
    VIEWER = "viewer"


_PREFIXES = {
    Route.EDITOR: "event",
    Route.VIEWER: "agenda",
}

_PATTERN = re.compile(r"^/(?P<prefix>event|agenda)/(?P<event_id>[^/]+)/?$")


@dataclass(frozen=True)
class RouteMatch:
    """A resolved path: which view, and for which event."""

    route: Route
    event_id: str | None = None


def resolve(path: str) -> RouteMatch:
    """
    Resolve a path or full share URL to a route.

    Args:
        path: "/agenda/ev-1", "#/agenda/ev-1" or "https://host/#/agenda/ev-1"

    Returns:
        The matching RouteMatch

    Raises:
        ValidationError: If the path matches no route

    Examples:
        >>> resolve("/")
        RouteMatch(route=<Route.DASHBOARD: 'dashboard'>, event_id=None)
        >>> resolve("https://agenda.example.org/#/event/ev-1").event_id
        'ev-1'
    """
    candidate = path.strip()
    if "://" in candidate:
        parts = urlsplit(candidate)
        candidate = parts.fragment or parts.path
    candidate = candidate.lstrip("#") or "/"
    if not candidate.startswith("/"):
        candidate = "/" + candidate

    if candidate == "/":
        return RouteMatch(Route.DASHBOARD)

    match = _PATTERN.match(candidate)
    if match is None:
        raise ValidationError("path", f"No view for path: {path}")

    route = Route.EDITOR if match.group("prefix") == "event" else Route.VIEWER
    return RouteMatch(route, unquote(match.group("event_id")))


def path_for(route: Route, event_id: str | None = None) -> str:
    """
    Build the path for a route.

    Raises:
        ValidationError: If an editor or viewer path is requested without an event id
    """
    if route is Route.DASHBOARD:
        return "/"
    if not event_id:
        raise ValidationError("event_id", f"{route.value} path needs an event id")
    return f"/{_PREFIXES[route]}/{event_id}"


def share_url(base_url: str, event_id: str) -> str:
    """Public, shareable link to an event's agenda."""
    return f"{base_url.rstrip('/')}/#{path_for(Route.VIEWER, event_id)}"
