"""
Routes module - dispatch table for the dashboard, editor and viewer.
"""

from agendakit.core.routes.shell import Route, RouteMatch, path_for, resolve, share_url

__all__ = [
    "Route",
    "RouteMatch",
    "path_for",
    "resolve",
    "share_url",
]
