"""Event catalog (dashboard) operations."""

from agendakit.core.events.service import EventCatalog

__all__ = ["EventCatalog"]
