"""
Remote agenda store: HTTP client, data models and error types.

Example:
    >>> from agendakit.core.store import AgendaStoreClient
    >>> async with AgendaStoreClient(url) as client:
    ...     events = await client.get_events()
"""

from agendakit.core.store.client import AgendaStoreClient
from agendakit.core.store.exceptions import (
    AgendaError,
    ConfirmationDeclined,
    FetchError,
    ValidationError,
)
from agendakit.core.store.models import (
    AgendaDay,
    Day,
    Event,
    EventStatus,
    FullAgenda,
    Slot,
)

__all__ = [
    "AgendaStoreClient",
    "AgendaError",
    "ConfirmationDeclined",
    "FetchError",
    "ValidationError",
    "AgendaDay",
    "Day",
    "Event",
    "EventStatus",
    "FullAgenda",
    "Slot",
]
