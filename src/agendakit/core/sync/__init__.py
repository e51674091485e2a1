"""
Optimistic sync of one event's days and slots with the agenda store.

Example:
    >>> from agendakit.core.sync import SyncEngine
    >>> engine = SyncEngine(client, "ev-1")
    >>> snapshot = await engine.load_all()
    >>> pending = await engine.add_slot(snapshot.days[0].day_id, "09:00", "10:00", "Keynote")
    >>> if await pending.wait() == MutationStatus.FAILED:
    ...     engine.rollback(pending)
"""

from agendakit.core.sync.engine import SyncEngine
from agendakit.core.sync.models import (
    AgendaSnapshot,
    MutationKind,
    MutationStatus,
    PendingMutation,
)
from agendakit.core.sync.state import AgendaState, sort_slots

__all__ = [
    "SyncEngine",
    "AgendaSnapshot",
    "AgendaState",
    "MutationKind",
    "MutationStatus",
    "PendingMutation",
    "sort_slots",
]
