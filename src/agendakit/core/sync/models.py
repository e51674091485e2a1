"""
Data models for the sync engine.

Defines the immutable snapshot handed to renderers and the pending-mutation
marker returned by every optimistic change.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from agendakit.core.store.exceptions import FetchError
from agendakit.core.store.models import Day, Event, Slot


class AgendaSnapshot(BaseModel):
    """
    Immutable view of one event's cached days and slots.

    Renderers receive a fresh snapshot after every cache change and must
    never reach into the live cache. The containers here are copies, and
    every model inside is frozen.

    Example:
        >>> snapshot = engine.snapshot()
        >>> for day in snapshot.days:
        ...     print(day.day_name, len(snapshot.slots_for(day.day_id)))
    """

    model_config = ConfigDict(frozen=True)

    event: Event | None = Field(default=None, description="Event details, once known")
    days: tuple[Day, ...] = Field(default=(), description="Days in store order")
    slots_by_day: Mapping[str, tuple[Slot, ...]] = Field(
        default_factory=dict,
        validate_default=True,
        description="Day id to slots, ordered by start_time (read-only)",
    )

    @field_validator("slots_by_day", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, tuple[Slot, ...]]) -> Mapping[str, tuple[Slot, ...]]:
        return MappingProxyType(dict(value))

    @field_serializer("slots_by_day")
    def _dump_slots(self, value: Mapping[str, tuple[Slot, ...]]) -> dict[str, Any]:
        return dict(value)

    def slots_for(self, day_id: str) -> tuple[Slot, ...]:
        """Return the slots cached for a day (empty when unknown)."""
        return self.slots_by_day.get(day_id, ())

    def find_slot(self, slot_id: str) -> Slot | None:
        for slots in self.slots_by_day.values():
            for slot in slots:
                if slot.slot_id == slot_id:
                    return slot
        return None

    @property
    def has_unconfirmed(self) -> bool:
        return any(slot.unconfirmed for slots in self.slots_by_day.values() for slot in slots)


class MutationKind(str, Enum):
    """Kinds of optimistic slot mutation."""

    CREATE_SLOT = "create_slot"
    UPDATE_SLOT = "update_slot"
    TOGGLE_PRESENTER = "toggle_presenter"


class MutationStatus(str, Enum):
    """Lifecycle of a pending mutation marker."""

    PENDING = "pending"
    """Optimistic change applied, store call not finished."""

    CONFIRMED = "confirmed"
    """Store call succeeded and an authoritative reload replaced the change."""

    FAILED = "failed"
    """Store call failed. The optimistic change is still in the cache."""

    ROLLED_BACK = "rolled_back"
    """The optimistic change was undone with an explicit rollback."""

    SUPERSEDED = "superseded"
    """An authoritative reload replaced the cache before this call finished."""


class PendingMutation:
    """
    Marker returned by every optimistic mutation.

    The optimistic change it describes is cleared only by a successful
    authoritative reload (status becomes ``confirmed`` or ``superseded``)
    or by ``SyncEngine.rollback`` (status becomes ``rolled_back``). A failed
    store call leaves the change standing with status ``failed``.

    Attributes:
        kind: What the mutation did
        slot: The optimistic slot as inserted or patched
        previous: The cached slot before the change (None for inserts)
        snapshot: Snapshot taken right after the optimistic change
        status: Current lifecycle status
        error: FetchError from the store call, when it failed
    """

    def __init__(
        self,
        kind: MutationKind,
        slot: Slot,
        previous: Slot | None,
        snapshot: AgendaSnapshot,
    ) -> None:
        self.kind = kind
        self.slot = slot
        self.previous = previous
        self.snapshot = snapshot
        self.status = MutationStatus.PENDING
        self.error: FetchError | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def slot_id(self) -> str:
        return self.slot.slot_id

    @property
    def day_id(self) -> str:
        return self.slot.day_id

    @property
    def resolved(self) -> bool:
        """True once the optimistic change has been replaced or undone."""
        return self.status in (
            MutationStatus.CONFIRMED,
            MutationStatus.ROLLED_BACK,
            MutationStatus.SUPERSEDED,
        )

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    async def wait(self) -> MutationStatus:
        """Wait for the background store call (and its reload) to finish."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.status

    def __repr__(self) -> str:
        return (
            f"PendingMutation(kind={self.kind.value!r}, slot_id={self.slot_id!r}, "
            f"status={self.status.value!r})"
        )
