"""
Owned cache of one event's days and slots.

AgendaState is the only mutable structure in the sync layer. It belongs to
exactly one SyncEngine, which is the only code allowed to call its mutating
methods. Everything that leaves this module is either a frozen model or an
AgendaSnapshot built from copied containers.

Slot lists are kept ordered by ``start_time`` string comparison, both after
a local insertion and after an authoritative replace. ``sort_order`` is
carried on every slot but is not used for ordering.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from agendakit.core.store.models import Day, Event, Slot
from agendakit.core.sync.models import AgendaSnapshot, PendingMutation


def sort_slots(slots: Iterable[Slot]) -> list[Slot]:
    """Order slots by start_time. The sort is stable, so ties keep store order."""
    return sorted(slots, key=lambda slot: slot.start_time)


class AgendaState:
    """Cache for the event currently being edited."""

    def __init__(self) -> None:
        self.event: Event | None = None
        self._days: list[Day] = []
        self._slots: dict[str, list[Slot]] = {}
        self.pending: list[PendingMutation] = []

    @property
    def day_count(self) -> int:
        return len(self._days)

    def has_day(self, day_id: str) -> bool:
        return any(day.day_id == day_id for day in self._days)

    def day_ids(self) -> set[str]:
        return {day.day_id for day in self._days}

    def find_day(self, day_id: str) -> Day | None:
        for day in self._days:
            if day.day_id == day_id:
                return day
        return None

    def slot_count(self, day_id: str) -> int:
        return len(self._slots.get(day_id, []))

    def find_slot(self, slot_id: str) -> Slot | None:
        for slots in self._slots.values():
            for slot in slots:
                if slot.slot_id == slot_id:
                    return slot
        return None

    def replace(
        self,
        event: Event | None,
        days: list[Day],
        slots_by_day: Mapping[str, list[Slot]],
    ) -> None:
        """Swap in a complete authoritative copy. No merge with local state."""
        if event is not None:
            self.event = event
        self._days = list(days)
        self._slots = {day_id: sort_slots(slots) for day_id, slots in slots_by_day.items()}

    def insert_slot(self, slot: Slot) -> None:
        """Insert a slot into its day, keeping start_time order."""
        day_slots = self._slots.get(slot.day_id, [])
        self._slots[slot.day_id] = sort_slots([*day_slots, slot])

    def patch_slot(self, slot_id: str, updates: dict[str, Any]) -> tuple[Slot, Slot]:
        """
        Apply field updates to a cached slot.

        Returns:
            Tuple of (previous slot, patched slot)

        Raises:
            KeyError: If the slot is not cached
        """
        for day_id, slots in self._slots.items():
            for index, slot in enumerate(slots):
                if slot.slot_id == slot_id:
                    patched = slot.model_copy(update=updates)
                    slots[index] = patched
                    if "start_time" in updates:
                        self._slots[day_id] = sort_slots(slots)
                    return slot, patched
        raise KeyError(slot_id)

    def restore_slot(self, slot: Slot) -> bool:
        """Put back an earlier version of a slot. False if it is no longer cached."""
        for day_id, slots in self._slots.items():
            for index, cached in enumerate(slots):
                if cached.slot_id == slot.slot_id:
                    slots[index] = slot
                    self._slots[day_id] = sort_slots(slots)
                    return True
        return False

    def remove_slot(self, slot_id: str) -> bool:
        for day_id, slots in self._slots.items():
            remaining = [slot for slot in slots if slot.slot_id != slot_id]
            if len(remaining) != len(slots):
                self._slots[day_id] = remaining
                return True
        return False

    def snapshot(self) -> AgendaSnapshot:
        return AgendaSnapshot(
            event=self.event,
            days=tuple(self._days),
            slots_by_day={day_id: tuple(slots) for day_id, slots in self._slots.items()},
        )
