"""
Pytest configuration and shared fixtures.

Provides an in-memory agenda store that mimics AgendaStoreClient, with
call recording, failure injection and per-action gates for holding a call
open while a test inspects intermediate state.
"""

import asyncio
import itertools
from typing import Any

import pytest

from agendakit.core.config import clear_cache
from agendakit.core.store.exceptions import FetchError
from agendakit.core.store.models import Day, Event, FullAgenda, Slot
from agendakit.core.sync import SyncEngine

# ==============================================================================
# Fake Store
# ==============================================================================


class FakeAgendaStore:
    """In-memory stand-in for AgendaStoreClient."""

    def __init__(self) -> None:
        self.events: dict[str, dict[str, Any]] = {}
        self.days: list[dict[str, Any]] = []
        self.slots: list[dict[str, Any]] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.in_flight: dict[str, int] = {}
        self.closed = False
        self._failures: dict[str, int] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._ids = itertools.count(100)

    # -- test controls ----------------------------------------------------

    def fail(self, action: str, times: int = 1) -> None:
        """Make the next ``times`` calls to ``action`` raise FetchError (-1 = always)."""
        self._failures[action] = times

    def hold(self, action: str) -> asyncio.Event:
        """Block calls to ``action`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[action] = gate
        return gate

    def release(self, action: str) -> None:
        gate = self._gates.pop(action, None)
        if gate is not None:
            gate.set()

    def count(self, action: str) -> int:
        return sum(1 for name, _ in self.calls if name == action)

    def actions(self) -> list[str]:
        return [name for name, _ in self.calls]

    # -- seeding ----------------------------------------------------------

    def seed_event(self, event_id: str, event_name: str, **fields: Any) -> str:
        self.events[event_id] = {
            "event_id": event_id,
            "event_name": event_name,
            "status": "active",
            "created_at": "2026-01-05T10:00:00",
            **fields,
        }
        return event_id

    def seed_day(self, day_id: str, event_id: str, day_name: str, day_date: str) -> str:
        number = sum(1 for d in self.days if d["event_id"] == event_id) + 1
        self.days.append(
            {
                "day_id": day_id,
                "event_id": event_id,
                "day_number": number,
                "day_name": day_name,
                "day_date": day_date,
            }
        )
        return day_id

    def seed_slot(
        self,
        slot_id: str,
        day_id: str,
        start_time: str,
        end_time: str,
        slot_title: str,
        presenter_name: str = "",
        show_presenter: Any = True,
    ) -> str:
        self.slots.append(
            {
                "slot_id": slot_id,
                "day_id": day_id,
                "start_time": start_time,
                "end_time": end_time,
                "slot_title": slot_title,
                "presenter_name": presenter_name,
                "show_presenter": show_presenter,
                "sort_order": sum(1 for s in self.slots if s["day_id"] == day_id) + 1,
            }
        )
        return slot_id

    # -- call plumbing ----------------------------------------------------

    async def _call(self, action: str, **params: Any) -> None:
        self.calls.append((action, params))
        self.in_flight[action] = self.in_flight.get(action, 0) + 1
        try:
            gate = self._gates.get(action)
            if gate is not None:
                await gate.wait()
            remaining = self._failures.get(action, 0)
            if remaining:
                if remaining > 0:
                    self._failures[action] = remaining - 1
                raise FetchError(action, "Injected failure")
        finally:
            self.in_flight[action] -= 1

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # -- client surface ---------------------------------------------------

    async def __aenter__(self) -> "FakeAgendaStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.closed = True

    async def get_events(self) -> list[Event]:
        await self._call("getEvents")
        return [Event.model_validate(e) for e in self.events.values()]

    async def get_event(self, event_id: str) -> Event:
        await self._call("getEvent", eventId=event_id)
        if event_id not in self.events:
            raise FetchError("getEvent", "Event not found", event_id=event_id)
        return Event.model_validate(self.events[event_id])

    async def get_full_agenda(self, event_id: str) -> FullAgenda:
        await self._call("getFullAgenda", eventId=event_id)
        if event_id not in self.events:
            raise FetchError("getFullAgenda", "Event not found", event_id=event_id)
        days = [
            {**day, "slots": [s for s in self.slots if s["day_id"] == day["day_id"]]}
            for day in self.days
            if day["event_id"] == event_id
        ]
        return FullAgenda.model_validate({"event": self.events[event_id], "days": days})

    async def create_event(
        self,
        event_name: str,
        header_image_url: str | None = None,
        background_image_url: str | None = None,
        footer_image_url: str | None = None,
    ) -> dict[str, Any]:
        await self._call("createEvent", event_name=event_name)
        event_id = self.seed_event(
            self._new_id("ev"),
            event_name,
            header_image_url=header_image_url or "",
            background_image_url=background_image_url or "",
            footer_image_url=footer_image_url or "",
        )
        return {"success": True, "event_id": event_id}

    async def update_event(self, event_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        await self._call("updateEvent", event_id=event_id, updates=updates)
        self.events[event_id].update(updates)
        return {"success": True}

    async def delete_event(self, event_id: str) -> dict[str, Any]:
        await self._call("deleteEvent", event_id=event_id)
        self.events.pop(event_id, None)
        return {"success": True}

    async def get_event_days(self, event_id: str) -> list[Day]:
        await self._call("getEventDays", eventId=event_id)
        return [Day.model_validate(d) for d in self.days if d["event_id"] == event_id]

    async def create_day(
        self,
        event_id: str,
        day_number: int,
        day_name: str,
        day_date: str,
    ) -> dict[str, Any]:
        await self._call(
            "createDay",
            event_id=event_id,
            day_number=day_number,
            day_name=day_name,
            day_date=day_date,
        )
        day_id = self._new_id("d")
        self.days.append(
            {
                "day_id": day_id,
                "event_id": event_id,
                "day_number": day_number,
                "day_name": day_name,
                "day_date": day_date,
            }
        )
        return {"success": True, "day_id": day_id}

    async def update_day(self, day_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        await self._call("updateDay", day_id=day_id, updates=updates)
        for day in self.days:
            if day["day_id"] == day_id:
                day.update(updates)
        return {"success": True}

    async def delete_day(self, day_id: str) -> dict[str, Any]:
        await self._call("deleteDay", day_id=day_id)
        self.days = [d for d in self.days if d["day_id"] != day_id]
        self.slots = [s for s in self.slots if s["day_id"] != day_id]
        return {"success": True}

    async def get_agenda_slots(self, day_id: str) -> list[Slot]:
        await self._call("getAgendaSlots", dayId=day_id)
        return [Slot.model_validate(s) for s in self.slots if s["day_id"] == day_id]

    async def create_slot(
        self,
        day_id: str,
        start_time: str,
        end_time: str,
        slot_title: str,
        presenter_name: str = "",
        sort_order: int = 999,
    ) -> dict[str, Any]:
        await self._call(
            "createSlot",
            day_id=day_id,
            start_time=start_time,
            end_time=end_time,
            slot_title=slot_title,
            presenter_name=presenter_name,
            sort_order=sort_order,
        )
        slot_id = self._new_id("s")
        self.slots.append(
            {
                "slot_id": slot_id,
                "day_id": day_id,
                "start_time": start_time,
                "end_time": end_time,
                "slot_title": slot_title,
                "presenter_name": presenter_name,
                "show_presenter": True,
                "sort_order": sort_order,
            }
        )
        return {"success": True, "slot_id": slot_id}

    async def update_slot(self, slot_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        await self._call("updateSlot", slot_id=slot_id, updates=updates)
        for slot in self.slots:
            if slot["slot_id"] == slot_id:
                slot.update(updates)
        return {"success": True}

    async def delete_slot(self, slot_id: str) -> dict[str, Any]:
        await self._call("deleteSlot", slot_id=slot_id)
        self.slots = [s for s in self.slots if s["slot_id"] != slot_id]
        return {"success": True}


# ==============================================================================
# Store Fixtures
# ==============================================================================


@pytest.fixture
def store():
    """Provide a fake store holding one two-day event."""
    fake = FakeAgendaStore()
    fake.seed_event("ev-1", "DevDays")
    fake.seed_day("d-1", "ev-1", "Day 1", "2026-03-14")
    fake.seed_day("d-2", "ev-1", "Day 2", "2026-03-15")
    fake.seed_slot("s-1", "d-1", "09:00", "10:00", "Keynote", "Ada L.")
    fake.seed_slot("s-2", "d-1", "12:00", "13:00", "Lunch", show_presenter="FALSE")
    fake.seed_slot("s-3", "d-2", "10:00", "11:00", "Workshops", "Grace H.")
    return fake


@pytest.fixture
def empty_store():
    """Provide a fake store holding one event with no days."""
    fake = FakeAgendaStore()
    fake.seed_event("ev-1", "DevDays")
    return fake


@pytest.fixture
def engine(store):
    """Provide a SyncEngine over the seeded fake store."""
    return SyncEngine(store, "ev-1")


# ==============================================================================
# Config Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config and env lookups away from the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "AGENDA_API_URL",
        "AGENDA_API_TIMEOUT",
        "AGENDA_POLL_INTERVAL",
        "AGENDA_SHARE_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()
