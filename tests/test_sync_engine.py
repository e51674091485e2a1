"""
Tests for SyncEngine.

Runs the engine against the in-memory store from conftest. Gates on the
fake store hold a call open so the optimistic state can be inspected
before the store answers.
"""

import asyncio

import pytest

from agendakit.core.store.exceptions import ConfirmationDeclined, FetchError, ValidationError
from agendakit.core.store.models import Event
from agendakit.core.sync import MutationKind, MutationStatus, SyncEngine


async def settle() -> None:
    """Let spawned tasks run up to their next suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


def titles(snapshot, day_id: str = "d-1") -> list[str]:
    return [s.slot_title for s in snapshot.slots_for(day_id)]


class TestLoadAll:
    """Test whole-collection reloads."""

    @pytest.mark.asyncio
    async def test_loads_event_days_and_slots(self, engine):
        """Test the snapshot holds the event, its days and sorted slots."""
        snapshot = await engine.load_all()

        assert snapshot.event.event_name == "DevDays"
        assert [d.day_id for d in snapshot.days] == ["d-1", "d-2"]
        assert titles(snapshot) == ["Keynote", "Lunch"]
        assert titles(snapshot, "d-2") == ["Workshops"]
        assert snapshot.find_slot("s-2").show_presenter is False

    @pytest.mark.asyncio
    async def test_idempotent(self, engine, store):
        """Test reloading unchanged data yields an equal snapshot."""
        first = await engine.load_all()
        second = await engine.load_all()

        assert first == second
        assert store.count("getEvent") == 1

    @pytest.mark.asyncio
    async def test_known_event_not_refetched(self, store):
        """Test event details passed in are used instead of getEvent."""
        engine = SyncEngine(store, "ev-1", event=Event(event_id="ev-1", event_name="DevDays"))
        await engine.load_all()
        assert store.count("getEvent") == 0

    @pytest.mark.asyncio
    async def test_unknown_event(self, store):
        """Test an unknown event id raises FetchError."""
        engine = SyncEngine(store, "ev-404")
        with pytest.raises(FetchError, match="Event not found"):
            await engine.load_all()

    @pytest.mark.asyncio
    async def test_slot_reads_run_concurrently(self, engine, store):
        """Test one slot request per day is in flight at the same time."""
        store.hold("getAgendaSlots")
        task = asyncio.create_task(engine.load_all())
        await settle()

        assert store.in_flight["getAgendaSlots"] == 2

        store.release("getAgendaSlots")
        snapshot = await task
        assert len(snapshot.days) == 2

    @pytest.mark.asyncio
    async def test_failure_leaves_cache_untouched(self, engine, store):
        """Test a failing slot read keeps the previous snapshot."""
        before = await engine.load_all()
        store.seed_slot("s-9", "d-1", "08:00", "08:30", "Coffee")
        store.fail("getAgendaSlots")

        with pytest.raises(FetchError):
            await engine.load_all()

        assert engine.snapshot() == before

    @pytest.mark.asyncio
    async def test_loading_signal(self, engine):
        """Test the loading signal toggles only for non-silent reloads."""
        seen = []
        engine.on_loading(seen.append)

        await engine.load_all()
        await engine.load_all(silent=True)

        assert seen == [True, False]
        assert engine.loading is False

    @pytest.mark.asyncio
    async def test_loading_cleared_on_failure(self, engine, store):
        """Test the loading signal is reset when the reload fails."""
        store.fail("getEventDays")
        with pytest.raises(FetchError):
            await engine.load_all()
        assert engine.loading is False

    @pytest.mark.asyncio
    async def test_subscribe(self, engine):
        """Test listeners receive snapshots until unsubscribed."""
        received = []
        unsubscribe = engine.subscribe(received.append)

        await engine.load_all()
        unsubscribe()
        await engine.load_all()

        assert len(received) == 1
        assert received[0].event.event_id == "ev-1"


class TestDays:
    """Test day operations."""

    @pytest.mark.asyncio
    async def test_add_day_appends(self, engine, store):
        """Test a new day gets the next day number and shows up after reload."""
        await engine.load_all()
        day = await engine.add_day("Day 3", "2026-03-16")

        assert day.day_number == 3
        assert day.day_name == "Day 3"
        assert len(engine.snapshot().days) == 3
        create_params = next(params for action, params in store.calls if action == "createDay")
        assert create_params["day_number"] == 3

    @pytest.mark.asyncio
    async def test_add_first_day(self, empty_store):
        """Test adding to an event with no days."""
        engine = SyncEngine(empty_store, "ev-1")
        await engine.load_all()
        day = await engine.add_day("Day 1", "2026-03-14")

        assert day.day_number == 1
        assert engine.snapshot().days[0].day_id == day.day_id

    @pytest.mark.asyncio
    async def test_add_day_is_silent(self, engine):
        """Test the follow-up reload does not toggle loading."""
        await engine.load_all()
        seen = []
        engine.on_loading(seen.append)

        await engine.add_day("Day 3", "2026-03-16")
        assert seen == []

    @pytest.mark.asyncio
    async def test_add_day_without_id_in_response(self, engine, store):
        """Test the new day is found by diffing ids when the store omits it."""
        original = store.create_day

        async def create_day_without_id(**kwargs):
            await original(**kwargs)
            return {"success": True}

        store.create_day = create_day_without_id
        await engine.load_all()
        day = await engine.add_day("Day 3", "2026-03-16")

        assert day.day_id.startswith("d-")
        assert engine.snapshot().days[-1] == day

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,date", [("", "2026-03-16"), ("Day 3", ""), ("  ", "x")])
    async def test_add_day_requires_fields(self, engine, store, name, date):
        """Test empty name or date is rejected without a request."""
        await engine.load_all()
        with pytest.raises(ValidationError):
            await engine.add_day(name, date)
        assert store.count("createDay") == 0

    @pytest.mark.asyncio
    async def test_add_day_failure_raises(self, engine, store):
        """Test a rejected creation raises and leaves the days alone."""
        await engine.load_all()
        store.fail("createDay")

        with pytest.raises(FetchError):
            await engine.add_day("Day 3", "2026-03-16")
        assert len(engine.snapshot().days) == 2

    @pytest.mark.asyncio
    async def test_reload_failure_after_add_is_reported(self, engine, store):
        """Test a failed follow-up reload is reported, not raised."""
        await engine.load_all()
        errors = []
        engine.on_error(errors.append)
        store.fail("getEventDays")

        day = await engine.add_day("Day 3", "2026-03-16")

        assert day.day_name == "Day 3"
        assert [e.action for e in errors] == ["getEventDays"]

    @pytest.mark.asyncio
    async def test_update_day(self, engine, store):
        """Test a day update is pushed and reloaded."""
        await engine.load_all()
        snapshot = await engine.update_day("d-2", "Workshops", "2026-03-20")

        assert snapshot.days[1].day_name == "Workshops"
        assert snapshot.days[1].day_date == "2026-03-20"

    @pytest.mark.asyncio
    async def test_update_day_requires_fields(self, engine, store):
        """Test an empty name is rejected without a request."""
        await engine.load_all()
        with pytest.raises(ValidationError):
            await engine.update_day("d-2", "", "2026-03-20")
        assert store.count("updateDay") == 0

    @pytest.mark.asyncio
    async def test_delete_day_declined(self, store):
        """Test a declined confirmation issues no request."""
        prompts = []

        def decline(prompt):
            prompts.append(prompt)
            return False

        engine = SyncEngine(store, "ev-1", confirm=decline)
        await engine.load_all()

        with pytest.raises(ConfirmationDeclined):
            await engine.delete_day("d-2")

        assert store.count("deleteDay") == 0
        assert len(engine.snapshot().days) == 2
        assert prompts

    @pytest.mark.asyncio
    async def test_delete_day_cascades(self, store):
        """Test a confirmed delete removes the day and its slots."""
        engine = SyncEngine(store, "ev-1", confirm=lambda prompt: True)
        await engine.load_all()

        snapshot = await engine.delete_day("d-2")

        assert [d.day_id for d in snapshot.days] == ["d-1"]
        assert snapshot.find_slot("s-3") is None


class TestAddSlot:
    """Test optimistic slot creation."""

    @pytest.mark.asyncio
    async def test_placeholder_visible_before_response(self, engine, store):
        """Test the placeholder is cached in order while createSlot is in flight."""
        await engine.load_all()
        store.hold("createSlot")

        marker = await engine.add_slot("d-1", "10:30", "11:00", "Break")
        await settle()

        assert store.in_flight["createSlot"] == 1
        assert titles(engine.snapshot()) == ["Keynote", "Break", "Lunch"]
        assert titles(marker.snapshot) == ["Keynote", "Break", "Lunch"]
        placeholder = engine.snapshot().find_slot(marker.slot_id)
        assert placeholder.unconfirmed is True
        assert placeholder.slot_id.startswith("temp-")
        assert placeholder.sort_order == 3
        assert engine.pending == (marker,)

        store.release("createSlot")
        assert await marker.wait() is MutationStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_confirmed_replaces_placeholder(self, engine, store):
        """Test the reload swaps the placeholder for the stored slot."""
        await engine.load_all()
        marker = await engine.add_slot("d-1", "10:30", "11:00", "Break", "Linus T.")
        await marker.wait()

        snapshot = engine.snapshot()
        assert marker.kind is MutationKind.CREATE_SLOT
        assert titles(snapshot) == ["Keynote", "Break", "Lunch"]
        assert not snapshot.has_unconfirmed
        assert snapshot.find_slot(marker.slot_id) is None
        assert engine.pending == ()
        assert store.slots[-1]["presenter_name"] == "Linus T."

    @pytest.mark.asyncio
    async def test_failure_keeps_placeholder(self, engine, store):
        """Test a failed create leaves the placeholder and reports the error."""
        await engine.load_all()
        errors = []
        engine.on_error(errors.append)
        store.fail("createSlot")

        marker = await engine.add_slot("d-1", "10:30", "11:00", "Break")

        assert await marker.wait() is MutationStatus.FAILED
        assert marker.error.action == "createSlot"
        assert errors == [marker.error]
        assert engine.snapshot().find_slot(marker.slot_id) is not None
        assert engine.pending == (marker,)

    @pytest.mark.asyncio
    async def test_rollback_removes_placeholder(self, engine, store):
        """Test rollback drops a failed placeholder."""
        await engine.load_all()
        store.fail("createSlot")
        marker = await engine.add_slot("d-1", "10:30", "11:00", "Break")
        await marker.wait()

        assert engine.rollback(marker) is True
        assert marker.status is MutationStatus.ROLLED_BACK
        assert titles(engine.snapshot()) == ["Keynote", "Lunch"]
        assert engine.rollback(marker) is False

    @pytest.mark.asyncio
    async def test_reload_supersedes_pending(self, engine, store):
        """Test a reload landing mid-flight replaces the placeholder."""
        await engine.load_all()
        store.hold("createSlot")
        marker = await engine.add_slot("d-1", "10:30", "11:00", "Break")
        await settle()

        await engine.load_all()
        assert marker.status is MutationStatus.SUPERSEDED
        assert titles(engine.snapshot()) == ["Keynote", "Lunch"]

        store.release("createSlot")
        await marker.wait()
        assert titles(engine.snapshot()) == ["Keynote", "Break", "Lunch"]

    @pytest.mark.asyncio
    async def test_concurrent_adds(self, engine):
        """Test two adds both end up stored with no placeholders left."""
        await engine.load_all()
        first = await engine.add_slot("d-1", "10:30", "11:00", "Break")
        second = await engine.add_slot("d-1", "14:00", "15:00", "Panel")
        await engine.drain()

        snapshot = engine.snapshot()
        assert titles(snapshot) == ["Keynote", "Break", "Lunch", "Panel"]
        assert not snapshot.has_unconfirmed
        assert first.resolved and second.resolved

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start,end,title",
        [("", "10:00", "Keynote"), ("09:00", "", "Keynote"), ("09:00", "10:00", "")],
    )
    async def test_requires_fields(self, engine, store, start, end, title):
        """Test missing start, end or title is rejected without a request."""
        await engine.load_all()
        with pytest.raises(ValidationError):
            await engine.add_slot("d-1", start, end, title)
        await engine.drain()
        assert store.count("createSlot") == 0
        assert titles(engine.snapshot()) == ["Keynote", "Lunch"]

    @pytest.mark.asyncio
    async def test_unknown_day(self, engine):
        """Test adding to a day that is not cached is rejected."""
        await engine.load_all()
        with pytest.raises(ValidationError, match="Unknown day"):
            await engine.add_slot("d-404", "09:00", "10:00", "Keynote")


class TestUpdateSlot:
    """Test optimistic slot updates."""

    @pytest.mark.asyncio
    async def test_update_confirmed(self, engine, store):
        """Test an update is applied, pushed and confirmed by reload."""
        await engine.load_all()
        marker = await engine.update_slot("s-1", {"slot_title": "Opening"})

        assert titles(marker.snapshot)[0] == "Opening"
        assert marker.previous.slot_title == "Keynote"
        assert await marker.wait() is MutationStatus.CONFIRMED
        assert store.slots[0]["slot_title"] == "Opening"
        assert titles(engine.snapshot())[0] == "Opening"

    @pytest.mark.asyncio
    async def test_failure_keeps_optimistic_value(self, engine, store):
        """Test a failed update keeps the new title and does not raise."""
        await engine.load_all()
        store.fail("updateSlot")

        marker = await engine.update_slot("s-1", {"slot_title": "Opening"})

        assert await marker.wait() is MutationStatus.FAILED
        assert titles(engine.snapshot())[0] == "Opening"
        assert store.slots[0]["slot_title"] == "Keynote"

    @pytest.mark.asyncio
    async def test_rollback_restores_previous(self, engine, store):
        """Test rollback restores the slot as it was."""
        await engine.load_all()
        store.fail("updateSlot")
        marker = await engine.update_slot("s-1", {"start_time": "13:00"})
        await marker.wait()
        assert titles(engine.snapshot()) == ["Lunch", "Keynote"]

        engine.rollback(marker)
        assert titles(engine.snapshot()) == ["Keynote", "Lunch"]

    @pytest.mark.asyncio
    async def test_failure_after_reload_keeps_error(self, engine, store):
        """Test a write refused after a reload still records its error."""
        await engine.load_all()
        store.hold("updateSlot")
        marker = await engine.update_slot("s-1", {"slot_title": "Opening"})
        await settle()

        store.fail("updateSlot")
        await engine.load_all(silent=True)
        assert marker.status is MutationStatus.SUPERSEDED
        assert marker.error is None

        store.release("updateSlot")
        assert await marker.wait() is MutationStatus.SUPERSEDED
        assert isinstance(marker.error, FetchError)
        assert marker.error.action == "updateSlot"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [{}, {"room": "A"}, {"slot_title": ""}, {"start_time": "  "}],
    )
    async def test_invalid_fields(self, engine, store, fields):
        """Test bad field sets are rejected without a request."""
        await engine.load_all()
        with pytest.raises(ValidationError):
            await engine.update_slot("s-1", fields)
        assert store.count("updateSlot") == 0

    @pytest.mark.asyncio
    async def test_unknown_slot(self, engine):
        """Test updating a slot that is not cached is rejected."""
        await engine.load_all()
        with pytest.raises(ValidationError, match="Unknown slot"):
            await engine.update_slot("s-404", {"slot_title": "x"})

    @pytest.mark.asyncio
    async def test_unsaved_slot(self, engine, store):
        """Test a placeholder cannot be updated before it is saved."""
        await engine.load_all()
        store.hold("createSlot")
        marker = await engine.add_slot("d-1", "10:30", "11:00", "Break")

        with pytest.raises(ValidationError, match="not been saved"):
            await engine.update_slot(marker.slot_id, {"slot_title": "Coffee"})

        store.release("createSlot")
        await engine.drain()


class TestToggleAndDelete:
    """Test presenter toggling and slot deletion."""

    @pytest.mark.asyncio
    async def test_toggle_flips_immediately(self, engine, store):
        """Test the flip is visible before the store answers and then confirmed."""
        await engine.load_all()
        store.hold("updateSlot")

        marker = await engine.toggle_slot_presenter_visibility("s-1")
        assert engine.snapshot().find_slot("s-1").show_presenter is False
        assert marker.kind is MutationKind.TOGGLE_PRESENTER

        store.release("updateSlot")
        assert await marker.wait() is MutationStatus.CONFIRMED
        assert store.slots[0]["show_presenter"] is False

    @pytest.mark.asyncio
    async def test_toggle_with_slot_object(self, engine, store):
        """Test passing a slot flips its show_presenter value."""
        snapshot = await engine.load_all()
        marker = await engine.toggle_slot_presenter_visibility(snapshot.find_slot("s-2"))
        await marker.wait()
        assert engine.snapshot().find_slot("s-2").show_presenter is True

    @pytest.mark.asyncio
    async def test_toggle_failure_reloads(self, engine, store):
        """Test a failed toggle reloads and discards the flip."""
        await engine.load_all()
        seen = []
        engine.on_loading(seen.append)
        store.fail("updateSlot")

        marker = await engine.toggle_slot_presenter_visibility("s-1")
        await marker.wait()

        assert engine.snapshot().find_slot("s-1").show_presenter is True
        assert marker.error.action == "updateSlot"
        assert marker.status is MutationStatus.SUPERSEDED
        assert seen == [True, False]

    @pytest.mark.asyncio
    async def test_delete_slot_waits_for_reload(self, engine, store):
        """Test the slot stays cached until the store confirms the delete."""
        await engine.load_all()
        store.hold("deleteSlot")

        task = asyncio.create_task(engine.delete_slot("s-2"))
        await settle()
        assert engine.snapshot().find_slot("s-2") is not None

        store.release("deleteSlot")
        snapshot = await task
        assert snapshot.find_slot("s-2") is None

    @pytest.mark.asyncio
    async def test_delete_slot_declined(self, store):
        """Test a declined slot delete issues no request."""
        engine = SyncEngine(store, "ev-1", confirm=lambda prompt: False)
        await engine.load_all()
        with pytest.raises(ConfirmationDeclined):
            await engine.delete_slot("s-1")
        assert store.count("deleteSlot") == 0

    @pytest.mark.asyncio
    async def test_delete_slot_failure(self, engine, store):
        """Test a rejected delete raises and keeps the slot."""
        await engine.load_all()
        store.fail("deleteSlot")
        with pytest.raises(FetchError):
            await engine.delete_slot("s-1")
        assert engine.snapshot().find_slot("s-1") is not None


class TestEventSettings:
    """Test saving event image settings."""

    @pytest.mark.asyncio
    async def test_save_updates_store_and_cache(self, engine, store):
        """Test image settings reach the store and the cached event."""
        await engine.load_all()
        event = await engine.save_event_settings(
            header_image_url="https://example.com/h.png",
            header_height="20rem",
        )

        assert event.header_height == "20rem"
        assert engine.snapshot().event.header_image_url == "https://example.com/h.png"
        assert engine.snapshot().event.event_name == "DevDays"
        assert store.events["ev-1"]["header_height"] == "20rem"

    @pytest.mark.asyncio
    async def test_save_failure(self, engine, store):
        """Test a rejected save raises and keeps the cached event."""
        await engine.load_all()
        store.fail("updateEvent")
        with pytest.raises(FetchError):
            await engine.save_event_settings(header_height="20rem")
        assert engine.snapshot().event.header_height is None
