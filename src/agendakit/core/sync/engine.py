"""
Sync engine for one event's days and slots.

The engine owns the client-side cache (an AgendaState), applies optimistic
slot mutations, issues the matching store calls, and reconciles the cache
with the store by whole-collection reload. There is no diffing: every
reconciliation fetches the event's days and all of their slots and replaces
the cache in one step.

Reconciliation contract for optimistic mutations (add_slot, update_slot,
toggle_slot_presenter_visibility):

1. The change is applied to the cache and a PendingMutation marker is
   returned before the store call is made.
2. On success, a silent reload replaces the cache and the marker becomes
   ``confirmed``.
3. On failure, the error is logged and reported to ``on_error`` listeners,
   the marker becomes ``failed`` and the change stays in the cache. Toggling
   presenter visibility is the exception: its failure triggers a reload that
   discards the flip.
4. A standing change is only ever cleared by a later successful reload or
   by ``rollback(marker)``.

Reloads are not deduplicated or cancelled. When two overlap, each commits
when it finishes and the last one to finish wins.

Example:
    >>> engine = SyncEngine(client, "ev-1", confirm=ask_user)
    >>> await engine.load_all()
    >>> pending = await engine.add_slot(day_id, "09:00", "10:00", "Keynote")
    >>> render(pending.snapshot)      # placeholder visible immediately
    >>> await pending.wait()          # store call + reload finished
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from typing import Any

from agendakit.core.store.client import AgendaStoreClient
from agendakit.core.store.exceptions import ConfirmationDeclined, FetchError, ValidationError
from agendakit.core.store.models import Day, Event, Slot
from agendakit.core.sync.models import (
    AgendaSnapshot,
    MutationKind,
    MutationStatus,
    PendingMutation,
)
from agendakit.core.sync.state import AgendaState

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[AgendaSnapshot], None]
ErrorListener = Callable[[FetchError], None]
LoadingListener = Callable[[bool], None]
Confirm = Callable[[str], bool]

SLOT_FIELDS = frozenset(
    {"start_time", "end_time", "slot_title", "presenter_name", "show_presenter"}
)
REQUIRED_SLOT_FIELDS = ("start_time", "end_time", "slot_title")
PLACEHOLDER_PREFIX = "temp-"


def _require(field: str, value: Any) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, f"{field} is required")


class SyncEngine:
    """
    Optimistic client-side cache for one event, kept in line with the store.

    Attributes:
        event_id: Event whose days and slots are cached
    """

    def __init__(
        self,
        client: AgendaStoreClient,
        event_id: str,
        *,
        event: Event | None = None,
        confirm: Confirm | None = None,
    ) -> None:
        """
        Initialize the sync engine.

        Args:
            client: Store client used for every remote call
            event_id: Event to manage
            event: Event details already known to the caller, if any
            confirm: Callback asked before destructive actions. Receives a
                prompt and returns True to proceed. None means no prompt.
        """
        self._client = client
        self.event_id = event_id
        self._confirm = confirm
        self._state = AgendaState()
        self._state.event = event
        self._loading = False
        self._listeners: list[SnapshotListener] = []
        self._error_listeners: list[ErrorListener] = []
        self._loading_listeners: list[LoadingListener] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._placeholder_seq = itertools.count(1)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        """True while a non-silent reload is in flight."""
        return self._loading

    @property
    def pending(self) -> tuple[PendingMutation, ...]:
        """Optimistic mutations whose change is still standing in the cache."""
        return tuple(self._state.pending)

    def snapshot(self) -> AgendaSnapshot:
        return self._state.snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a callback invoked with every new snapshot.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def on_error(self, listener: ErrorListener) -> None:
        """Register a callback for FetchErrors raised by background work."""
        self._error_listeners.append(listener)

    def on_loading(self, listener: LoadingListener) -> None:
        self._loading_listeners.append(listener)

    def _notify(self) -> AgendaSnapshot:
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def _report(self, error: FetchError) -> None:
        for listener in list(self._error_listeners):
            listener(error)

    def _set_loading(self, loading: bool) -> None:
        self._loading = loading
        for listener in list(self._loading_listeners):
            listener(loading)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_all(
        self,
        *,
        silent: bool = False,
        confirming: PendingMutation | None = None,
    ) -> AgendaSnapshot:
        """
        Fetch the event, its days and every day's slots, then replace the cache.

        Slot lists are fetched with one concurrent request per day and joined
        fail-fast: the first failure cancels the remaining requests and the
        cache is left untouched.

        Args:
            silent: Do not toggle the loading signal
            confirming: Marker whose successful store call triggered this reload

        Returns:
            The snapshot committed by this reload

        Raises:
            FetchError: If the event is unknown or any request fails
        """
        if not silent:
            self._set_loading(True)
        try:
            event = self._state.event
            if event is None or not event.event_name:
                event = await self._client.get_event(self.event_id)
            days = await self._client.get_event_days(self.event_id)
            slot_lists = await self._fetch_slots(days)
        except FetchError as e:
            logger.error("Error loading event data for %s: %s", self.event_id, e)
            raise
        finally:
            if not silent:
                self._set_loading(False)

        self._commit(event, days, dict(zip((d.day_id for d in days), slot_lists)), confirming)
        logger.debug(
            "Reloaded event %s: %d days, %d slots",
            self.event_id,
            len(days),
            sum(len(slots) for slots in slot_lists),
        )
        return self._notify()

    async def _fetch_slots(self, days: Sequence[Day]) -> list[list[Slot]]:
        tasks = [asyncio.ensure_future(self._client.get_agenda_slots(d.day_id)) for d in days]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    def _commit(
        self,
        event: Event,
        days: list[Day],
        slots_by_day: dict[str, list[Slot]],
        confirming: PendingMutation | None,
    ) -> None:
        self._state.replace(event, days, slots_by_day)
        for marker in self._state.pending:
            if marker is not confirming and not marker.resolved:
                marker.status = MutationStatus.SUPERSEDED
        if confirming is not None and confirming.status is not MutationStatus.ROLLED_BACK:
            confirming.status = MutationStatus.CONFIRMED
        self._state.pending.clear()

    async def _reload_quietly(self, *, silent: bool) -> None:
        """Reload after a successful write. Failures are reported, not raised."""
        try:
            await self.load_all(silent=silent)
        except FetchError as e:
            self._report(e)

    # ------------------------------------------------------------------
    # Days
    # ------------------------------------------------------------------

    async def add_day(self, day_name: str, day_date: str) -> Day:
        """
        Create a day at the end of the event and reload silently.

        Raises:
            ValidationError: If the name or date is empty
            FetchError: If the store rejects the creation
        """
        _require("day_name", day_name)
        _require("day_date", day_date)

        day_number = self._state.day_count + 1
        known = self._state.day_ids()
        try:
            response = await self._client.create_day(
                event_id=self.event_id,
                day_number=day_number,
                day_name=day_name,
                day_date=day_date,
            )
        except FetchError as e:
            logger.error("Error adding day: %s", e)
            raise

        await self._reload_quietly(silent=True)
        return self._created_day(response, known, day_number, day_name, day_date)

    def _created_day(
        self,
        response: dict[str, Any],
        known: set[str],
        day_number: int,
        day_name: str,
        day_date: str,
    ) -> Day:
        day_id = response.get("day_id")
        if day_id is not None:
            found = self._state.find_day(str(day_id))
            if found is not None:
                return found
        new_ids = self._state.day_ids() - known
        if len(new_ids) == 1:
            day = self._state.find_day(new_ids.pop())
            if day is not None:
                return day
        return Day(
            day_id=str(day_id or ""),
            event_id=self.event_id,
            day_number=day_number,
            day_name=day_name,
            day_date=day_date,
        )

    async def update_day(self, day_id: str, day_name: str, day_date: str) -> AgendaSnapshot:
        """
        Rename or re-date a day, then reload.

        Raises:
            ValidationError: If the name or date is empty
            FetchError: If the store rejects the update
        """
        _require("day_name", day_name)
        _require("day_date", day_date)
        try:
            await self._client.update_day(day_id, {"day_name": day_name, "day_date": day_date})
        except FetchError as e:
            logger.error("Error updating day: %s", e)
            raise
        await self._reload_quietly(silent=False)
        return self.snapshot()

    async def delete_day(self, day_id: str) -> AgendaSnapshot:
        """
        Delete a day (the store cascades to its slots), then reload.

        Raises:
            ConfirmationDeclined: If the confirmation callback says no
            FetchError: If the store rejects the deletion
        """
        self._ask("deleteDay", day_id, "Delete this day and all of its slots?")
        try:
            await self._client.delete_day(day_id)
        except FetchError as e:
            logger.error("Error deleting day: %s", e)
            raise
        await self._reload_quietly(silent=False)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    async def add_slot(
        self,
        day_id: str,
        start_time: str,
        end_time: str,
        slot_title: str,
        presenter_name: str = "",
    ) -> PendingMutation:
        """
        Insert a placeholder slot and create it in the background.

        Returns as soon as the placeholder is in the cache. The returned
        marker's snapshot already contains it, in start_time order.

        Raises:
            ValidationError: If start, end or title is empty, or the day is unknown
        """
        _require("start_time", start_time)
        _require("end_time", end_time)
        _require("slot_title", slot_title)
        if not self._state.has_day(day_id):
            raise ValidationError("day_id", f"Unknown day: {day_id}")

        sort_order = self._state.slot_count(day_id) + 1
        placeholder = Slot(
            slot_id=self._placeholder_id(),
            day_id=day_id,
            start_time=start_time,
            end_time=end_time,
            slot_title=slot_title,
            presenter_name=presenter_name or "",
            show_presenter=True,
            sort_order=sort_order,
            unconfirmed=True,
        )
        self._state.insert_slot(placeholder)
        marker = self._track(MutationKind.CREATE_SLOT, placeholder, None)
        marker.attach(self._spawn(self._push_create(marker)))
        return marker

    def _placeholder_id(self) -> str:
        return f"{PLACEHOLDER_PREFIX}{int(time.time() * 1000)}-{next(self._placeholder_seq)}"

    async def _push_create(self, marker: PendingMutation) -> None:
        slot = marker.slot
        try:
            await self._client.create_slot(
                day_id=slot.day_id,
                start_time=slot.start_time,
                end_time=slot.end_time,
                slot_title=slot.slot_title,
                presenter_name=slot.presenter_name,
                sort_order=slot.sort_order,
            )
        except FetchError as e:
            self._fail(marker, e, "Error saving slot")
            return
        await self._confirm_by_reload(marker)

    async def update_slot(self, slot_id: str, fields: dict[str, Any]) -> PendingMutation:
        """
        Patch a cached slot and push the update in the background.

        Args:
            slot_id: Slot to update
            fields: Any subset of start_time, end_time, slot_title,
                presenter_name, show_presenter

        Raises:
            ValidationError: For unknown fields, empty required fields,
                unknown slots, or slots not yet saved
        """
        if not fields:
            raise ValidationError("fields", "No fields to update")
        unknown = set(fields) - SLOT_FIELDS
        if unknown:
            raise ValidationError("fields", f"Unknown slot fields: {', '.join(sorted(unknown))}")
        for key in REQUIRED_SLOT_FIELDS:
            if key in fields:
                _require(key, fields[key])

        cached = self._cached_saved_slot(slot_id)
        updates = dict(fields)
        previous, patched = self._state.patch_slot(cached.slot_id, updates)
        marker = self._track(MutationKind.UPDATE_SLOT, patched, previous)
        marker.attach(self._spawn(self._push_update(marker, updates)))
        return marker

    async def _push_update(self, marker: PendingMutation, updates: dict[str, Any]) -> None:
        try:
            await self._client.update_slot(marker.slot_id, updates)
        except FetchError as e:
            self._fail(marker, e, "Error saving slot")
            return
        await self._confirm_by_reload(marker)

    async def delete_slot(self, slot_id: str) -> AgendaSnapshot:
        """
        Delete a slot, then reload. The slot stays cached until the reload lands.

        Raises:
            ConfirmationDeclined: If the confirmation callback says no
            FetchError: If the store rejects the deletion
        """
        self._ask("deleteSlot", slot_id, "Delete this slot?")
        try:
            await self._client.delete_slot(slot_id)
        except FetchError as e:
            logger.error("Error deleting slot: %s", e)
            raise
        await self._reload_quietly(silent=False)
        return self.snapshot()

    async def toggle_slot_presenter_visibility(self, slot: Slot | str) -> PendingMutation:
        """
        Flip show_presenter on a slot optimistically.

        A failed store call triggers a full reload that discards the flip.

        Raises:
            ValidationError: For unknown or unsaved slots
        """
        slot_id = slot.slot_id if isinstance(slot, Slot) else slot
        cached = self._cached_saved_slot(slot_id)
        current = slot.show_presenter if isinstance(slot, Slot) else cached.show_presenter
        updates = {"show_presenter": not current}

        previous, patched = self._state.patch_slot(slot_id, updates)
        marker = self._track(MutationKind.TOGGLE_PRESENTER, patched, previous)
        marker.attach(self._spawn(self._push_toggle(marker, updates)))
        return marker

    async def _push_toggle(self, marker: PendingMutation, updates: dict[str, Any]) -> None:
        try:
            await self._client.update_slot(marker.slot_id, updates)
        except FetchError as e:
            self._fail(marker, e, "Error toggling presenter")
            await self._reload_quietly(silent=False)
            return
        await self._confirm_by_reload(marker)

    def _cached_saved_slot(self, slot_id: str) -> Slot:
        cached = self._state.find_slot(slot_id)
        if cached is None:
            raise ValidationError("slot_id", f"Unknown slot: {slot_id}")
        if cached.unconfirmed:
            raise ValidationError("slot_id", "Slot has not been saved yet")
        return cached

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def _track(self, kind: MutationKind, slot: Slot, previous: Slot | None) -> PendingMutation:
        marker = PendingMutation(kind, slot, previous, self._state.snapshot())
        self._state.pending.append(marker)
        self._notify()
        return marker

    def _fail(self, marker: PendingMutation, error: FetchError, what: str) -> None:
        logger.error("%s (%s): %s", what, marker.slot_id, error)
        marker.error = error
        if not marker.resolved:
            marker.status = MutationStatus.FAILED
        self._report(error)

    async def _confirm_by_reload(self, marker: PendingMutation) -> None:
        try:
            await self.load_all(silent=True, confirming=marker)
        except FetchError as e:
            if not marker.resolved:
                marker.status = MutationStatus.FAILED
                marker.error = e
            self._report(e)

    def rollback(self, marker: PendingMutation) -> bool:
        """
        Undo a standing optimistic change.

        Removes a placeholder slot, or restores the slot as it was before a
        patch. Markers already replaced by a reload are left alone.

        Returns:
            True if the cache changed
        """
        if marker.resolved or marker not in self._state.pending:
            return False
        if marker.kind is MutationKind.CREATE_SLOT:
            self._state.remove_slot(marker.slot_id)
        elif marker.previous is not None:
            self._state.restore_slot(marker.previous)
        marker.status = MutationStatus.ROLLED_BACK
        self._state.pending.remove(marker)
        logger.debug("Rolled back %r", marker)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Event settings
    # ------------------------------------------------------------------

    async def save_event_settings(
        self,
        header_image_url: str = "",
        header_height: str = "",
        background_image_url: str = "",
        footer_image_url: str = "",
    ) -> Event:
        """
        Save the event's header, background and footer image settings.

        Raises:
            FetchError: If the store rejects the update
        """
        updates = {
            "header_image_url": header_image_url,
            "header_height": header_height,
            "background_image_url": background_image_url,
            "footer_image_url": footer_image_url,
        }
        try:
            await self._client.update_event(self.event_id, updates)
        except FetchError as e:
            logger.error("Error saving images: %s", e)
            raise

        base = self._state.event or Event(event_id=self.event_id)
        event = Event.model_validate({**base.model_dump(), **updates})
        self._state.event = event
        self._notify()
        return event

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def _ask(self, action: str, target_id: str, prompt: str) -> None:
        if self._confirm is not None and not self._confirm(prompt):
            logger.info("%s on %s declined", action, target_id)
            raise ConfirmationDeclined(action, target_id)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every background store call and reload to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
