"""
Read-only poller for the public agenda view.

The reader fetches the full agenda once when started and then re-fetches
it on a fixed interval until stopped. It talks to the store directly: it has
no local mutations, so there is nothing to reconcile.

State machine:
    loading --(first fetch ok)--> loaded
    loading --(first fetch fails)--> not_found (terminal, no polling)
    loaded --(poll fails)--> loaded (last snapshot kept, error logged)

Example:
    >>> async with AgendaReader(client, "ev-1", on_update=render) as reader:
    ...     reader.select_day(1)
    ...     await asyncio.sleep(120)
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import Enum

from agendakit.core.store.client import AgendaStoreClient
from agendakit.core.store.exceptions import FetchError, ValidationError
from agendakit.core.store.models import AgendaDay, FullAgenda

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


class ReaderState(str, Enum):
    """Display state of the public viewer."""

    LOADING = "loading"
    LOADED = "loaded"
    NOT_FOUND = "not_found"


class AgendaReader:
    """
    Poll the full agenda of one event and keep the latest snapshot.

    Attributes:
        event_id: Event being displayed
        interval: Seconds between background refreshes
        state: Current ReaderState
        agenda: Last successfully loaded FullAgenda, if any
        selected_day: Index of the day being displayed
        last_error: Most recent fetch failure, if any
    """

    def __init__(
        self,
        client: AgendaStoreClient,
        event_id: str,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        on_update: Callable[[AgendaReader], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._client = client
        self.event_id = event_id
        self.interval = interval
        self.on_update = on_update
        self.state = ReaderState.LOADING
        self.agenda: FullAgenda | None = None
        self.selected_day = 0
        self.last_error: FetchError | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the polling task is scheduled."""
        return self._task is not None and not self._task.done()

    @property
    def current_day(self) -> AgendaDay | None:
        if self.agenda is None:
            return None
        return self.agenda.day(self.selected_day)

    def select_day(self, index: int) -> AgendaDay:
        """
        Show another day. Pure client-side state.

        Raises:
            ValidationError: If nothing is loaded or the index is out of range
        """
        if self.agenda is None or self.agenda.day(index) is None:
            raise ValidationError("day_index", f"No day at index {index}")
        self.selected_day = index
        self._emit()
        return self.agenda.days[index]

    async def start(self) -> ReaderState:
        """
        Load the agenda and, if it exists, begin polling.

        Returns:
            The state after the initial fetch
        """
        await self.stop()
        self.state = ReaderState.LOADING
        self.agenda = None
        self.selected_day = 0

        try:
            agenda = await self._client.get_full_agenda(self.event_id)
        except FetchError as e:
            logger.error("Error loading agenda %s: %s", self.event_id, e)
            self.last_error = e
            self.state = ReaderState.NOT_FOUND
            self._emit()
            return self.state

        self._apply(agenda)
        self._task = asyncio.create_task(self._poll())
        return self.state

    async def stop(self) -> None:
        """Cancel the polling task. In-flight reads are simply abandoned."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Stopped polling agenda %s", self.event_id)

    async def refresh(self) -> bool:
        """
        Fetch the agenda once, keeping the previous snapshot on failure.

        Returns:
            True if a new snapshot was applied
        """
        try:
            agenda = await self._client.get_full_agenda(self.event_id)
        except FetchError as e:
            logger.warning("Error refreshing agenda %s: %s", self.event_id, e)
            self.last_error = e
            return False
        self._apply(agenda)
        return True

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.refresh()

    def _apply(self, agenda: FullAgenda) -> None:
        self.agenda = agenda
        self.state = ReaderState.LOADED
        logger.debug("Agenda %s loaded with %d days", self.event_id, len(agenda.days))
        self._emit()

    def _emit(self) -> None:
        if self.on_update is not None:
            self.on_update(self)

    async def __aenter__(self) -> AgendaReader:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
