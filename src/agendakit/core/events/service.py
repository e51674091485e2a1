"""
Event catalog service backing the dashboard.

Lists, creates and deletes events. Editing an event's days and slots is the
sync engine's job; this service only deals with whole events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from agendakit.core.store.client import AgendaStoreClient
from agendakit.core.store.exceptions import ConfirmationDeclined, FetchError, ValidationError
from agendakit.core.store.models import Event

logger = logging.getLogger(__name__)


class EventCatalog:
    """
    Dashboard operations over the event collection.

    Example:
        >>> catalog = EventCatalog(client, confirm=lambda prompt: True)
        >>> event_id = await catalog.create_event("DevDays 2026")
        >>> [event.event_name for event in await catalog.list_events()]
        ['DevDays 2026']
    """

    def __init__(
        self,
        client: AgendaStoreClient,
        *,
        confirm: Callable[[str], bool] | None = None,
    ) -> None:
        self._client = client
        self._confirm = confirm

    async def list_events(self) -> list[Event]:
        try:
            return await self._client.get_events()
        except FetchError as e:
            logger.error("Error loading events: %s", e)
            raise

    async def create_event(
        self,
        event_name: str,
        header_image_url: str = "",
        background_image_url: str = "",
        footer_image_url: str = "",
    ) -> str | None:
        """
        Create an event.

        Returns:
            The new event's id, when the store reports one

        Raises:
            ValidationError: If the name is empty
            FetchError: If the store rejects the creation
        """
        if not event_name or not event_name.strip():
            raise ValidationError("event_name", "event_name is required")
        try:
            response = await self._client.create_event(
                event_name=event_name.strip(),
                header_image_url=header_image_url,
                background_image_url=background_image_url,
                footer_image_url=footer_image_url,
            )
        except FetchError as e:
            logger.error("Error creating event: %s", e)
            raise

        event_id = response.get("event_id")
        if event_id is None or event_id == "":
            logger.warning("createEvent response carried no event_id")
            return None
        return str(event_id)

    async def delete_event(self, event_id: str) -> None:
        """
        Delete an event.

        Raises:
            ConfirmationDeclined: If the confirmation callback says no
            FetchError: If the store rejects the deletion
        """
        if self._confirm is not None and not self._confirm("Delete this event?"):
            raise ConfirmationDeclined("deleteEvent", event_id)
        try:
            await self._client.delete_event(event_id)
        except FetchError as e:
            logger.error("Error deleting event: %s", e)
            raise
