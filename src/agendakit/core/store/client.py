"""
HTTP client for the spreadsheet-backed agenda store.

The store is a single script endpoint dispatched on an ``action`` value:

- Reads are GET requests with ``action`` plus action-specific query
  parameters (``eventId``, ``dayId``).
- Writes are POST requests whose JSON body carries ``action`` and the
  payload. The body is sent as ``text/plain`` so the script host accepts it
  without a CORS preflight.

Every failure surfaces as a single FetchError. There is no retry and no
backoff here: callers decide whether to reload.

Example:
    >>> async with AgendaStoreClient(url) as client:
    ...     days = await client.get_event_days("ev-1")
    ...     await client.create_slot(
    ...         day_id=days[0].day_id,
    ...         start_time="09:00",
    ...         end_time="10:00",
    ...         slot_title="Keynote",
    ...     )
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError as ModelValidationError

from agendakit.core.store.exceptions import FetchError
from agendakit.core.store.models import Day, Event, FullAgenda, Slot

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class AgendaStoreClient:
    """
    Async client for the agenda store endpoint.

    Owns its ``httpx.AsyncClient`` unless one is injected (tests pass a
    client built on ``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the store client.

        Args:
            url: Script endpoint URL
            timeout: Per-request timeout in seconds
            client: Optional pre-built httpx client
        """
        self.url = url
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __aenter__(self) -> AgendaStoreClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _get(self, action: str, **params: str) -> Any:
        logger.debug("GET %s %s", action, params)
        try:
            response = await self._client.get(self.url, params={"action": action, **params})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("API GET error (%s): HTTP %s", action, e.response.status_code)
            raise FetchError(
                action,
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error("API GET error (%s): %s", action, e)
            raise FetchError(action, f"Network error: {e}") from e
        return self._decode(action, response)

    async def _post(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = {"action": action, **payload}
        logger.debug("POST %s", body)
        try:
            response = await self._client.post(
                self.url,
                content=json.dumps(body),
                headers={"Content-Type": "text/plain"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("API POST error (%s): HTTP %s", action, e.response.status_code)
            raise FetchError(
                action,
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error("API POST error (%s): %s", action, e)
            raise FetchError(action, f"Network error: {e}") from e

        data = self._decode(action, response)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise FetchError(action, "Unexpected response shape", body=data)
        return data

    @staticmethod
    def _decode(action: str, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(action, "Response body is not valid JSON") from e

        if isinstance(data, dict):
            if data.get("success") is False or data.get("error"):
                message = str(data.get("error") or data.get("message") or "Request rejected")
                raise FetchError(action, message, body=data)
        return data

    @staticmethod
    def _parse_list(action: str, data: Any, model: type[Any]) -> list[Any]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchError(action, "Expected a list in response", body=data)
        try:
            return [model.model_validate(item) for item in data]
        except ModelValidationError as e:
            raise FetchError(action, f"Malformed {model.__name__} in response") from e

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def get_events(self) -> list[Event]:
        """Return every event known to the store."""
        data = await self._get("getEvents")
        return self._parse_list("getEvents", data, Event)

    async def get_event(self, event_id: str) -> Event:
        """
        Return a single event.

        Raises:
            FetchError: If the call fails or the event id is unknown
        """
        data = await self._get("getEvent", eventId=event_id)
        if not data:
            raise FetchError("getEvent", "Event not found", event_id=event_id)
        try:
            return Event.model_validate(data)
        except ModelValidationError as e:
            raise FetchError("getEvent", "Malformed event in response", event_id=event_id) from e

    async def get_full_agenda(self, event_id: str) -> FullAgenda:
        """
        Return the event with all of its days and their slots.

        Raises:
            FetchError: If the call fails or the event id is unknown
        """
        data = await self._get("getFullAgenda", eventId=event_id)
        if not isinstance(data, dict) or not data.get("event"):
            raise FetchError("getFullAgenda", "Event not found", event_id=event_id)
        try:
            return FullAgenda.model_validate(data)
        except ModelValidationError as e:
            raise FetchError(
                "getFullAgenda", "Malformed agenda in response", event_id=event_id
            ) from e

    async def create_event(
        self,
        event_name: str,
        header_image_url: str | None = None,
        background_image_url: str | None = None,
        footer_image_url: str | None = None,
    ) -> dict[str, Any]:
        """Create an event. The response is expected to carry ``event_id``."""
        return await self._post(
            "createEvent",
            {
                "event_name": event_name,
                "header_image_url": header_image_url or "",
                "background_image_url": background_image_url or "",
                "footer_image_url": footer_image_url or "",
            },
        )

    async def update_event(self, event_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return await self._post("updateEvent", {"event_id": event_id, "updates": updates})

    async def delete_event(self, event_id: str) -> dict[str, Any]:
        return await self._post("deleteEvent", {"event_id": event_id})

    # ------------------------------------------------------------------
    # Days
    # ------------------------------------------------------------------

    async def get_event_days(self, event_id: str) -> list[Day]:
        data = await self._get("getEventDays", eventId=event_id)
        return self._parse_list("getEventDays", data, Day)

    async def create_day(
        self,
        event_id: str,
        day_number: int,
        day_name: str,
        day_date: str,
    ) -> dict[str, Any]:
        return await self._post(
            "createDay",
            {
                "event_id": event_id,
                "day_number": day_number,
                "day_name": day_name,
                "day_date": day_date,
            },
        )

    async def update_day(self, day_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return await self._post("updateDay", {"day_id": day_id, "updates": updates})

    async def delete_day(self, day_id: str) -> dict[str, Any]:
        """Delete a day. The store cascades the deletion to its slots."""
        return await self._post("deleteDay", {"day_id": day_id})

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    async def get_agenda_slots(self, day_id: str) -> list[Slot]:
        data = await self._get("getAgendaSlots", dayId=day_id)
        return self._parse_list("getAgendaSlots", data, Slot)

    async def create_slot(
        self,
        day_id: str,
        start_time: str,
        end_time: str,
        slot_title: str,
        presenter_name: str = "",
        sort_order: int = 999,
    ) -> dict[str, Any]:
        return await self._post(
            "createSlot",
            {
                "day_id": day_id,
                "start_time": start_time,
                "end_time": end_time,
                "slot_title": slot_title,
                "presenter_name": presenter_name or "",
                "sort_order": sort_order or 999,
            },
        )

    async def update_slot(self, slot_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return await self._post("updateSlot", {"slot_id": slot_id, "updates": updates})

    async def delete_slot(self, slot_id: str) -> dict[str, Any]:
        return await self._post("deleteSlot", {"slot_id": slot_id})


__all__ = ["AgendaStoreClient", "DEFAULT_TIMEOUT"]
