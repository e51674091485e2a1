"""
Data models for the agenda store.

Defines Pydantic models for events, days, slots and the composite full
agenda returned to the public viewer. The store is a spreadsheet behind a
script endpoint, so values arrive loosely typed: identifiers may be
numbers, booleans may be strings, and empty cells come back as ``""`` or
``null``. The validators here normalize those shapes once, at the boundary.

All models are frozen. Code that needs a changed slot builds a new one with
``model_copy(update=...)`` and swaps it in.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def _coerce_id(value: Any) -> Any:
    """Render spreadsheet identifiers (often numeric) as strings."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _blank_to_empty(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class EventStatus(str, Enum):
    """Known event statuses. Other values are kept verbatim on the model."""

    ACTIVE = "active"


class Event(BaseModel):
    """
    Top-level container for an agenda.

    Example:
        >>> event = Event(event_id="ev-1", event_name="DevDays")
        >>> event.is_active
        True
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    event_id: str = Field(description="Identifier assigned by the store")
    event_name: str = Field(default="", description="Display name")
    status: str = Field(default=EventStatus.ACTIVE.value, description="active or other")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO)")
    header_image_url: str | None = Field(default=None)
    background_image_url: str | None = Field(default=None)
    footer_image_url: str | None = Field(default=None)
    header_height: str | None = Field(
        default=None,
        description="CSS height of the header band, e.g. '18rem'",
    )

    @field_validator("event_id", mode="before")
    @classmethod
    def _coerce_event_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("event_name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> Any:
        return _blank_to_empty(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        value = _blank_to_empty(value)
        return value or EventStatus.ACTIVE.value

    @field_validator(
        "header_image_url",
        "background_image_url",
        "footer_image_url",
        "header_height",
        "created_at",
        mode="before",
    )
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def is_active(self) -> bool:
        return self.status == EventStatus.ACTIVE.value


class Day(BaseModel):
    """A dated subdivision of an event."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    day_id: str
    event_id: str
    day_number: int = Field(default=0, ge=0)
    day_name: str = ""
    day_date: str = ""

    @field_validator("day_id", "event_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("day_name", "day_date", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _blank_to_empty(value)

    @field_validator("day_number", mode="before")
    @classmethod
    def _blank_day_number(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0
        return value


class Slot(BaseModel):
    """
    A single timed agenda item within a day.

    ``unconfirmed`` marks a slot inserted locally that the store has not
    acknowledged yet. It is client-only state and never serialized.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    slot_id: str
    day_id: str
    start_time: str = ""
    end_time: str = ""
    slot_title: str = ""
    presenter_name: str = ""
    show_presenter: bool = True
    sort_order: int = 999
    unconfirmed: bool = Field(default=False, exclude=True)

    @field_validator("slot_id", "day_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("start_time", "end_time", "slot_title", "presenter_name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _blank_to_empty(value)

    @field_validator("show_presenter", mode="before")
    @classmethod
    def _coerce_show_presenter(cls, value: Any) -> Any:
        # Blank cells predate the column; they mean "show".
        if value is None or value == "":
            return True
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        return value

    @field_validator("sort_order", mode="before")
    @classmethod
    def _blank_sort_order(cls, value: Any) -> Any:
        if value is None or value == "":
            return 999
        return value


class AgendaDay(Day):
    """A day carrying its slots, as returned by the full-agenda read."""

    slots: tuple[Slot, ...] = ()

    @field_validator("slots", mode="before")
    @classmethod
    def _null_slots(cls, value: Any) -> Any:
        return () if value is None else value


class FullAgenda(BaseModel):
    """Composite read used by the public viewer: event, days and their slots."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    event: Event
    days: tuple[AgendaDay, ...] = ()

    @field_validator("days", mode="before")
    @classmethod
    def _null_days(cls, value: Any) -> Any:
        return () if value is None else value

    def day(self, index: int) -> AgendaDay | None:
        """Return the day at ``index`` or None when out of range."""
        if 0 <= index < len(self.days):
            return self.days[index]
        return None
