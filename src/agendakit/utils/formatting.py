"""
Display helpers for dates, times and image links.

Spreadsheet cells come back in several shapes: plain "HH:MM" strings typed
into the form, or full ISO timestamps when the sheet stored a time cell
(those are anchored to 1899-12-30). Both are handled here. Anything that
cannot be parsed is returned unchanged so the viewer still shows something.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time

_CLOCK = re.compile(r"^(?P<hours>\d{1,2}):(?P<minutes>\d{2})(?::\d{2})?$")

_DRIVE_ID_PATTERNS = (
    re.compile(r"/d/([-\w]{25,})"),
    re.compile(r"[?&]id=([-\w]{25,})"),
)
_DRIVE_HOSTS = ("drive.google.com", "docs.google.com")

DEFAULT_THUMBNAIL_WIDTH = 1500


def _parse_iso(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed


def _clock(hour: int, minute: int) -> str:
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def format_time(value: str | time | datetime | None) -> str:
    """
    Format a time of day as a 12-hour clock.

    Examples:
        >>> format_time("13:30")
        '1:30 PM'
        >>> format_time("00:00")
        '12:00 AM'
        >>> format_time("")
        ''
    """
    if not value:
        return ""
    if isinstance(value, (time, datetime)):
        return _clock(value.hour, value.minute)

    text = str(value).strip()
    match = _CLOCK.match(text)
    if match:
        return _clock(int(match.group("hours")), int(match.group("minutes")))

    parsed = _parse_iso(text)
    if parsed is not None:
        return _clock(parsed.hour, parsed.minute)
    return text


def format_date(value: str | date | None) -> str:
    """
    Format a calendar date as e.g. "Dec 25, 2025".

    Accepts plain ISO dates and full ISO timestamps.
    """
    if not value:
        return ""
    if isinstance(value, date):
        parsed: date = value
    else:
        text = str(value).strip()
        result = _parse_iso(text)
        if result is None:
            return text
        parsed = result
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def google_drive_direct_link(url: str | None, width: int = DEFAULT_THUMBNAIL_WIDTH) -> str:
    """
    Rewrite a Drive sharing link to the thumbnail endpoint.

    The thumbnail endpoint serves the image directly, without the virus-scan
    interstitial that ``uc?export=view`` shows for large files. Links that
    are not on Drive, or carry no recognizable file id, pass through.

    Examples:
        >>> google_drive_direct_link(
        ...     "https://drive.google.com/file/d/ABCDEFGHIJKLMNOPQRSTUVWXY/view"
        ... )
        'https://drive.google.com/thumbnail?id=ABCDEFGHIJKLMNOPQRSTUVWXY&sz=w1500'
        >>> google_drive_direct_link("https://example.com/banner.png")
        'https://example.com/banner.png'
    """
    if not url:
        return ""
    if not any(host in url for host in _DRIVE_HOSTS):
        return url

    for pattern in _DRIVE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return f"https://drive.google.com/thumbnail?id={match.group(1)}&sz=w{width}"
    return url


def time_options() -> list[str]:
    """The 48 half-hour choices offered when picking a slot's start or end."""
    return [f"{i // 2:02d}:{'00' if i % 2 == 0 else '30'}" for i in range(48)]
