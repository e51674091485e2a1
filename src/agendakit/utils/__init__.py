"""Utility modules for agendakit."""

from .formatting import (
    format_date,
    format_time,
    google_drive_direct_link,
    time_options,
)

__all__ = [
    "format_date",
    "format_time",
    "google_drive_direct_link",
    "time_options",
]
