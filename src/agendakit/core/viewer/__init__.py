"""Public, read-only agenda viewer."""

from agendakit.core.viewer.reader import DEFAULT_POLL_INTERVAL, AgendaReader, ReaderState

__all__ = ["AgendaReader", "ReaderState", "DEFAULT_POLL_INTERVAL"]
