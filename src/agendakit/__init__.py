"""
agendakit - Event agenda management

Create events, add days and time slots, and publish a read-only public
agenda, all backed by a spreadsheet script endpoint.
"""

__version__ = "0.3.0"

# Re-export core models for convenience
from agendakit.core.config.models import AgendaConfig
from agendakit.core.store.models import Day, Event, FullAgenda, Slot

__all__ = ["AgendaConfig", "Day", "Event", "FullAgenda", "Slot", "__version__"]
