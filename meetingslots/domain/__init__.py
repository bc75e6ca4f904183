"""
Domain layer - Pure availability logic without external dependencies.
"""

from .exceptions import CalendarFetchError, ConfigurationError, InputError, MeetingSlotsError
from .interval_merger import IntervalMerger, merge_intervals
from .models import (
    BusyCollection,
    BusyRecord,
    CalendarEvent,
    SlotRequest,
    TimeInterval,
    WorkingHours,
)
from .slot_finder import SlotFinder, find_available_slots

__all__ = [
    "BusyCollection",
    "BusyRecord",
    "CalendarEvent",
    "CalendarFetchError",
    "ConfigurationError",
    "InputError",
    "IntervalMerger",
    "MeetingSlotsError",
    "SlotFinder",
    "SlotRequest",
    "TimeInterval",
    "WorkingHours",
    "find_available_slots",
    "merge_intervals",
]
