"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityResult, AvailabilityService
from .busy_time_aggregator import BusyTimeAggregator, CalendarEventSource

__all__ = [
    "AvailabilityResult",
    "AvailabilityService",
    "BusyTimeAggregator",
    "CalendarEventSource",
]
