"""
Application service for finding shared meeting slots.

The service coordinates the busy-time aggregation over a calendar source and
delegates merging and the slot search to the domain layer. This keeps the
CLI thin and lets tests swap the calendar dependency for a simple stub.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pendulum import DateTime

from ..domain.interval_merger import IntervalMerger
from ..domain.models import (
    PRIMARY_CALENDAR,
    BusyCollection,
    BusyRecord,
    SlotRequest,
    TimeInterval,
    WorkingHours,
)
from ..domain.slot_finder import SlotFinder
from .busy_time_aggregator import BusyTimeAggregator, CalendarEventSource


@dataclass
class AvailabilityResult:
    """Outcome of one slot search, ready for presentation."""
    request: SlotRequest
    slots: List[TimeInterval] = field(default_factory=list)
    busy_details: List[BusyRecord] = field(default_factory=list)
    merged_busy: List[TimeInterval] = field(default_factory=list)
    calendars_checked: List[str] = field(default_factory=list)
    failed_calendars: List[str] = field(default_factory=list)
    room_filter: Optional[str] = None


class AvailabilityService:
    """
    Orchestrates busy-time retrieval, merging and the slot search.
    """

    def __init__(
        self,
        event_source: CalendarEventSource,
        slot_finder: Optional[SlotFinder] = None,
        merger: Optional[IntervalMerger] = None,
    ) -> None:
        self._merger = merger or IntervalMerger()
        self._aggregator = BusyTimeAggregator(event_source, merger=self._merger)
        self._slot_finder = slot_finder or SlotFinder()

    def find_slots(
        self,
        *,
        guests: Sequence[str],
        start: DateTime,
        end: DateTime,
        duration_minutes: int,
        working_hours: Optional[WorkingHours] = None,
        max_results: Optional[int] = None,
        room: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Find slots where the caller's calendar and every guest calendar are free.

        Raises:
            InputError: If the duration is not positive or the range is inverted
        """
        # Validate before touching any calendar
        request = SlotRequest(
            range_start=start,
            range_end=end,
            duration_minutes=duration_minutes,
            working_hours=working_hours or WorkingHours(),
            max_results=max_results,
        )

        calendar_ids = self.calendars_for_guests(guests)
        collection = self._aggregator.collect(calendar_ids, start, end, room_filter=room)
        merged = self._merger.merge(collection.intervals)

        return AvailabilityResult(
            request=request,
            slots=self._slot_finder.find(request, merged),
            busy_details=collection.details,
            merged_busy=merged,
            calendars_checked=collection.calendars_checked,
            failed_calendars=collection.failed_calendars,
            room_filter=room or None,
        )

    def busy_times(
        self,
        *,
        users: Sequence[str],
        start: DateTime,
        end: DateTime,
    ) -> BusyCollection:
        """List busy periods of the given users, or of the caller if none are given."""
        calendar_ids = self._unique(users) or [PRIMARY_CALENDAR]
        return self._aggregator.collect(calendar_ids, start, end)

    @classmethod
    def calendars_for_guests(cls, guests: Sequence[str]) -> List[str]:
        """The caller's own calendar followed by the guests, without duplicates."""
        return cls._unique([PRIMARY_CALENDAR, *guests])

    @staticmethod
    def _unique(identifiers: Sequence[str]) -> List[str]:
        unique: List[str] = []
        for identifier in identifiers:
            identifier = identifier.strip()
            if identifier and identifier not in unique:
                unique.append(identifier)
        return unique
