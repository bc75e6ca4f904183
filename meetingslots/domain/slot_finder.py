"""
Search for open meeting slots.

Pure domain logic: no API calls, no I/O. The busy set is expected to be
already merged (see ``IntervalMerger``).
"""

from datetime import timedelta
from typing import List, Optional, Sequence

from pendulum import DateTime

from .models import SlotRequest, TimeInterval, WorkingHours

WEEKEND_DAYS = (5, 6)  # Saturday, Sunday
SLOT_STEP_MINUTES = 30


class SlotFinder:
    """
    Walks a date range day by day and proposes slots of a fixed duration.

    Algorithm per weekday:
    1. Take the working-hours window, clamped to the requested range
    2. Start a cursor at the window start
    3. If [cursor, cursor + duration] overlaps a busy interval, jump the
       cursor to that interval's end and try again
    4. Otherwise accept the slot and move the cursor forward by a fixed step
       (30 minutes, regardless of duration)
    5. Stop at the end of the window, or once max_results slots are found

    Because the step is independent of the duration, consecutive slots may
    overlap each other (e.g. 11:00-12:00 followed by 11:30-12:30).
    """

    def __init__(self, step_minutes: int = SLOT_STEP_MINUTES):
        self.step = timedelta(minutes=step_minutes)

    def find(self, request: SlotRequest, busy_intervals: Sequence[TimeInterval]) -> List[TimeInterval]:
        """
        Find available slots for a request.

        Args:
            request: Validated search parameters
            busy_intervals: Merged busy intervals

        Returns:
            Chronologically ordered slots, at most request.max_results
        """
        slots: List[TimeInterval] = []
        current_day = request.range_start

        while current_day < request.range_end and len(slots) < request.max_results:
            if current_day.weekday() not in WEEKEND_DAYS:
                day_start, day_end = self._clamped_window(request, current_day)
                self._scan_day(request, day_start, day_end, busy_intervals, slots)

            current_day = current_day.add(days=1)

        return slots

    def _clamped_window(self, request: SlotRequest, day: DateTime):
        day_start, day_end = request.working_hours.bounds_for(day)

        if day_start < request.range_start:
            day_start = request.range_start
        if day_end > request.range_end:
            day_end = request.range_end

        return day_start, day_end

    def _scan_day(
        self,
        request: SlotRequest,
        day_start: DateTime,
        day_end: DateTime,
        busy_intervals: Sequence[TimeInterval],
        slots: List[TimeInterval],
    ) -> None:
        """Append the day's accepted slots to ``slots`` in place."""
        duration = request.duration
        cursor = day_start

        while cursor + duration <= day_end:
            slot_end = cursor + duration
            conflict = self._first_conflict(cursor, slot_end, busy_intervals)

            if conflict is not None:
                cursor = conflict.end
                continue

            slots.append(TimeInterval(start=cursor, end=slot_end))
            if len(slots) >= request.max_results:
                return

            cursor = cursor + self.step

    @staticmethod
    def _first_conflict(
        start: DateTime,
        end: DateTime,
        busy_intervals: Sequence[TimeInterval],
    ) -> Optional[TimeInterval]:
        for busy in busy_intervals:
            if start < busy.end and end > busy.start:
                return busy
        return None


def find_available_slots(
    range_start: DateTime,
    range_end: DateTime,
    merged_intervals: Sequence[TimeInterval],
    duration_minutes: int,
    working_hours: Optional[WorkingHours] = None,
    max_results: Optional[int] = None,
) -> List[TimeInterval]:
    """
    Validate the search parameters and run a slot search.

    Raises:
        InputError: If the duration is not positive or the range is inverted
    """
    request = SlotRequest(
        range_start=range_start,
        range_end=range_end,
        duration_minutes=duration_minutes,
        working_hours=working_hours or WorkingHours(),
        max_results=max_results,
    )
    return SlotFinder().find(request, merged_intervals)
