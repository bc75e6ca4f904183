"""
Domain models for busy intervals, working hours and slot searches.
"""

import logging
from dataclasses import dataclass, field
from datetime import time, timedelta
from typing import List, Optional, Tuple

from pendulum import DateTime

from .exceptions import InputError

logger = logging.getLogger(__name__)

PRIMARY_CALENDAR = "primary"
DEFAULT_MAX_RESULTS = 5
DEFAULT_WORK_START = time(9, 0)
DEFAULT_WORK_END = time(17, 0)


@dataclass(frozen=True)
class TimeInterval:
    """
    An immutable time interval with half-open overlap semantics.

    Invariant: start must not be after end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start > self.end:
            raise InputError(f"Start time {self.start} must not be after end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check for a nonzero overlap; touching endpoints do not count."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class CalendarEvent:
    """
    A raw event as delivered by a calendar source.

    All-day events carry no start/end instants.
    """
    start: Optional[DateTime]
    end: Optional[DateTime]
    summary: str = ""
    organizer: str = ""
    location: str = ""

    @property
    def has_explicit_times(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass(frozen=True)
class BusyRecord:
    """One qualifying event, with the metadata shown to users."""
    interval: TimeInterval
    summary: str
    organizer: str
    calendar_id: str

    @property
    def is_own_calendar(self) -> bool:
        return self.calendar_id == PRIMARY_CALENDAR

    def calendar_label(self) -> str:
        """Human-facing name of the calendar the event came from."""
        return "Your calendar" if self.is_own_calendar else self.calendar_id


def _parse_clock(value: Optional[str], default: time, label: str) -> time:
    if not value:
        return default

    parts = value.strip().split(":")
    if len(parts) != 2:
        logger.warning("Unparsable %s '%s', using %s", label, value, default.strftime("%H:%M"))
        return default

    try:
        return time(hour=int(parts[0]), minute=int(parts[1]))
    except ValueError:
        logger.warning("Unparsable %s '%s', using %s", label, value, default.strftime("%H:%M"))
        return default


@dataclass(frozen=True)
class WorkingHours:
    """
    Daily window eligible for scheduling. Defaults to 09:00-17:00.
    """
    start_hour: int = DEFAULT_WORK_START.hour
    start_minute: int = DEFAULT_WORK_START.minute
    end_hour: int = DEFAULT_WORK_END.hour
    end_minute: int = DEFAULT_WORK_END.minute

    def __post_init__(self):
        for label, hour, minute in (
            ("start", self.start_hour, self.start_minute),
            ("end", self.end_hour, self.end_minute),
        ):
            if not (0 <= hour <= 23 and 0 <= minute <= 59):
                raise InputError(f"Invalid working hours {label} {hour:02d}:{minute:02d}")

    @classmethod
    def parse(cls, start: Optional[str] = None, end: Optional[str] = None) -> "WorkingHours":
        """
        Build working hours from "HH:MM" strings.

        Missing or unparsable bounds fall back to 09:00 and 17:00
        respectively instead of failing.
        """
        start_time = _parse_clock(start, DEFAULT_WORK_START, "working hours start")
        end_time = _parse_clock(end, DEFAULT_WORK_END, "working hours end")
        return cls(
            start_hour=start_time.hour,
            start_minute=start_time.minute,
            end_hour=end_time.hour,
            end_minute=end_time.minute,
        )

    def bounds_for(self, day: DateTime) -> Tuple[DateTime, DateTime]:
        """Return the (start, end) of the working window on the given day."""
        start = day.set(hour=self.start_hour, minute=self.start_minute, second=0, microsecond=0)
        end = day.set(hour=self.end_hour, minute=self.end_minute, second=0, microsecond=0)
        return start, end

    def __str__(self) -> str:
        return (
            f"{self.start_hour:02d}:{self.start_minute:02d}"
            f"-{self.end_hour:02d}:{self.end_minute:02d}"
        )


@dataclass
class SlotRequest:
    """
    Parameters for one slot search.

    Raises InputError for a non-positive duration or an inverted range.
    """
    range_start: DateTime
    range_end: DateTime
    duration_minutes: int
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    max_results: Optional[int] = None

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InputError(f"Duration must be positive, got {self.duration_minutes} minutes")
        if self.range_end < self.range_start:
            raise InputError(
                f"Range end {self.range_end} must not be before range start {self.range_start}"
            )
        if self.max_results is None or self.max_results <= 0:
            self.max_results = DEFAULT_MAX_RESULTS

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)


@dataclass
class BusyCollection:
    """Everything gathered from the calendars for one time window."""
    intervals: List[TimeInterval] = field(default_factory=list)
    details: List[BusyRecord] = field(default_factory=list)
    calendars_checked: List[str] = field(default_factory=list)
    failed_calendars: List[str] = field(default_factory=list)
