"""
Collects busy time across several calendars.

The calendar source is injected so the aggregator can be fed by the Graph
adapter, the mock adapter or a test stub alike.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence, Tuple

from pendulum import DateTime

from ..domain.exceptions import CalendarFetchError, InputError
from ..domain.interval_merger import IntervalMerger
from ..domain.models import BusyCollection, BusyRecord, CalendarEvent, TimeInterval

logger = logging.getLogger(__name__)


class CalendarEventSource(Protocol):
    """Protocol describing the calendar access needed by the aggregator."""

    def fetch_events(
        self,
        calendar_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CalendarEvent]:
        """Return events of one calendar, raising CalendarFetchError on failure."""


class BusyTimeAggregator:
    """
    Turns raw events from many calendars into busy intervals and details.

    A calendar that cannot be read is skipped; the rest still count.
    """

    def __init__(
        self,
        event_source: CalendarEventSource,
        merger: Optional[IntervalMerger] = None,
    ) -> None:
        self._event_source = event_source
        self._merger = merger or IntervalMerger()

    def collect(
        self,
        calendar_ids: Sequence[str],
        start: DateTime,
        end: DateTime,
        room_filter: Optional[str] = None,
    ) -> BusyCollection:
        """
        Fetch and filter events for every calendar in the window.

        Args:
            calendar_ids: Calendars to read, e.g. ["primary", "max@example.com"]
            start: Start of the window
            end: End of the window
            room_filter: Optional case-insensitive substring of the event location

        Returns:
            BusyCollection with unmerged intervals and details sorted by start
        """
        if end < start:
            raise InputError(f"Window end {end} must not be before window start {start}")

        room = room_filter.lower() if room_filter else ""
        collection = BusyCollection(calendars_checked=list(calendar_ids))

        for calendar_id in calendar_ids:
            try:
                events = self._event_source.fetch_events(calendar_id, start, end)
            except CalendarFetchError as exc:
                logger.warning("Skipping calendar %s: %s", calendar_id, exc)
                collection.failed_calendars.append(calendar_id)
                continue

            for event in events:
                record = self._to_record(event, calendar_id, room)
                if record is None:
                    continue
                collection.intervals.append(record.interval)
                collection.details.append(record)

        collection.details.sort(key=lambda record: record.interval.start)
        return collection

    def compute_busy_times(
        self,
        calendar_ids: Sequence[str],
        start: DateTime,
        end: DateTime,
        room_filter: Optional[str] = None,
    ) -> Tuple[List[TimeInterval], List[BusyRecord]]:
        """Return (merged busy intervals, busy detail records)."""
        collection = self.collect(calendar_ids, start, end, room_filter)
        return self._merger.merge(collection.intervals), collection.details

    @staticmethod
    def _to_record(event: CalendarEvent, calendar_id: str, room: str) -> Optional[BusyRecord]:
        # Date-only (all-day) events do not block specific times
        if not event.has_explicit_times:
            return None

        if room and room not in (event.location or "").lower():
            return None

        if event.end < event.start:
            logger.warning(
                "Ignoring event '%s' in %s: ends before it starts", event.summary, calendar_id
            )
            return None

        return BusyRecord(
            interval=TimeInterval(start=event.start, end=event.end),
            summary=event.summary,
            organizer=event.organizer,
            calendar_id=calendar_id,
        )
