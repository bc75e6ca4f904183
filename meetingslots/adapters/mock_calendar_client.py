"""
Mock calendar source for trying the tool without Microsoft Graph access.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarFetchError
from ..domain.models import CalendarEvent

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Serves calendar events from a JSON file.

    File format:
    {
        "unavailable": ["locked@example.com"],
        "events": [
            {
                "calendarId": "primary",
                "start": "2024-11-25T10:00:00",
                "end": "2024-11-25T11:00:00",
                "summary": "Standup",
                "organizer": "me@example.com",
                "location": "Atlas"
            }
        ]
    }

    Events without "start"/"end" are all-day events. Calendars listed under
    "unavailable" fail to load, like a mailbox the user has no access to.
    """

    def __init__(self, data_file: Optional[Path] = None, timezone: str = "Europe/Berlin"):
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.timezone = timezone
        self.calendar_events: List[Dict[str, Any]] = []
        self.unavailable: List[str] = []
        self._load_calendar_data()

    def _load_calendar_data(self) -> None:
        """Load mock calendar data from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock calendar data %s not found, serving no events", self.data_file)
            return

        with open(self.data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        self.calendar_events = data.get("events", [])
        self.unavailable = data.get("unavailable", [])

    def fetch_events(
        self,
        calendar_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CalendarEvent]:
        """Return the events of one calendar overlapping the window."""
        if calendar_id in self.unavailable:
            raise CalendarFetchError(calendar_id, "access denied (mock)")

        events: List[CalendarEvent] = []

        for raw in self.calendar_events:
            if raw.get("calendarId") != calendar_id:
                continue

            event = self._to_event(raw)
            if event is None:
                continue

            if event.has_explicit_times and not (event.start < end and event.end > start):
                continue

            events.append(event)

        return events

    def _to_event(self, raw: Dict[str, Any]) -> Optional[CalendarEvent]:
        summary = str(raw.get("summary") or "")
        try:
            event_start = pendulum.parse(raw["start"], tz=self.timezone) if raw.get("start") else None
            event_end = pendulum.parse(raw["end"], tz=self.timezone) if raw.get("end") else None
        except (TypeError, ValueError) as e:
            logger.warning("Skipping mock event '%s': %s", summary, e)
            return None

        return CalendarEvent(
            start=event_start,
            end=event_end,
            summary=summary,
            organizer=str(raw.get("organizer") or ""),
            location=str(raw.get("location") or ""),
        )

    def test_connection(self) -> Dict[str, Any]:
        """Mock connection test returning a fake user profile."""
        return {
            "displayName": "Mock User",
            "mail": "mock.user@example.com",
            "userPrincipalName": "mock.user@example.com",
        }
