"""
Tests for the JSON-backed mock calendar source.
"""

import json

import pendulum
import pytest

from meetingslots.adapters.mock_calendar_client import MockCalendarClient
from meetingslots.domain.exceptions import CalendarFetchError
from meetingslots.domain.models import TimeInterval
from meetingslots.services.busy_time_aggregator import BusyTimeAggregator

TZ = "Europe/Berlin"
START = pendulum.parse("2024-11-25 00:00", tz=TZ)
END = pendulum.parse("2024-11-26 00:00", tz=TZ)


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        json.dumps({
            "unavailable": ["locked@example.com"],
            "events": [
                {"calendarId": "primary", "start": "2024-11-25T09:00:00", "end": "2024-11-25T10:00:00",
                 "summary": "Standup", "organizer": "me@example.com", "location": "Atlas"},
                {"calendarId": "primary", "start": "2024-11-27T09:00:00", "end": "2024-11-27T10:00:00",
                 "summary": "Later this week"},
                {"calendarId": "primary", "summary": "Holiday"},
                {"calendarId": "max@example.com", "start": "2024-11-25T11:00:00", "end": "2024-11-25T12:00:00",
                 "summary": "Max only"},
                {"calendarId": "primary", "start": "not a date", "end": "2024-11-25T12:00:00",
                 "summary": "Broken"},
            ],
        }),
        encoding="utf-8",
    )
    return path


class TestMockCalendarClient:
    """Tests for MockCalendarClient."""

    def test_returns_events_of_calendar_within_window(self, data_file):
        client = MockCalendarClient(data_file=data_file, timezone=TZ)

        events = client.fetch_events("primary", START, END)

        assert [event.summary for event in events] == ["Standup", "Holiday"]
        assert events[0].start == pendulum.parse("2024-11-25 09:00", tz=TZ)
        assert events[0].location == "Atlas"
        assert not events[1].has_explicit_times

    def test_unknown_calendar_has_no_events(self, data_file):
        client = MockCalendarClient(data_file=data_file, timezone=TZ)

        assert client.fetch_events("nobody@example.com", START, END) == []

    def test_unavailable_calendar_raises(self, data_file):
        client = MockCalendarClient(data_file=data_file, timezone=TZ)

        with pytest.raises(CalendarFetchError):
            client.fetch_events("locked@example.com", START, END)

    def test_missing_file_serves_nothing(self, tmp_path):
        client = MockCalendarClient(data_file=tmp_path / "missing.json")

        assert client.fetch_events("primary", START, END) == []

    def test_bundled_sample_data_loads(self):
        client = MockCalendarClient(timezone=TZ)

        events = client.fetch_events("max@example.com", START, END)

        assert [event.summary for event in events] == ["1:1 with Anna", "Customer call"]
        assert client.test_connection()["displayName"] == "Mock User"


class TestMalformedMockEvents:
    """Malformed events are dropped without affecting other events or calendars."""

    @pytest.fixture
    def messy_file(self, tmp_path):
        path = tmp_path / "messy.json"
        path.write_text(
            json.dumps({
                "events": [
                    {"calendarId": "primary", "start": 20241125, "end": "2024-11-25T10:00:00",
                     "summary": "Numeric start"},
                    {"calendarId": "primary", "start": "2024-11-25T13:00:00", "end": "2024-11-25T14:00:00",
                     "summary": "Lunch", "location": 42},
                    {"calendarId": "max@example.com", "start": ["2024-11-25T09:00:00"],
                     "end": "2024-11-25T10:00:00", "summary": "List start"},
                    {"calendarId": "max@example.com", "start": "2024-11-25T15:00:00",
                     "end": "2024-11-25T16:00:00", "summary": "Review"},
                ],
            }),
            encoding="utf-8",
        )
        return path

    def test_non_string_start_is_skipped(self, messy_file):
        client = MockCalendarClient(data_file=messy_file, timezone=TZ)

        events = client.fetch_events("primary", START, END)

        assert [event.summary for event in events] == ["Lunch"]
        assert events[0].location == "42"

    def test_aggregation_survives_malformed_events(self, messy_file):
        aggregator = BusyTimeAggregator(MockCalendarClient(data_file=messy_file, timezone=TZ))

        merged, details = aggregator.compute_busy_times(["primary", "max@example.com"], START, END)

        assert [record.summary for record in details] == ["Lunch", "Review"]
        assert merged == [
            TimeInterval(start=pendulum.parse("2024-11-25 13:00", tz=TZ), end=pendulum.parse("2024-11-25 14:00", tz=TZ)),
            TimeInterval(start=pendulum.parse("2024-11-25 15:00", tz=TZ), end=pendulum.parse("2024-11-25 16:00", tz=TZ)),
        ]
