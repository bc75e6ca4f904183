"""
Microsoft Graph API client for fetching calendar events.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarFetchError
from ..domain.models import PRIMARY_CALENDAR, CalendarEvent

logger = logging.getLogger(__name__)


class GraphCalendarClient:
    """
    Client for Microsoft Graph calendar operations.

    Uses the /calendarView endpoint, which returns recurring meetings already
    expanded into single occurrences.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"
    SELECT_FIELDS = "subject,start,end,isAllDay,location,organizer"
    PAGE_SIZE = 100

    def __init__(
        self,
        access_token: str,
        timezone: str = "Europe/Berlin",
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            timezone: IANA timezone events are reported in
            base_url: Override for the Graph endpoint
            session: Optional requests session (useful for tests)
            timeout: Per-request timeout in seconds
        """
        self.timezone = timezone
        self.base_url = (base_url or self.GRAPH_API_ENDPOINT).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Prefer": f'outlook.timezone="{timezone}"',
        }

    def fetch_events(
        self,
        calendar_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CalendarEvent]:
        """
        Get all event occurrences of one calendar within a window.

        Args:
            calendar_id: "primary" for the signed-in user, otherwise a mailbox address
            start: Start of the time window
            end: End of the time window

        Returns:
            Events in the order Graph returns them

        Raises:
            CalendarFetchError: If the calendar cannot be read
        """
        url: Optional[str] = self._calendar_view_url(calendar_id)
        params: Optional[Dict[str, Any]] = {
            "startDateTime": start.to_iso8601_string(),
            "endDateTime": end.to_iso8601_string(),
            "$select": self.SELECT_FIELDS,
            "$orderby": "start/dateTime",
            "$top": self.PAGE_SIZE,
        }
        events: List[CalendarEvent] = []

        while url:
            data = self._get(calendar_id, url, params)
            events.extend(self._parse_events(data.get("value", []), calendar_id))

            # nextLink already carries the query string
            url = data.get("@odata.nextLink")
            params = None

        return events

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and authentication by fetching the user profile.

        Raises:
            CalendarFetchError: If the profile cannot be fetched
        """
        return self._get(PRIMARY_CALENDAR, f"{self.base_url}/me", None)

    def _calendar_view_url(self, calendar_id: str) -> str:
        if calendar_id == PRIMARY_CALENDAR:
            return f"{self.base_url}/me/calendarView"
        return f"{self.base_url}/users/{quote(calendar_id)}/calendarView"

    def _get(self, calendar_id: str, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarFetchError(calendar_id, str(e)) from e
        except ValueError as e:
            raise CalendarFetchError(calendar_id, f"invalid JSON response: {e}") from e

    def _parse_events(self, items: List[Dict[str, Any]], calendar_id: str) -> List[CalendarEvent]:
        """
        Parse calendarView items into our domain model.

        Item format:
        {
            "subject": "Weekly sync",
            "isAllDay": false,
            "start": {"dateTime": "2024-11-25T09:00:00.0000000", "timeZone": "Europe/Berlin"},
            "end": {"dateTime": "2024-11-25T10:00:00.0000000", "timeZone": "Europe/Berlin"},
            "location": {"displayName": "Atlas (3rd floor)"},
            "organizer": {"emailAddress": {"name": "Max", "address": "max@example.com"}}
        }
        """
        events: List[CalendarEvent] = []

        for item in items:
            summary = item.get("subject") or ""
            location, organizer = self._display_fields(item)

            if item.get("isAllDay"):
                events.append(
                    CalendarEvent(start=None, end=None, summary=summary, organizer=organizer, location=location)
                )
                continue

            try:
                start = self._parse_datetime(item["start"]["dateTime"])
                end = self._parse_datetime(item["end"]["dateTime"])
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Could not parse event '%s' in %s: %s", summary, calendar_id, e)
                continue

            events.append(
                CalendarEvent(start=start, end=end, summary=summary, organizer=organizer, location=location)
            )

        return events

    @staticmethod
    def _display_fields(item: Dict[str, Any]) -> Tuple[str, str]:
        """Return (location, organizer), tolerating unexpected shapes."""
        location_field = item.get("location")
        if isinstance(location_field, dict):
            location = location_field.get("displayName") or ""
        elif isinstance(location_field, str):
            location = location_field
        else:
            location = ""

        organizer_field = item.get("organizer")
        email = organizer_field.get("emailAddress") if isinstance(organizer_field, dict) else None
        if not isinstance(email, dict):
            email = {}
        organizer = email.get("address") or email.get("name") or ""

        return str(location), str(organizer)

    def _parse_datetime(self, datetime_str: str) -> DateTime:
        """
        Parse a Graph dateTime string in the client's timezone.

        Graph reports seven fractional digits, which are dropped.
        """
        if not isinstance(datetime_str, str):
            raise TypeError(f"Expected a dateTime string, got {datetime_str!r}")

        dt = pendulum.parse(datetime_str.split(".")[0], tz=self.timezone)

        if isinstance(dt, DateTime):
            return dt

        raise ValueError(f"Could not parse datetime: {datetime_str}")
