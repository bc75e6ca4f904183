"""
Exception hierarchy for the availability engine.
"""


class MeetingSlotsError(Exception):
    """Base class for all application-level errors."""


class InputError(MeetingSlotsError, ValueError):
    """Raised for malformed time ranges or non-positive durations."""


class CalendarFetchError(MeetingSlotsError):
    """Raised by a calendar source when one calendar cannot be read."""

    def __init__(self, calendar_id: str, message: str):
        super().__init__(f"Could not read calendar '{calendar_id}': {message}")
        self.calendar_id = calendar_id


class ConfigurationError(MeetingSlotsError):
    """Raised when configuration is missing or invalid."""
