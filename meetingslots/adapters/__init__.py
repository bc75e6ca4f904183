"""
Adapters layer - Calendar sources (Microsoft Graph API and mock data).
"""

from .graph_client import GraphCalendarClient
from .mock_calendar_client import MockCalendarClient

__all__ = ["GraphCalendarClient", "MockCalendarClient"]
