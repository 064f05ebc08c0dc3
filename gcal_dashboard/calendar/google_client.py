"""Google Calendar upstream client.

Wraps google-api-python-client, which is blocking, so every call is pushed
onto a worker thread with ``asyncio.to_thread``; a slow provider only delays
the request that triggered it.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError

from ..core.config_manager import CALENDAR_SCOPES, MAX_EVENTS, DashboardConfig
from ..core.exceptions import UpstreamError
from ..core.timezone_utils import serialize_iso
from .models import CalendarEvent

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"

# Failures of the provider call that are turned into UpstreamError
UPSTREAM_FAILURES = (GoogleApiError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


@dataclass(frozen=True)
class CalendarSnapshot:
    """Everything the dashboard page needs from one upstream fetch."""

    calendar_name: str
    events: list[CalendarEvent] = field(default_factory=list)


class CalendarSource(Protocol):
    """Contract of the calendar provider as seen by the HTTP handlers."""

    async def list_upcoming_events(self, now: datetime.datetime) -> list[CalendarEvent]: ...

    async def fetch_snapshot(self, now: datetime.datetime) -> CalendarSnapshot: ...


def build_credentials(config: DashboardConfig) -> Credentials:
    """Create refreshable user credentials from the stored refresh token.

    No access token is set; google-auth exchanges the refresh token on the
    first request and again whenever the access token expires.
    """
    return Credentials(
        token=None,
        refresh_token=config.refresh_token,
        client_id=config.client_id,
        client_secret=config.client_secret,
        token_uri=TOKEN_URI,
        scopes=CALENDAR_SCOPES,
    )


class GoogleCalendarClient:
    """Reads upcoming events and calendar metadata from one Google calendar."""

    def __init__(
        self,
        config: DashboardConfig,
        service_factory: Optional[Callable[[], Any]] = None,
        max_results: int = MAX_EVENTS,
    ):
        """Initialize the client.

        Args:
            config: Immutable dashboard configuration
            service_factory: Returns a Calendar v3 resource; defaults to
                ``googleapiclient.discovery.build`` with the stored credentials
            max_results: Upper bound on events per fetch
        """
        self.calendar_id = config.render.calendar_id
        self.max_results = max_results
        self._credentials = build_credentials(config)
        self._service_factory = service_factory or self._build_service

    def _build_service(self) -> Any:
        # A fresh resource per call: the underlying httplib2 transport is not thread-safe.
        return build("calendar", "v3", credentials=self._credentials, cache_discovery=False)

    def _list_event_items(self, service: Any, now: datetime.datetime) -> list[dict[str, Any]]:
        response = (
            service.events()
            .list(
                calendarId=self.calendar_id,
                timeMin=serialize_iso(now),
                maxResults=self.max_results,
                singleEvents=True,
                orderBy="startTime",
            )
            .execute()
        )
        items = response.get("items", []) if isinstance(response, dict) else None
        if not isinstance(items, list):
            raise UpstreamError("Calendar response has no usable 'items' list")
        return items[: self.max_results]

    def _get_calendar_name(self, service: Any) -> str:
        metadata = service.calendars().get(calendarId=self.calendar_id).execute()
        name = metadata.get("summary") if isinstance(metadata, dict) else None
        return name or self.calendar_id

    def _fetch_events_sync(self, now: datetime.datetime) -> list[CalendarEvent]:
        try:
            service = self._service_factory()
            items = self._list_event_items(service, now)
        except UPSTREAM_FAILURES as e:
            raise UpstreamError(f"Failed to list events of calendar {self.calendar_id!r}") from e
        return [CalendarEvent.from_api(item) for item in items]

    def _fetch_snapshot_sync(self, now: datetime.datetime) -> CalendarSnapshot:
        try:
            service = self._service_factory()
            calendar_name = self._get_calendar_name(service)
            items = self._list_event_items(service, now)
        except UPSTREAM_FAILURES as e:
            raise UpstreamError(f"Failed to fetch calendar {self.calendar_id!r}") from e
        events = [CalendarEvent.from_api(item) for item in items]
        return CalendarSnapshot(calendar_name=calendar_name, events=events)

    async def list_upcoming_events(self, now: datetime.datetime) -> list[CalendarEvent]:
        """Return up to ``max_results`` events starting at or after ``now``.

        Raises:
            UpstreamError: If the provider call fails
            FormatError: If an event in the response is malformed
        """
        events = await asyncio.to_thread(self._fetch_events_sync, now)
        logger.debug("Fetched %d events from calendar %s", len(events), self.calendar_id)
        return events

    async def fetch_snapshot(self, now: datetime.datetime) -> CalendarSnapshot:
        """Return the calendar's display name together with its upcoming events.

        Raises:
            UpstreamError: If the provider call fails
            FormatError: If an event in the response is malformed
        """
        snapshot = await asyncio.to_thread(self._fetch_snapshot_sync, now)
        logger.debug(
            "Fetched %d events from calendar %s (%s)",
            len(snapshot.events),
            self.calendar_id,
            snapshot.calendar_name,
        )
        return snapshot
