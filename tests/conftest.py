"""Shared fixtures for gcal_dashboard tests."""

from __future__ import annotations

import datetime
from collections.abc import Generator
from pathlib import Path
from typing import Any, Optional

import pytest

from gcal_dashboard.calendar.google_client import CalendarSnapshot
from gcal_dashboard.calendar.models import CalendarEvent
from gcal_dashboard.core.config_manager import DashboardConfig, RenderContext

FIXED_NOW = datetime.datetime(2024, 6, 3, 7, 30, tzinfo=datetime.timezone.utc)


class FakeCalendarSource:
    """In-memory stand-in for the Google Calendar client."""

    def __init__(
        self,
        items: Optional[list[dict[str, Any]]] = None,
        calendar_name: str = "Family",
        error: Optional[Exception] = None,
    ) -> None:
        self.items = items or []
        self.calendar_name = calendar_name
        self.error = error
        self.calls: list[tuple[str, datetime.datetime]] = []

    def _events(self) -> list[CalendarEvent]:
        return [CalendarEvent.from_api(item) for item in self.items]

    async def list_upcoming_events(self, now: datetime.datetime) -> list[CalendarEvent]:
        self.calls.append(("list", now))
        if self.error is not None:
            raise self.error
        return self._events()

    async def fetch_snapshot(self, now: datetime.datetime) -> CalendarSnapshot:
        self.calls.append(("snapshot", now))
        if self.error is not None:
            raise self.error
        return CalendarSnapshot(calendar_name=self.calendar_name, events=self._events())


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Keep dashboard environment variables from leaking between tests."""
    for key in (
        "DASHBOARD_TEST_TIME",
        "DASHBOARD_DEBUG",
        "DASHBOARD_LOG_LEVEL",
        "TIMEZONE",
        "PORT",
        "CALENDAR_ID",
        "DASHBOARD_HOST",
        "DASHBOARD_STATIC_DIR",
        "GOOGLE_CLIENT_ID",
        "GOOGLE_CLIENT_SECRET",
        "GOOGLE_REFRESH_TOKEN",
        "GOOGLE_REDIRECT_URI",
    ):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def fixed_now() -> datetime.datetime:
    return FIXED_NOW


@pytest.fixture
def render_context() -> RenderContext:
    """Berlin timezone with the default German locale."""
    return RenderContext(calendar_id="primary", timezone="Europe/Berlin")


@pytest.fixture
def dashboard_config(tmp_path: Path, render_context: RenderContext) -> DashboardConfig:
    """Complete configuration with dummy credentials and an empty static directory."""
    static_dir = tmp_path / "public"
    static_dir.mkdir()
    return DashboardConfig(
        client_id="client-id.apps.googleusercontent.com",
        client_secret="client-secret",
        refresh_token="1//refresh-token",
        static_dir=static_dir,
        render=render_context,
    )


@pytest.fixture
def standup_item() -> dict[str, Any]:
    return {
        "id": "evt-standup",
        "summary": "Standup",
        "start": {"dateTime": "2024-06-03T09:00:00Z"},
        "end": {"dateTime": "2024-06-03T09:15:00Z"},
    }


@pytest.fixture
def vacation_item() -> dict[str, Any]:
    return {
        "id": "evt-vacation",
        "summary": "Vacation",
        "start": {"date": "2024-07-01"},
        "end": {"date": "2024-07-05"},
    }


@pytest.fixture
def untitled_item() -> dict[str, Any]:
    return {
        "id": "evt-untitled",
        "start": {"dateTime": "2024-06-04T18:30:00+02:00", "timeZone": "Europe/Berlin"},
        "end": {"dateTime": "2024-06-04T19:00:00+02:00", "timeZone": "Europe/Berlin"},
    }


@pytest.fixture
def fake_source_factory():
    """Build FakeCalendarSource instances."""
    return FakeCalendarSource
