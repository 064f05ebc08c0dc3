"""Dashboard page and JSON event routes."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Callable

from aiohttp import web

from ...calendar.google_client import CalendarSource
from ...core.config_manager import RenderContext
from ...core.exceptions import DashboardError
from ...domain.formatting import format_last_updated
from ...domain.page_renderer import render_dashboard_page, render_error_page
from ...domain.transform import events_to_api_models, format_events

logger = logging.getLogger(__name__)

FETCH_ERROR_BODY = {"error": "Failed to fetch events"}


def register_dashboard_routes(
    app: Any,
    context: RenderContext,
    calendar_source: CalendarSource,
    time_provider: Callable[[], datetime.datetime],
) -> None:
    """Register ``GET /`` and ``GET /api/events``.

    Args:
        app: aiohttp web application
        context: Calendar, timezone and locale used for rendering
        calendar_source: Upstream calendar collaborator
        time_provider: Returns the current UTC instant
    """

    async def dashboard_page(_request: web.Request) -> web.Response:
        """Render the dashboard for the events visible right now."""
        now = time_provider()
        locale = context.locale
        try:
            snapshot = await calendar_source.fetch_snapshot(now)
            events = format_events(snapshot.events, context)
            last_updated = format_last_updated(
                now, context.timezone, locale.weekday_names, locale.month_names, locale.at_word
            )
        except DashboardError:
            logger.exception("Failed to build dashboard page")
            return web.Response(text=render_error_page(), status=500, content_type="text/html")

        html = render_dashboard_page(snapshot.calendar_name, events, last_updated)
        return web.Response(text=html, content_type="text/html")

    async def api_events(_request: web.Request) -> web.Response:
        """Return upcoming events as JSON."""
        try:
            events = await calendar_source.list_upcoming_events(time_provider())
            payload = events_to_api_models(events, context)
        except DashboardError:
            logger.exception("Error fetching calendar events")
            return web.json_response(FETCH_ERROR_BODY, status=500)

        return web.json_response(payload)

    app.router.add_get("/", dashboard_page)
    app.router.add_get("/api/events", api_events)

    logger.debug("Dashboard routes registered")
