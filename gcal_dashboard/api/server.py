"""aiohttp server for the calendar dashboard.

This module provides the server core that:
- builds the aiohttp application and wires the routes to the calendar client
- runs the event loop until SIGINT/SIGTERM
- renders every page fresh per request (no cache, no background refresh)

Exposed routes: GET / (HTML page), GET /api/events (JSON), static files for
any other path.
"""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import logging
import signal
from typing import Any, Callable, Optional

from aiohttp import web

from ..calendar.google_client import CalendarSource, GoogleCalendarClient
from ..core.config_manager import DashboardConfig
from ..core.dashboard_logging import configure_dashboard_logging, get_logging_status
from ..core.timezone_utils import now_utc as _now_utc
from .middleware import correlation_id_middleware
from .routes import register_dashboard_routes, register_static_routes

logger = logging.getLogger(__name__)


@web.middleware
async def request_logging_middleware(request: web.Request, handler: Callable[..., Any]) -> Any:
    """Log method, path and status of every request."""
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        logger.info("%s %s - %d", request.method, request.path, exc.status)
        raise
    logger.info("%s %s - %d", request.method, request.path, response.status)
    return response


def _make_app(
    config: DashboardConfig,
    calendar_source: Optional[CalendarSource] = None,
    time_provider: Callable[[], datetime.datetime] = _now_utc,
) -> web.Application:
    """Create the aiohttp application with all routes registered.

    Args:
        config: Immutable dashboard configuration
        calendar_source: Upstream collaborator; a GoogleCalendarClient is built
            from ``config`` when omitted
        time_provider: Returns the current UTC instant

    Returns:
        Configured aiohttp application
    """
    if calendar_source is None:
        calendar_source = GoogleCalendarClient(config)

    app = web.Application(middlewares=[correlation_id_middleware, request_logging_middleware])

    register_dashboard_routes(
        app=app,
        context=config.render,
        calendar_source=calendar_source,
        time_provider=time_provider,
    )
    # Catch-all static route goes last so it never shadows the dashboard routes
    register_static_routes(app, config.static_dir)

    async def _shutdown(_app: web.Application) -> None:
        logger.info("Application shutdown requested")

    app.on_shutdown.append(_shutdown)
    return app


async def _serve(
    config: DashboardConfig,
    external_stop_event: asyncio.Event | None = None,
    calendar_source: Optional[CalendarSource] = None,
) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Immutable dashboard configuration
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers will NOT be registered (caller owns signal handling).
        calendar_source: Optional upstream collaborator override
    """
    stop_event = external_stop_event or asyncio.Event()

    logger.debug("Creating web application. Config: %s", config.redacted())
    app = _make_app(config, calendar_source)

    runner = web.AppRunner(app, access_log=None)
    await runner.setup()

    host = config.server_bind
    port = config.server_port
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
    except OSError:
        logger.exception("Failed to start server on %s:%d", host, port)
        await runner.cleanup()
        raise

    logger.info("Server running on %s:%d", host, port)
    logger.info(
        "Serving calendar %r in timezone %s",
        config.render.calendar_id,
        config.render.timezone,
    )

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)
    else:
        logger.debug("Using external stop event - skipping signal handler registration")

    await stop_event.wait()
    logger.info("Stop event received, shutting down")

    await runner.cleanup()
    logger.info("Server shutdown complete")


def start_server(config: DashboardConfig) -> None:
    """Start the asyncio event loop and HTTP server.

    Blocks the calling thread until SIGINT/SIGTERM is received.

    Args:
        config: Immutable dashboard configuration
    """
    configure_dashboard_logging(debug_mode=config.debug_logging, level_name=config.log_level)
    logger.debug("Logging configuration applied: debug_mode=%s", config.debug_logging)
    logger.info("Logger levels: %s", get_logging_status())

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
