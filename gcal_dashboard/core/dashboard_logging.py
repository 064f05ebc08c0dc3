"""
Central logging configuration for gcal_dashboard.

Console output goes through colorlog; every record is stamped with the
correlation id of the request being served so interleaved requests can be
told apart in the log.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s [%(request_id)s] %(name)s: %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Third-party loggers that are too chatty below WARNING
NOISY_LOGGERS = (
    "aiohttp.access",
    "aiohttp.server",
    "aiohttp.web_log",
    "asyncio",
    "google.auth",
    "google_auth_oauthlib",
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "urllib3.connectionpool",
)


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records for request tracing."""

    def filter(self, record: logging.LogRecord) -> bool:
        from ..api.middleware import get_request_id

        record.request_id = get_request_id()
        return True


def configure_dashboard_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    level_name: Optional[str] = None,
) -> None:
    """
    Configure logging for the dashboard process.

    Args:
        debug_mode: Whether to enable debug logging for gcal_dashboard modules
        force_debug: Override debug mode setting (None to use env var detection)
        level_name: Explicit root level name (DEBUG, INFO, WARNING, ERROR)

    Environment Variables:
        DASHBOARD_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        DASHBOARD_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("DASHBOARD_DEBUG", "").lower() in ("1", "true", "yes", "on")
    env_log_level = os.getenv("DASHBOARD_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    requested = (level_name or env_log_level or "").upper()
    if not final_debug and requested in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, requested)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    if not root_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("gcal_dashboard").setLevel(logging.DEBUG if final_debug else root_level)

    if final_debug:
        root_logger.debug("Debug logging enabled for gcal_dashboard modules")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ("gcal_dashboard", "aiohttp.access", "googleapiclient.discovery", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status
