"""Timezone resolution and conversion utilities for gcal_dashboard."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Berlin"

TEST_TIME_ENV = "DASHBOARD_TEST_TIME"


@lru_cache(maxsize=32)
def resolve_timezone(tz_name: str) -> zoneinfo.ZoneInfo:
    """Return the ZoneInfo for an IANA timezone name.

    Args:
        tz_name: IANA identifier such as "Europe/Berlin"

    Returns:
        ZoneInfo backed by the IANA database

    Raises:
        ValueError: If the name is empty or not a known timezone
    """
    if not tz_name or not tz_name.strip():
        raise ValueError("Timezone name must not be empty")
    try:
        return zoneinfo.ZoneInfo(tz_name.strip())
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz_name!r}") from e


def is_valid_timezone(tz_name: str) -> bool:
    """Check whether a timezone name can be resolved."""
    try:
        resolve_timezone(tz_name)
    except ValueError:
        return False
    return True


def now_utc() -> datetime.datetime:
    """Return current UTC time with tzinfo.

    Can be overridden for testing via the DASHBOARD_TEST_TIME environment variable.
    Format: ISO 8601 datetime string (e.g., "2024-06-03T09:00:00+02:00").
    Naive values are taken as UTC.
    """
    test_time = os.environ.get(TEST_TIME_ENV)
    if test_time:
        try:
            from dateutil import parser as date_parser

            dt = date_parser.isoparse(test_time)
            if dt.tzinfo is not None:
                return dt.astimezone(datetime.timezone.utc)
            return dt.replace(tzinfo=datetime.timezone.utc)
        except (ValueError, OverflowError) as e:
            logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

    return datetime.datetime.now(datetime.timezone.utc)


def to_local(dt: datetime.datetime, tz_name: str) -> datetime.datetime:
    """Project an instant onto the wall clock of an IANA timezone.

    The host's local timezone is never consulted: naive datetimes are
    interpreted as UTC before conversion.

    Args:
        dt: Instant to convert
        tz_name: Target IANA timezone name

    Returns:
        Timezone-aware datetime in the target zone
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(resolve_timezone(tz_name))


def serialize_iso(dt: datetime.datetime | None) -> str | None:
    """Serialize a datetime to an RFC 3339 string with a trailing Z for UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")
