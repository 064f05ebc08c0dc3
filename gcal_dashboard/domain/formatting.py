"""Timezone-aware date and time labels for the dashboard.

Every function takes the target IANA timezone explicitly; nothing here looks
at the host's local timezone.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from typing import Union

from dateutil import parser as date_parser

from ..core.exceptions import FormatError
from ..core.timezone_utils import to_local

Moment = Union[str, datetime.datetime, datetime.date]


def _check_name_tables(weekday_names: Sequence[str], month_names: Sequence[str]) -> None:
    if len(weekday_names) != 7:
        raise ValueError(f"weekday_names needs exactly 7 entries, got {len(weekday_names)}")
    if len(month_names) != 12:
        raise ValueError(f"month_names needs exactly 12 entries, got {len(month_names)}")


def parse_moment(moment: Moment) -> datetime.datetime | datetime.date:
    """Parse a provider moment into a datetime (timestamp) or date (bare date).

    Strings of the form YYYY-MM-DD become ``date``; anything with a time
    component becomes ``datetime``.

    Raises:
        FormatError: If the value cannot be parsed
    """
    if isinstance(moment, (datetime.datetime, datetime.date)):
        return moment
    if not isinstance(moment, str) or not moment.strip():
        raise FormatError(f"Cannot parse date/time value {moment!r}")

    text = moment.strip()
    try:
        if len(text) == 10 and "T" not in text:
            return datetime.date.fromisoformat(text)
        return date_parser.isoparse(text)
    except (ValueError, OverflowError) as e:
        raise FormatError(f"Cannot parse date/time value {moment!r}") from e


def _local_date(moment: Moment, timezone: str) -> datetime.date:
    parsed = parse_moment(moment)
    if isinstance(parsed, datetime.datetime):
        return to_local(parsed, timezone).date()
    # A bare date is already a calendar date; it has no instant to project.
    return parsed


def _weekday_index(day: datetime.date) -> int:
    # isoweekday(): Monday=1 .. Sunday=7; name tables start at Sunday
    return day.isoweekday() % 7


def format_date(
    moment: Moment,
    timezone: str,
    weekday_names: Sequence[str],
    month_names: Sequence[str],
) -> str:
    """Format a moment as ``"<Weekday>, <day>. <Month>"`` in the given timezone.

    Args:
        moment: ISO 8601 timestamp, bare ``YYYY-MM-DD`` date, datetime or date
        timezone: IANA timezone name the date is shown in
        weekday_names: Seven names, index 0 = Sunday
        month_names: Twelve names, index 0 = January

    Raises:
        ValueError: If a name table has the wrong length
        FormatError: If the moment cannot be parsed
    """
    _check_name_tables(weekday_names, month_names)
    day = _local_date(moment, timezone)
    return f"{weekday_names[_weekday_index(day)]}, {day.day}. {month_names[day.month - 1]}"


def format_time(moment: Moment, timezone: str) -> str:
    """Format a timestamp as zero-padded 24-hour ``"HH:MM"`` in the given timezone.

    Raises:
        FormatError: If the moment cannot be parsed or is a bare date
    """
    parsed = parse_moment(moment)
    if not isinstance(parsed, datetime.datetime):
        raise FormatError(f"{moment!r} is a bare date and has no time of day")
    local = to_local(parsed, timezone)
    return f"{local.hour:02d}:{local.minute:02d}"


def format_last_updated(
    now: datetime.datetime,
    timezone: str,
    weekday_names: Sequence[str],
    month_names: Sequence[str],
    at_word: str = "um",
) -> str:
    """Format the render time as ``"<Weekday>, <day>. <Month> um HH:MM"``."""
    date_label = format_date(now, timezone, weekday_names, month_names)
    return f"{date_label} {at_word} {format_time(now, timezone)}"
