"""Map provider events onto the page's display model and the JSON projection."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..calendar.models import CalendarEvent, FormattedEvent, is_all_day
from ..core.config_manager import RenderContext
from .formatting import format_date, format_time


def event_title(event: CalendarEvent, context: RenderContext) -> str:
    return event.summary or context.locale.untitled_label


def format_event(event: CalendarEvent, context: RenderContext) -> FormattedEvent:
    """Build the display labels for one event.

    Raises:
        FormatError: If the start moment cannot be parsed
    """
    locale = context.locale
    all_day = is_all_day(event)
    start = event.start.raw

    return FormattedEvent(
        date_label=format_date(start, context.timezone, locale.weekday_names, locale.month_names),
        time_label=locale.all_day_label if all_day else format_time(start, context.timezone),
        title=event_title(event, context),
        is_all_day=all_day,
    )


def format_events(events: Iterable[CalendarEvent], context: RenderContext) -> list[FormattedEvent]:
    """Format every event, keeping the provider's order and count.

    Either every event is formatted or FormatError propagates; there is no
    partial result.
    """
    return [format_event(event, context) for event in events]


def event_to_api_model(event: CalendarEvent, context: RenderContext) -> dict[str, Any]:
    """Serialize an event for ``/api/events``.

    The raw moment strings are passed through untouched; ``isAllDay`` uses the
    same predicate as the HTML page.
    """
    return {
        "summary": event_title(event, context),
        "start": event.start.raw,
        "end": event.end.raw,
        "isAllDay": is_all_day(event),
    }


def events_to_api_models(
    events: Iterable[CalendarEvent], context: RenderContext
) -> list[dict[str, Any]]:
    return [event_to_api_model(event, context) for event in events]
