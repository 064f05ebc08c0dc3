"""HTML rendering for the dashboard page.

Pure functions: the same inputs always produce the same document, and
nothing here touches the network, the clock or the configuration.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..calendar.models import FormattedEvent
from ..core.config_manager import PAGE_REFRESH_SECONDS

PAGE_HEADING = "Anstehende Termine"
EMPTY_PLACEHOLDER = "Keine anstehenden Termine"
LAST_UPDATED_PREFIX = "Zuletzt aktualisiert:"
REFRESH_NOTICE = "Automatische Aktualisierung jede Stunde"
ERROR_MESSAGE = "Failed to load calendar events. Please check your configuration."

PAGE_STYLE = """
    * {
      margin: 0;
      padding: 0;
      box-sizing: border-box;
    }

    body {
      font-family: Arial, sans-serif;
      background: #fff;
      color: #000;
      padding: 20px;
      max-width: 600px;
      margin: 0 auto;
    }

    h1 {
      font-size: 28px;
      margin-bottom: 5px;
      border-bottom: 2px solid #000;
      padding-bottom: 10px;
    }

    .calendar-name {
      font-size: 14px;
      color: #666;
      margin-bottom: 20px;
    }

    .event {
      border-bottom: 1px solid #ccc;
      padding: 15px 0;
    }

    .event:last-child {
      border-bottom: none;
    }

    .event-date {
      font-size: 14px;
      color: #666;
      margin-bottom: 5px;
    }

    .event-time {
      font-size: 16px;
      font-weight: bold;
      margin-bottom: 5px;
    }

    .event-title {
      font-size: 18px;
      line-height: 1.4;
    }

    .refresh-note {
      margin-top: 30px;
      text-align: center;
      font-size: 12px;
      color: #999;
    }
"""


def _escape_html(text: str) -> str:
    """Escape HTML special characters.

    Args:
        text: Text to escape

    Returns:
        HTML-escaped text
    """
    if not text:
        return ""

    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#x27;")
    )


def _render_event_html(event: FormattedEvent) -> str:
    return f"""
  <div class="event">
    <div class="event-date">{_escape_html(event.date_label)}</div>
    <div class="event-time">{_escape_html(event.time_label)}</div>
    <div class="event-title">{_escape_html(event.title)}</div>
  </div>"""


def _render_events_content(events: Sequence[FormattedEvent]) -> str:
    if not events:
        return f"<p>{EMPTY_PLACEHOLDER}</p>"
    return "".join(_render_event_html(event) for event in events)


def render_dashboard_page(
    calendar_name: str,
    events: Sequence[FormattedEvent],
    last_updated: str,
) -> str:
    """Assemble the complete dashboard document.

    Args:
        calendar_name: Display name of the calendar shown under the heading
        events: Formatted events, rendered in the given order
        last_updated: Render-time label for the footer

    Returns:
        A standalone HTML document that reloads itself once per hour
    """
    return f"""<!DOCTYPE html>
<html lang="de">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <meta http-equiv="refresh" content="{PAGE_REFRESH_SECONDS}">
  <title>Calendar</title>
  <style>{PAGE_STYLE}  </style>
</head>
<body>
  <h1>{PAGE_HEADING}</h1>
  <div class="calendar-name">{_escape_html(calendar_name)}</div>
  {_render_events_content(events)}
  <div class="refresh-note">{LAST_UPDATED_PREFIX} {_escape_html(last_updated)}<br>{REFRESH_NOTICE}</div>
</body>
</html>
"""


def render_error_page() -> str:
    """Return the fixed document served when the page cannot be built."""
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>Error</title>
  <style>
    body {{ font-family: Arial; padding: 20px; }}
    .error {{ color: red; }}
  </style>
</head>
<body>
  <h1>Error</h1>
  <p class="error">{ERROR_MESSAGE}</p>
</body>
</html>
"""
