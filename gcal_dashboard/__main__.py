"""Command-line entry for the gcal_dashboard server."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from . import run_server
from .core.exceptions import ConfigError


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the gcal_dashboard CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="gcal_dashboard",
        description="Calendar Dashboard - upcoming Google Calendar events as a web page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m gcal_dashboard                    # Start server on default port (3000)
  python -m gcal_dashboard --port 8080        # Start server on port 8080

Configuration is read from the environment and an optional .env file:
  GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN (required),
  GOOGLE_REDIRECT_URI, PORT, CALENDAR_ID, TIMEZONE
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 3000, or from PORT env var)",
    )

    return parser


def main() -> NoReturn:
    """Run the gcal_dashboard CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    try:
        run_server(args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
