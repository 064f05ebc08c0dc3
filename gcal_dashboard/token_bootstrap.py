"""One-time OAuth2 consent flow that prints a Google Calendar refresh token.

Usage:
    python -m gcal_dashboard.token_bootstrap

Prerequisites:
  1. Create an OAuth client ID (type "Web application") in the Google Cloud console
  2. Add GOOGLE_REDIRECT_URI (default http://localhost:3000/oauth2callback) as an
     authorized redirect URI
  3. Put GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET in the environment or .env

The script prints an authorization URL, waits on the redirect URI for the
single callback, exchanges the code and prints the refresh token. Copy it to
GOOGLE_REFRESH_TOKEN for the dashboard server.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional, TextIO
from urllib.parse import urlparse

from aiohttp import web
from google_auth_oauthlib.flow import Flow

from .calendar.google_client import TOKEN_URI
from .core.config_manager import CALENDAR_SCOPES, ConfigManager
from .core.dashboard_logging import configure_dashboard_logging
from .core.exceptions import ConfigError

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
BANNER = "================================="

SUCCESS_TEXT = (
    "Authentication successful! Check your terminal for the refresh token. "
    "You can close this window."
)
FAILURE_TEXT = "Error! Check your terminal."


@dataclass
class BootstrapResult:
    """Outcome of the callback; ``refresh_token`` stays None on failure."""

    refresh_token: Optional[str] = None
    error: Optional[str] = None


def create_flow(client_id: str, client_secret: str, redirect_uri: str) -> Flow:
    """Build the OAuth flow for a web-type client."""
    client_config = {
        "web": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [redirect_uri],
        }
    }
    return Flow.from_client_config(client_config, scopes=CALENDAR_SCOPES, redirect_uri=redirect_uri)


def authorization_url(flow: Any) -> str:
    # prompt=consent makes Google issue a refresh token even on repeated consent
    url, _state = flow.authorization_url(access_type="offline", prompt="consent")
    return url


def listener_address(redirect_uri: str) -> tuple[str, int, str]:
    """Return (host, port, callback path) the redirect URI points at."""
    parsed = urlparse(redirect_uri)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigError(f"GOOGLE_REDIRECT_URI is not an http(s) URL: {redirect_uri!r}")
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    return parsed.hostname, port, parsed.path or "/"


def _print_block(out: TextIO, title: str, body: str, footer: Optional[str] = None) -> None:
    print(f"\n{BANNER}", file=out)
    print(title, file=out)
    print(f"{BANNER}\n", file=out)
    print(body, file=out)
    if footer:
        print(f"\n{BANNER}", file=out)
        print(footer, file=out)
        print(f"{BANNER}\n", file=out)
    else:
        print("\n", file=out)
    out.flush()


def _make_callback_app(
    flow: Any,
    callback_path: str,
    result: BootstrapResult,
    stop_event: asyncio.Event,
    out: TextIO,
) -> web.Application:
    """Create the one-shot listener that receives the authorization code.

    Any request to ``callback_path`` ends the flow, successful or not; other
    paths get 404 and keep the listener running.
    """

    async def oauth_callback(request: web.Request) -> web.Response:
        code = request.query.get("code")
        try:
            if not code:
                raise ValueError(request.query.get("error") or "callback carried no authorization code")

            await asyncio.to_thread(flow.fetch_token, code=code)
            refresh_token = getattr(flow.credentials, "refresh_token", None)
            if not refresh_token:
                raise ValueError("token response contained no refresh token")
        except Exception as e:  # any failure of the exchange ends the one-shot flow
            logger.exception("Error getting token")
            result.error = str(e)
            print(f"Error getting token: {e}", file=sys.stderr)
            return web.Response(text=FAILURE_TEXT)
        finally:
            stop_event.set()

        result.refresh_token = refresh_token
        _print_block(out, "SUCCESS! Your refresh token:", refresh_token, "Copy this token to your .env file")
        return web.Response(text=SUCCESS_TEXT)

    app = web.Application()
    app.router.add_get(callback_path, oauth_callback)
    return app


async def run_bootstrap(
    flow: Any,
    redirect_uri: str,
    out: TextIO = sys.stdout,
) -> BootstrapResult:
    """Print the consent URL, wait for the callback and return its outcome."""
    host, port, callback_path = listener_address(redirect_uri)
    result = BootstrapResult()
    stop_event = asyncio.Event()

    app = _make_callback_app(flow, callback_path, result, stop_event, out)
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
        _print_block(out, "STEP 1: Visit this URL in your browser:", authorization_url(flow))
        print("Waiting for authentication...\n", file=out)
        out.flush()
        logger.debug("Listening for OAuth callback on %s:%d%s", host, port, callback_path)

        await stop_event.wait()
    finally:
        await runner.cleanup()

    return result


def main() -> None:
    """Run the token bootstrap; exit status 1 when no token was obtained."""
    configure_dashboard_logging()

    manager = ConfigManager()
    manager.load_env_file()
    try:
        client_id, client_secret = manager.require_client_credentials()
        redirect_uri = manager.redirect_uri()
        listener_address(redirect_uri)
    except ConfigError as exc:
        print(f"Error: {exc} (environment or .env file)", file=sys.stderr)
        sys.exit(1)

    flow = create_flow(client_id, client_secret, redirect_uri)
    try:
        result = asyncio.run(run_bootstrap(flow, redirect_uri))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    sys.exit(0 if result.refresh_token else 1)


if __name__ == "__main__":
    main()
