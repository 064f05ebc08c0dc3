"""Configuration management for the gcal_dashboard server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .timezone_utils import DEFAULT_TIMEZONE, is_valid_timezone

logger = logging.getLogger(__name__)

# Upstream query limits
MAX_EVENTS = 10
PAGE_REFRESH_SECONDS = 3600

DEFAULT_PORT = 3000
DEFAULT_BIND = "0.0.0.0"  # nosec: B104 - dashboard is meant to be reachable on the LAN
DEFAULT_CALENDAR_ID = "primary"
DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"
DEFAULT_STATIC_DIR = "public"

CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]

GERMAN_WEEKDAYS = ("So", "Mo", "Di", "Mi", "Do", "Fr", "Sa")
GERMAN_MONTHS = ("Jan", "Feb", "Mär", "Apr", "Mai", "Jun", "Jul", "Aug", "Sep", "Okt", "Nov", "Dez")


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


class DisplayLocale(BaseModel):
    """Name tables and fixed labels used when rendering dates."""

    model_config = ConfigDict(frozen=True)

    weekday_names: tuple[str, ...] = Field(
        default=GERMAN_WEEKDAYS, description="Seven weekday names, index 0 = Sunday"
    )
    month_names: tuple[str, ...] = Field(
        default=GERMAN_MONTHS, description="Twelve month names, index 0 = January"
    )
    at_word: str = Field(default="um", description="Joins date and time in the footer")
    all_day_label: str = Field(default="Ganztägig")
    untitled_label: str = Field(default="No title")

    @field_validator("weekday_names")
    @classmethod
    def _seven_weekdays(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) != 7:
            raise ValueError(f"weekday_names needs exactly 7 entries, got {len(value)}")
        return value

    @field_validator("month_names")
    @classmethod
    def _twelve_months(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) != 12:
            raise ValueError(f"month_names needs exactly 12 entries, got {len(value)}")
        return value


class RenderContext(BaseModel):
    """Calendar, timezone and locale shared by every request of the process."""

    model_config = ConfigDict(frozen=True)

    calendar_id: str = Field(default=DEFAULT_CALENDAR_ID)
    timezone: str = Field(default=DEFAULT_TIMEZONE, description="IANA timezone name")
    locale: DisplayLocale = Field(default_factory=DisplayLocale)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(f"unknown IANA timezone {value!r}")
        return value


class DashboardConfig(BaseModel):
    """Immutable server configuration, built once at startup."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1, repr=False)
    refresh_token: str = Field(..., min_length=1, repr=False)
    redirect_uri: str = Field(default=DEFAULT_REDIRECT_URI)

    server_bind: str = Field(default=DEFAULT_BIND)
    server_port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    static_dir: Path = Field(default=Path(DEFAULT_STATIC_DIR))

    log_level: str = Field(default="INFO")
    debug_logging: bool = Field(default=False)

    render: RenderContext = Field(default_factory=RenderContext)

    def redacted(self) -> dict[str, Any]:
        """Return a log-safe view of the configuration."""
        data = self.model_dump(mode="json")
        for key in ("client_secret", "refresh_token"):
            data[key] = "<redacted>"
        return data


# Environment variable -> required credential field
_REQUIRED_ENV = {
    "GOOGLE_CLIENT_ID": "client_id",
    "GOOGLE_CLIENT_SECRET": "client_secret",
    "GOOGLE_REFRESH_TOKEN": "refresh_token",
}


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None, environ: dict[str, str] | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
            environ: Environment mapping to read and update (defaults to os.environ)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"
        self.environ = os.environ if environ is None else environ

    def load_env_file(self) -> list[str]:
        """Load .env file into the environment.

        Only sets variables that are not already in the environment to avoid
        surprising overrides of user's environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        parsed = parse_env_file(self.env_file_path)

        set_keys = []
        for key, val in parsed.items():
            if key not in self.environ:
                self.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def require_client_credentials(self) -> tuple[str, str]:
        """Return (client_id, client_secret) or raise ConfigError if either is missing."""
        client_id = (self.environ.get("GOOGLE_CLIENT_ID") or "").strip()
        client_secret = (self.environ.get("GOOGLE_CLIENT_SECRET") or "").strip()
        if not client_id or not client_secret:
            raise ConfigError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set")
        return client_id, client_secret

    def redirect_uri(self) -> str:
        return (self.environ.get("GOOGLE_REDIRECT_URI") or "").strip() or DEFAULT_REDIRECT_URI

    def build_config_from_env(self, port_override: int | None = None) -> DashboardConfig:
        """Build the immutable configuration from environment variables.

        Recognizes:
        - GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN (required)
        - GOOGLE_REDIRECT_URI -> 'redirect_uri'
        - PORT -> 'server_port' (int, default 3000)
        - DASHBOARD_HOST -> 'server_bind'
        - CALENDAR_ID -> 'render.calendar_id' (default "primary")
        - TIMEZONE -> 'render.timezone' (default "Europe/Berlin")
        - DASHBOARD_STATIC_DIR -> 'static_dir'
        - DASHBOARD_LOG_LEVEL / DASHBOARD_DEBUG -> logging

        Args:
            port_override: Port from the command line, wins over PORT

        Raises:
            ConfigError: If a required value is missing or a value is invalid
        """
        env = self.environ

        missing = [name for name in _REQUIRED_ENV if not (env.get(name) or "").strip()]
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")

        raw: dict[str, Any] = {field: env[name].strip() for name, field in _REQUIRED_ENV.items()}
        raw["redirect_uri"] = self.redirect_uri()

        if port_override is not None:
            raw["server_port"] = port_override
        elif env.get("PORT"):
            try:
                raw["server_port"] = int(env["PORT"])
            except ValueError as e:
                raise ConfigError(f"Invalid PORT={env['PORT']!r}") from e

        host = env.get("DASHBOARD_HOST")
        if host:
            raw["server_bind"] = host

        static_dir = env.get("DASHBOARD_STATIC_DIR")
        if static_dir:
            raw["static_dir"] = Path(static_dir)

        log_level = (env.get("DASHBOARD_LOG_LEVEL") or "").upper()
        if log_level:
            raw["log_level"] = log_level
        raw["debug_logging"] = _truthy(env.get("DASHBOARD_DEBUG"))

        raw["render"] = {
            "calendar_id": (env.get("CALENDAR_ID") or "").strip() or DEFAULT_CALENDAR_ID,
            "timezone": (env.get("TIMEZONE") or "").strip() or DEFAULT_TIMEZONE,
        }

        try:
            return DashboardConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {_format_validation_error(e)}") from e

    def load_config(self, port_override: int | None = None) -> DashboardConfig:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return self.build_config_from_env(port_override=port_override)
