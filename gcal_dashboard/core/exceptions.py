"""Exception hierarchy for the dashboard.

Each request-time failure is mapped to one of these types at the point where
it happens, so the HTTP layer only needs to catch ``DashboardError`` to turn
any expected fault into the fixed 500 response.
"""


class DashboardError(Exception):
    """Base exception for all dashboard errors."""


class ConfigError(DashboardError):
    """Required configuration is missing or invalid.

    Raised when:
    - A credential (client id, client secret, refresh token) is absent
    - PORT is not a valid TCP port
    - TIMEZONE is not a known IANA timezone
    - A locale name table has the wrong number of entries

    Raised only at startup; the process must exit without serving.
    """


class UpstreamError(DashboardError):
    """The calendar provider call failed.

    Raised when:
    - The network or transport fails
    - The refresh token is revoked or expired
    - The provider answers with an HTTP error (quota, permissions, unknown calendar)
    - The response payload does not have the expected shape

    Should result in HTTP 500 for that single request.
    """


class FormatError(DashboardError):
    """An event moment could not be parsed or formatted.

    Treated exactly like ``UpstreamError`` at the request boundary.
    """
