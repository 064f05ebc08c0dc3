"""Route modules for the gcal_dashboard server."""

from .dashboard_routes import register_dashboard_routes
from .static_routes import register_static_routes

__all__ = [
    "register_dashboard_routes",
    "register_static_routes",
]
