"""gcal_dashboard - single-calendar dashboard served as a self-refreshing HTML page.

The package holds two processes: the dashboard server (``python -m gcal_dashboard``)
and the one-time OAuth token bootstrap (``python -m gcal_dashboard.token_bootstrap``).
Imports stay light here so the CLI can report configuration errors before aiohttp
and the Google client libraries are loaded.
"""

__version__ = "0.1.0"

from typing import Optional


def run_server(args: Optional[object] = None) -> None:
    """Load configuration and run the dashboard server until it is stopped.

    Args:
        args: Optional command line namespace; ``args.port`` overrides PORT

    Raises:
        ConfigError: If required configuration is missing or invalid. Raised
            before any listener is opened.
    """
    import logging

    from .core.config_manager import ConfigManager
    from .core.dashboard_logging import configure_dashboard_logging

    # Early logging so configuration messages are visible
    configure_dashboard_logging()
    logger = logging.getLogger(__name__)

    port = getattr(args, "port", None) if args is not None else None
    config = ConfigManager().load_config(port_override=port)
    logger.debug("Resolved configuration: %s", config.redacted())

    from .api.server import start_server

    start_server(config)
