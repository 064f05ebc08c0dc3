"""aiohttp server for the dashboard."""
