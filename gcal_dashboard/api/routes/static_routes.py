"""Static file serving routes for gcal_dashboard."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from aiohttp import web

logger = logging.getLogger(__name__)


def resolve_static_file(static_dir: Path, relative_path: str) -> Path | None:
    """Resolve a request path to a file inside ``static_dir``.

    Returns None when the file does not exist or the path escapes the directory.
    """
    root = static_dir.resolve()
    candidate = (root / relative_path.lstrip("/")).resolve()
    try:
        candidate.relative_to(root)
    except ValueError:
        logger.warning("Rejected static path outside %s: %s", root, relative_path)
        return None
    if not candidate.is_file():
        return None
    return candidate


def register_static_routes(app: Any, static_dir: Path) -> None:
    """Serve files from ``static_dir`` for every path not claimed by another route.

    Must be registered after the dashboard routes.

    Args:
        app: aiohttp web application
        static_dir: Directory holding the public files
    """
    if not static_dir.is_dir():
        logger.warning("Static directory is missing (%s); only API routes will be served", static_dir)

    async def serve_static(request: web.Request) -> web.StreamResponse:
        """Serve a file from the static directory."""
        file_path = resolve_static_file(static_dir, request.match_info["path"])
        if file_path is None:
            return web.Response(text="Not found", status=404)
        return web.FileResponse(file_path)

    app.router.add_get("/{path:.+}", serve_static)

    logger.debug("Static routes registered for %s", static_dir)
