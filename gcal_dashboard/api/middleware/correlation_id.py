"""Request correlation ID middleware.

Every request gets an id, taken from the client when it sends one or
generated otherwise, so log lines emitted while serving it can be grouped.
"""

import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any

from aiohttp import web

# Context variable for storing request correlation ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


@web.middleware
async def correlation_id_middleware(
    request: web.Request, handler: Callable[[web.Request], Any]
) -> web.StreamResponse:
    """Extract or generate correlation ID for request tracking.

    Priority for correlation ID extraction:
    1. X-Request-ID from client
    2. X-Correlation-ID from client
    3. Generate new UUID

    The id is stored in a context variable, added to the request object and
    echoed back in the X-Request-ID response header.
    """
    correlation_id = (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid.uuid4())
    )

    token = request_id_var.set(correlation_id)
    request["correlation_id"] = correlation_id

    try:
        response = await handler(request)
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = correlation_id
    return response


def get_request_id() -> str:
    """Get current request correlation ID from context.

    Returns:
        Current request correlation ID, or "no-request-id" if not set
    """
    request_id = request_id_var.get()
    return request_id if request_id else "no-request-id"
