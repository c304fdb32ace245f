"""
MangaPlus Backend — Request ID Middleware
===========================================

What:  Assigns a short correlation ID to each request and returns it in the
       X-Request-ID response header.
How:   Reuses a client-supplied X-Request-ID or generates one, stores it in a
       ContextVar (read by loggers and exception handlers) and in request.state.
When:  First middleware in the chain.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests in one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    """First 8 characters of a UUID4."""
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. Use the client's X-Request-ID header when present
        2. Otherwise generate a new short UUID
        3. Store in ContextVar and request.state
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid

        return response
