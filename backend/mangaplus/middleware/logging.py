"""
MangaPlus Backend — Request Logging Middleware
================================================

What:  Access log line for every HTTP request.
How:   Measures wall time around the handler and logs method, path, status,
       duration and request ID, at a level chosen from the status class.
When:  After RequestIDMiddleware (uses request ID for correlation).

Example line:
    2026-10-19T12:00:00 [INFO] mangaplus.access: POST /upload 200 2345.6ms [a1b2c3d4] from 10.0.0.7

Request bodies (uploaded images) are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mangaplus.middleware.request_id import request_id_var

logger = logging.getLogger("mangaplus.access")

# Liveness probes are too frequent to log
SKIP_PATHS = {"/ping"}


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Typical durations:
        - GET /manga/...: 5-50ms (single find_one)
        - POST /upload: dominated by ImageKit, roughly 0.5-2s per file
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        # request.client may be None in testing
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        if path in SKIP_PATHS:
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        rid = request_id_var.get("")

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
