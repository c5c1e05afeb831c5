"""
Trailpost Backend — Request Logging Middleware
================================================

What:  One access log line per HTTP request.
How:   Times the request, then logs method, path, status, duration, request
       ID, client IP and the authenticated caller (once the bearer token has
       been resolved) at a level chosen by the status class.
When:  After RequestIDMiddleware (uses request ID for correlation).

What we log vs what we DON'T log (privacy):
    Logged:     method, path, status, duration, IP, request ID, caller id
    Not logged: request bodies (passwords, comments), uploads, Authorization
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from trailpost.middleware.request_id import request_id_var

logger = logging.getLogger("trailpost.access")

# Probed every few seconds by load balancers
_QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log levels by status:
        5xx     → ERROR
        4xx     → WARNING
        2xx/3xx → INFO
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        # Set by get_current_user_id; anonymous routes leave it unset
        caller = getattr(request.state, "user_id", None)
        caller_label = str(caller) if caller else "anonymous"
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s as %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            caller_label,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": caller_label,
            },
        )
        return response
