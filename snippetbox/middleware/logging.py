"""
Snippetbox: Access Logging Middleware
=====================================

What:  One log line per request: remote address, protocol, method, URI, status
       and duration.
How:   Logger "snippetbox.access". 5xx logs at ERROR, 4xx at WARNING, the rest
       at INFO. The health check is not logged.
When:  Directly inside RequestIDMiddleware, so the request ID is available.

Request bodies are never logged (they carry passwords).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.middleware.request_id import request_id_var

logger = logging.getLogger("snippetbox.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/ping":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        proto = f"HTTP/{request.scope.get('http_version', '1.1')}"
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s - %s %s %s %d %.1fms [%s]",
            client_ip,
            proto,
            request.method,
            uri,
            status,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
