"""
Snippetbox: Panic Recovery Middleware
=====================================

What:  Turns any exception escaping the session, CSRF, authentication or
       route layers into a 500 response.
How:   Catches from call_next, logs with the traceback, and returns a plain
       "Internal Server Error" with Connection: close. With Settings.debug on,
       the traceback is written to the body instead.
When:  Directly inside SecurityHeadersMiddleware, so the 500 still carries the
       security headers, the X-Request-ID and an access log line.
"""

import logging
import traceback

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from snippetbox.exceptions import DatabaseError
from snippetbox.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def server_error_response(exc: Exception, debug: bool) -> PlainTextResponse:
    body = "Internal Server Error"
    if debug:
        body = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return PlainTextResponse(body, status_code=500, headers={"Connection": "close"})


class RecoverPanicMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, application):
        super().__init__(app)
        # Read per request so the debug flag follows application.settings
        self.application = application

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except DatabaseError as exc:
            logger.error(
                "[%s] Database error: %s | Context: %s",
                request_id_var.get(""),
                exc.message,
                exc.context,
                exc_info=exc,
            )
            return server_error_response(exc, self.application.settings.debug)
        except Exception as exc:
            logger.error(
                "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=exc
            )
            return server_error_response(exc, self.application.settings.debug)
