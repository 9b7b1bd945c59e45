"""
Snippetbox: CSRF Protection Middleware
======================================

What:  Per-session anti-forgery token, checked on every state-changing request.
How:   The token lives in the session under "csrf_token" (created on first use)
       and is copied onto RequestContext.csrf_token for templates. POST, PUT,
       PATCH and DELETE must echo it back as the `csrf_token` form field or the
       X-CSRF-Token header, otherwise the request stops here with 400.
When:  After SessionMiddleware, before AuthenticateMiddleware, so a forged
       request is rejected the same way whether or not it carries a valid login.
"""

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from snippetbox.context import CSRF_SESSION_KEY, bypasses_dynamic_chain, get_request_context
from snippetbox.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

FORM_FIELD = "csrf_token"
HEADER_NAME = "X-CSRF-Token"


class CSRFMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if bypasses_dynamic_chain(request.url.path):
            return await call_next(request)

        context = get_request_context(request)
        token = context.session.get(CSRF_SESSION_KEY)
        if not token:
            token = secrets.token_urlsafe(32)
            context.session.put(CSRF_SESSION_KEY, token)
        context.csrf_token = token

        if request.method in UNSAFE_METHODS:
            submitted = await self._submitted_token(request)
            if submitted is None or not secrets.compare_digest(
                submitted.encode("utf-8"), token.encode("utf-8")
            ):
                logger.warning(
                    "[%s] CSRF check failed for %s %s (%s)",
                    request_id_var.get(""),
                    request.method,
                    request.url.path,
                    "missing" if submitted is None else "mismatch",
                )
                return PlainTextResponse("Bad Request", status_code=400)

        return await call_next(request)

    @staticmethod
    async def _submitted_token(request: Request):
        header = request.headers.get(HEADER_NAME)
        if header is not None:
            return header

        content_type = request.headers.get("content-type", "")
        if "form" not in content_type:
            return None

        # body() caches the payload so the route handler can parse the form again
        await request.body()
        form = await request.form()
        value = form.get(FORM_FIELD)
        return value if isinstance(value, str) else None
