"""
Snippetbox: Authentication-State Middleware
===========================================

What:  Derives Anonymous / Authenticated for each dynamic request.
How:   Reads "authenticatedUserID" from the session and confirms the user still
       exists. Only then is RequestContext.is_authenticated set. A session
       pointing at a deleted account is treated as anonymous, not as an error.
       A failing existence query is an error (500).

Responses to authenticated requests carry Cache-Control: no-store so pages
showing account state are not kept by shared or browser caches.

Enforcement on protected routes is separate: see
snippetbox.dependencies.require_authentication.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.context import AUTH_USER_KEY, bypasses_dynamic_chain, get_request_context
from snippetbox.services.user_service import UserService

logger = logging.getLogger(__name__)


class AuthenticateMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, users: UserService):
        super().__init__(app)
        self.users = users

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if bypasses_dynamic_chain(request.url.path):
            return await call_next(request)

        context = get_request_context(request)
        user_id = context.session.get(AUTH_USER_KEY)

        if user_id is not None:
            if await self.users.exists(user_id):
                context.is_authenticated = True
                context.user_id = user_id
            else:
                logger.info("Session refers to missing user %s; treating as anonymous", user_id)

        response = await call_next(request)

        if context.is_authenticated:
            response.headers["Cache-Control"] = "no-store"
        return response
