"""
Snippetbox: Per-Request Context
===============================

What:  The typed object the dynamic middleware chain fills in for each request.
How:   SessionMiddleware creates it and stores it on request.state.context;
       CSRFMiddleware sets csrf_token; AuthenticateMiddleware sets
       is_authenticated and user_id. Handlers read it through
       snippetbox.dependencies.get_context.

Session keys used across the app are defined here so middleware and routes
agree on them.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from starlette.requests import Request

if TYPE_CHECKING:
    from snippetbox.middleware.session import Session

# ── Session keys ──────────────────────────────────────────────────────────
AUTH_USER_KEY = "authenticatedUserID"
FLASH_KEY = "flash"
REDIRECT_AFTER_LOGIN_KEY = "redirectPathAfterLogin"
CSRF_SESSION_KEY = "csrf_token"


def bypasses_dynamic_chain(path: str) -> bool:
    """Health check and static assets skip session loading, CSRF and authentication."""
    return path == "/ping" or path.startswith("/static/")


@dataclass
class RequestContext:
    """
    State derived for one request.

    Attributes:
        session:          the request's session (loaded or freshly created)
        csrf_token:       anti-forgery token to embed in forms
        is_authenticated: True only if the session's user id still exists
        user_id:          that user id, or None when anonymous
    """

    session: "Session"
    csrf_token: str = ""
    is_authenticated: bool = False
    user_id: Optional[int] = None


def get_request_context(request: Request) -> RequestContext:
    context = getattr(request.state, "context", None)
    if context is None:
        raise LookupError(
            "No request context. SessionMiddleware must run before this code "
            f"(path {request.url.path} may be exempt from the dynamic chain)."
        )
    return context
