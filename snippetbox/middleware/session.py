"""
Snippetbox: Session Middleware
==============================

What:  Loads the server-side session named by the request's cookie, exposes it
       to the rest of the request, and saves it afterwards.
How:   SessionManager owns the store and cookie policy. SessionMiddleware
       wraps each dynamic request: load → RequestContext → handler → commit →
       Set-Cookie (only when the session changed).

Lifetime:
    Fixed TTL from creation (Settings.session_lifetime, 12h by default). The
    deadline travels with the session through token rotation, so renewing a
    token never extends a session.

Rotation:
    Session.renew_token() marks the session; on commit the store issues a new
    token carrying the same data and destroys the old record.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.context import RequestContext, bypasses_dynamic_chain
from snippetbox.database import utcnow
from snippetbox.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class Session:
    """
    Mutable view of one session's data.

    `modified` is set by every write so unchanged sessions are not saved and
    anonymous visitors who never touch the session get no cookie.
    """

    def __init__(self, token: Optional[str], data: Dict[str, Any], deadline):
        self.token = token
        self.deadline = deadline
        self.modified = False
        self.renewed = False
        self._data = data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def pop(self, key: str, default: Any = None) -> Any:
        """Read-once access: return the value and delete it."""
        if key not in self._data:
            return default
        self.modified = True
        return self._data.pop(key)

    def pop_string(self, key: str) -> str:
        value = self.pop(key, "")
        return value if isinstance(value, str) else ""

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self.modified = True

    def renew_token(self) -> None:
        self.renewed = True
        self.modified = True

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SessionManager:
    """
    Session lifecycle and cookie policy.

    Args:
        store: persistence backend
        lifetime: fixed TTL for new sessions
        cookie_name: name of the cookie holding the token
        cookie_secure: send the cookie over HTTPS only
    """

    def __init__(
        self,
        store: SessionStore,
        lifetime: timedelta = timedelta(hours=12),
        cookie_name: str = "session",
        cookie_secure: bool = True,
    ):
        self.store = store
        self.lifetime = lifetime
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure

    async def load(self, token: Optional[str]) -> Session:
        if token:
            stored = await self.store.load(token)
            if stored is not None:
                return Session(token, stored.data, stored.expiry)
        return Session(None, {}, utcnow() + self.lifetime)

    async def commit(self, session: Session) -> bool:
        """
        Persist a modified session. Returns True when a cookie must be written.
        """
        if not session.modified:
            return False

        if session.token is None or session.renewed:
            session.token = await self.store.rotate(
                session.token, session.to_dict(), session.deadline
            )
            session.renewed = False
        else:
            await self.store.save(session.token, session.to_dict(), session.deadline)
        session.modified = False
        return True

    def write_cookie(self, response: Response, session: Session) -> None:
        max_age = max(int((session.deadline - utcnow()).total_seconds()), 0)
        response.set_cookie(
            self.cookie_name,
            session.token,
            max_age=max_age,
            path="/",
            secure=self.cookie_secure,
            httponly=True,
            samesite="lax",
        )


class SessionMiddleware(BaseHTTPMiddleware):
    """
    First middleware of the dynamic chain; creates the RequestContext.

    Requests for /ping and /static/* pass straight through.
    """

    def __init__(self, app, manager: SessionManager):
        super().__init__(app)
        self.manager = manager

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if bypasses_dynamic_chain(request.url.path):
            return await call_next(request)

        session = await self.manager.load(request.cookies.get(self.manager.cookie_name))
        request.state.context = RequestContext(session=session)

        response = await call_next(request)

        if await self.manager.commit(session):
            self.manager.write_cookie(response, session)
        # Responses differ per session (flash, nav links, CSRF token)
        response.headers.append("Vary", "Cookie")
        return response
