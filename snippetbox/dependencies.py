"""
Snippetbox: Application Container and Route Dependencies
========================================================

What:  The single Application object holding every shared collaborator, and
       the FastAPI dependencies route handlers use to reach it.
How:   build_application() wires settings → engine → services → session
       manager → templates once per process. create_app() stores the result on
       app.state.application; handlers receive it via Depends(get_application)
       and never import module-level singletons.

Tests build an Application by hand (fake services, in-memory session store)
and pass it to create_app().
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncEngine

from snippetbox.config import Settings
from snippetbox.context import REDIRECT_AFTER_LOGIN_KEY, RequestContext, get_request_context
from snippetbox.database import create_engine, create_session_factory
from snippetbox.exceptions import AuthenticationRequired
from snippetbox.middleware.session import SessionManager
from snippetbox.services.session_store import MemorySessionStore, SessionStore, SQLSessionStore
from snippetbox.services.snippet_service import SnippetService
from snippetbox.services.user_service import UserService
from snippetbox.templating import create_templates

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """
    Shared, read-only collaborators for the lifetime of the process.

    Attributes:
        settings:        validated configuration
        snippets:        snippet persistence
        users:           account persistence and password checks
        session_manager: session loading, saving and cookie policy
        templates:       Jinja2 environment with the page templates
        engine:          database engine to dispose on shutdown (None in tests)
    """

    settings: Settings
    snippets: SnippetService
    users: UserService
    session_manager: SessionManager
    templates: Jinja2Templates
    engine: Optional[AsyncEngine] = None


def build_application(settings: Settings) -> Application:
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    store: SessionStore
    if settings.session_backend == "memory":
        store = MemorySessionStore()
    else:
        store = SQLSessionStore(session_factory)
    logger.info("Session backend: %s", settings.session_backend)

    return Application(
        settings=settings,
        snippets=SnippetService(session_factory),
        users=UserService(session_factory, rounds=settings.bcrypt_rounds),
        session_manager=SessionManager(
            store,
            lifetime=timedelta(seconds=settings.session_lifetime),
            cookie_name=settings.session_cookie_name,
            cookie_secure=settings.session_cookie_secure,
        ),
        templates=create_templates(),
        engine=engine,
    )


# ── Dependencies ──────────────────────────────────────────────────────────

def get_application(request: Request) -> Application:
    return request.app.state.application


def get_context(request: Request) -> RequestContext:
    return get_request_context(request)


async def require_authentication(
    request: Request,
    context: RequestContext = Depends(get_context),
) -> RequestContext:
    """
    Route guard for pages that need a logged-in user.

    Anonymous GET requests have their path remembered so login can send the
    user back there once. Then AuthenticationRequired turns into a
    303 to /user/login.
    """
    if context.is_authenticated:
        return context

    if request.method == "GET":
        context.session.put(REDIRECT_AFTER_LOGIN_KEY, request.url.path)
    raise AuthenticationRequired(request.url.path)
