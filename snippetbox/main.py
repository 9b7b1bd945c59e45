"""
Snippetbox: FastAPI Application Factory
=======================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(application) registers middleware, exception handlers,
       static files and routers around an Application container built by
       build_application() (or supplied by tests).
Who:   uvicorn loads the module-level `app` (uvicorn snippetbox.main:app).
When:  Once at server startup.

Middleware chain (outermost first):
    RequestID → Logging → SecurityHeaders → RecoverPanic → Session → CSRF
    → Authenticate

Exception handlers:
    NotFoundError / HTTP 404  → 404 "Not Found"
    DecodeError               → 400 "Bad Request"
    AuthenticationRequired    → 303 to /user/login
    DatabaseError             → 500, context logged
    Exception (fallback)      → 500 with Connection: close; traceback in the
                                body only when Settings.debug is on

RecoverPanicMiddleware answers unexpected errors from inside the chain, so
those 500s keep the security headers and the access log line. The Exception
handler only sees failures in the outer three middleware.

Lifecycle:
    Startup:  logging, expired-session purge task
    Shutdown: cancel the purge task, dispose the database engine
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from snippetbox import __version__
from snippetbox.config import Settings, settings
from snippetbox.database import dispose_engine
from snippetbox.dependencies import Application, build_application
from snippetbox.exceptions import (
    AuthenticationRequired,
    DatabaseError,
    DecodeError,
    NotFoundError,
)
from snippetbox.middleware.authenticate import AuthenticateMiddleware
from snippetbox.middleware.csrf import CSRFMiddleware
from snippetbox.middleware.logging import RequestLoggingMiddleware
from snippetbox.middleware.recover import RecoverPanicMiddleware, server_error_response
from snippetbox.middleware.request_id import RequestIDMiddleware, request_id_var
from snippetbox.middleware.security_headers import SecurityHeadersMiddleware
from snippetbox.middleware.session import SessionMiddleware
from snippetbox.routes import account, health, pages, snippets, users
from snippetbox.services.session_store import SessionStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] snippetbox.access: message
    Output goes to stdout; the process supervisor collects it.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access logger replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Background Tasks
# ══════════════════════════════════════════════════════════════════════════

async def purge_expired_sessions(store: SessionStore, interval: float) -> None:
    """Delete expired session records every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await store.delete_expired()
        except DatabaseError as e:
            logger.error("Session purge failed: %s | Context: %s", e.message, e.context)
            continue
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

def make_lifespan(application: Application):

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        config = application.settings
        setup_logging(config)
        logger.info("Snippetbox %s starting up...", __version__)

        purge_task = asyncio.create_task(
            purge_expired_sessions(
                application.session_manager.store, config.session_cleanup_interval
            )
        )
        logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

        yield

        logger.info("Snippetbox shutting down...")
        purge_task.cancel()
        try:
            await purge_task
        except asyncio.CancelledError:
            pass
        if application.engine is not None:
            await dispose_engine(application.engine)
        logger.info("Shutdown complete.")

    return lifespan


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI, application: Application) -> None:
    """
    Map exceptions to plain-text status pages.

    Response bodies never include exception context; it is logged server-side.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        logger.info("[%s] %s", request_id_var.get(""), exc.message)
        return PlainTextResponse("Not Found", status_code=404)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return PlainTextResponse("Not Found", status_code=404)
        return PlainTextResponse(
            str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(DecodeError)
    async def handle_decode_error(request: Request, exc: DecodeError):
        logger.warning("[%s] %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return PlainTextResponse("Bad Request", status_code=400)

    @app.exception_handler(AuthenticationRequired)
    async def handle_authentication_required(request: Request, exc: AuthenticationRequired):
        return RedirectResponse("/user/login", status_code=303)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return PlainTextResponse("Internal Server Error", status_code=500)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Last resort for failures outside RecoverPanicMiddleware.

        Starlette runs this in ServerErrorMiddleware, outside every
        middleware we add.
        """
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=exc)
        return server_error_response(exc, application.settings.debug)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(application: Optional[Application] = None) -> FastAPI:
    """
    Assemble the FastAPI app around `application`.

    Without an argument the container is built from the module-level settings.
    """
    if application is None:
        application = build_application(settings)

    app = FastAPI(
        title="Snippetbox",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=make_lifespan(application),
    )
    app.state.application = application

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first, so this is the chain in reverse.
    app.add_middleware(AuthenticateMiddleware, users=application.users)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(SessionMiddleware, manager=application.session_manager)
    app.add_middleware(RecoverPanicMiddleware, application=application)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app, application)

    # ── Routes ────────────────────────────────────────────────────────────
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(health.router)
    app.include_router(pages.router)
    app.include_router(snippets.router)
    app.include_router(users.router)
    app.include_router(account.router)

    return app


app = create_app()
