"""
Snippetbox: Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the test suite.
How:   Service tests run against a throwaway SQLite file per test (aiosqlite).
       HTTP tests run the real middleware chain and templates against fake
       services (tests/fakes.py) and the in-memory session store.

Fixture Hierarchy:
    Function-scoped:
    ├── engine / session_factory: fresh SQLite database with all tables
    ├── test_settings: Settings for the HTTP tests (insecure cookie for http://test)
    ├── application: Application container wired with fakes
    ├── test_app: FastAPI app built around `application`
    └── test_client: HTTPX AsyncClient talking to `test_app`
"""

import os
import re

# Before any snippetbox import: module-level settings and app are built from these
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from snippetbox.config import Settings
from snippetbox.database import Base, create_engine, create_session_factory, dispose_engine
from snippetbox.dependencies import Application
from snippetbox.middleware.session import SessionManager
from snippetbox.services.session_store import MemorySessionStore
from snippetbox.templating import create_templates

# Registered with Base.metadata on import
from snippetbox.models.session import SessionRecord  # noqa: F401
from snippetbox.models.snippet import Snippet  # noqa: F401
from snippetbox.models.user import User  # noqa: F401

from tests.fakes import FakeSnippetService, FakeUserService

CSRF_RX = re.compile(r'name="csrf_token" value="([^"]+)"')


def extract_csrf_token(html: str) -> str:
    match = CSRF_RX.search(html)
    assert match is not None, "no csrf_token field in page"
    return match.group(1)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file with the full schema."""
    settings = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'snippetbox.db'}")
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await dispose_engine(engine)


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///./test.db",
        session_backend="memory",
        session_cookie_secure=False,
        log_level="WARNING",
    )


@pytest.fixture
def application(test_settings):
    """
    Application container with fake services.

    FakeUserService knows one account: alice@example.com / pa$$word (id 1).
    FakeSnippetService holds one snippet with id 1.
    """
    return Application(
        settings=test_settings,
        snippets=FakeSnippetService(),
        users=FakeUserService(),
        session_manager=SessionManager(MemorySessionStore(), cookie_secure=False),
        templates=create_templates(),
    )


@pytest.fixture
def test_app(application):
    from snippetbox.main import create_app
    return create_app(application)


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Cookies persist across requests on the same client. Redirects are not
    followed, so tests can assert on 303 responses and Location headers.
    App exceptions are turned into 500 responses instead of being re-raised.
    """
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def logged_in_client(test_client):
    """test_client after a successful login as alice (user id 1)."""
    page = await test_client.get("/user/login")
    response = await test_client.post(
        "/user/login",
        data={
            "email": "alice@example.com",
            "password": "pa$$word",
            "csrf_token": extract_csrf_token(page.text),
        },
    )
    assert response.status_code == 303
    return test_client
