"""
Snippetbox: Database Engine and Session Factory
===============================================

What:  Async SQLAlchemy engine, session factory and declarative base.
How:   build_application() creates one engine (the connection pool) per process
       and hands the session factory to every service that talks to MySQL.
       Each service call opens its own short-lived AsyncSession.
When:  Engine is created at startup; disposed in the lifespan shutdown hook.

Connection Pooling Strategy:
    pool_size:        Persistent connections for normal load
    max_overflow:     Temporary connections for traffic spikes
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour; MySQL drops idle
                       connections after wait_timeout (8h by default)
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from snippetbox.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for --autogenerate
    and the test suite uses for create_all() against SQLite.
    """
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Build the async engine from settings.

    Pool sizing options only apply to pooled dialects; SQLite (used by the
    test suite) gets a plain engine.
    """
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url)

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=settings.log_level == "DEBUG",
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: services return ORM objects after the session closes
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    MySQL DATETIME columns carry no zone, so every timestamp we write or
    compare against is naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections. Called from the lifespan shutdown hook."""
    await engine.dispose()
