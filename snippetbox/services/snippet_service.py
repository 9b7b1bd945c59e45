"""
Snippetbox: Snippet Service
===========================

What:  Data access for snippets: insert, fetch one, list the latest.
How:   Each call opens its own AsyncSession from the shared factory and runs a
       single statement. SQLAlchemy errors are logged and wrapped in
       DatabaseError so the driver's message never reaches a response.
Who:   Called by the snippet and home route handlers.

Visibility rule:
    A snippet is visible only while expires > now (UTC). Nothing is deleted;
    get() and latest() filter expired rows out.
"""

import logging
from datetime import timedelta
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.database import utcnow
from snippetbox.exceptions import DatabaseError, NotFoundError
from snippetbox.models.snippet import Snippet

logger = logging.getLogger(__name__)

# How many snippets the home page lists
LATEST_LIMIT = 10


class SnippetService:
    """
    Responsibilities:
        - insert(): persist a new snippet, return its id
        - get(): single unexpired snippet, NotFoundError otherwise
        - latest(): up to LATEST_LIMIT unexpired snippets, newest id first
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert(self, title: str, content: str, expires: int) -> int:
        """
        Persist a snippet that expires `expires` days from now.

        Returns:
            The new snippet's id.

        Raises:
            DatabaseError: insert failed
        """
        now = utcnow()
        snippet = Snippet(
            title=title,
            content=content,
            created=now,
            expires=now + timedelta(days=expires),
        )
        try:
            async with self._session_factory() as session:
                session.add(snippet)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Database error inserting snippet: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the snippet.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Snippet %d created (expires in %d days)", snippet.id, expires)
        return snippet.id

    async def get(self, snippet_id: int) -> Snippet:
        """
        Fetch one unexpired snippet.

        Query plan:
            SELECT ... FROM snippets WHERE expires > :now AND id = :id
            → primary key lookup

        Raises:
            NotFoundError: no such id, or the snippet has expired
            DatabaseError: query failed
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Snippet).where(
                        Snippet.expires > utcnow(),
                        Snippet.id == snippet_id,
                    )
                )
                snippet = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching snippet %s: %s", snippet_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the snippet.",
                context={"snippet_id": snippet_id},
            ) from e

        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=snippet_id)
        return snippet

    async def latest(self) -> List[Snippet]:
        """
        The most recent unexpired snippets.

        Ordered by id descending (ids are assigned in insertion order),
        capped at LATEST_LIMIT.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Snippet)
                    .where(Snippet.expires > utcnow())
                    .order_by(desc(Snippet.id))
                    .limit(LATEST_LIMIT)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing snippets: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve snippets.",
                context={"error_type": type(e).__name__},
            ) from e
