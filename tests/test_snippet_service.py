"""
Snippetbox: Snippet Service Tests
=================================

Runs against a real SQLite database (aiosqlite) created per test.

What we test:
    ✅ insert() returns the new id and sets created/expires
    ✅ get() hides expired and missing snippets
    ✅ latest() returns at most 10 unexpired snippets, newest first
"""

from datetime import timedelta

import pytest

from snippetbox.database import utcnow
from snippetbox.exceptions import NotFoundError
from snippetbox.models.snippet import Snippet
from snippetbox.services.snippet_service import LATEST_LIMIT, SnippetService


async def add_expired_snippet(session_factory, title="Old news") -> int:
    now = utcnow()
    snippet = Snippet(
        title=title,
        content="gone",
        created=now - timedelta(days=2),
        expires=now - timedelta(days=1),
    )
    async with session_factory() as session:
        session.add(snippet)
        await session.commit()
    return snippet.id


class TestSnippetServiceInsertGet:

    @pytest.mark.asyncio
    async def test_insert_then_get(self, session_factory):
        service = SnippetService(session_factory)
        snippet_id = await service.insert("O snail", "Climb Mount Fuji,\nBut slowly!", 7)

        snippet = await service.get(snippet_id)
        assert snippet.title == "O snail"
        assert snippet.content == "Climb Mount Fuji,\nBut slowly!"
        assert snippet.expires - snippet.created == timedelta(days=7)

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, session_factory):
        service = SnippetService(session_factory)
        with pytest.raises(NotFoundError):
            await service.get(999)

    @pytest.mark.asyncio
    async def test_get_expired_raises_not_found(self, session_factory):
        service = SnippetService(session_factory)
        expired_id = await add_expired_snippet(session_factory)
        with pytest.raises(NotFoundError):
            await service.get(expired_id)


class TestSnippetServiceLatest:

    @pytest.mark.asyncio
    async def test_empty(self, session_factory):
        assert await SnippetService(session_factory).latest() == []

    @pytest.mark.asyncio
    async def test_limit_order_and_expiry(self, session_factory):
        service = SnippetService(session_factory)
        ids = [await service.insert(f"Snippet {i}", "body", 365) for i in range(12)]
        await add_expired_snippet(session_factory)

        latest = await service.latest()

        assert len(latest) == LATEST_LIMIT
        assert [s.id for s in latest] == sorted(ids, reverse=True)[:LATEST_LIMIT]
        assert all(s.title != "Old news" for s in latest)
