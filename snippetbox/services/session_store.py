"""
Snippetbox: Session Store Interface and Backends
================================================

What:  Server-side persistence for session data keyed by an opaque token.
How:   SessionStore is the capability interface the session middleware talks
       to; SQLSessionStore keeps records in the `sessions` table and
       MemorySessionStore keeps them in a dict. Settings.session_backend
       picks one in build_application().

Contract:
    load(token)                 → StoredSession, or None if unknown/expired
    save(token, data, expiry)   → insert or overwrite
    rotate(old, data, expiry)   → new token carrying `data`; old record destroyed
    destroy(token)              → remove (no-op if unknown)
    delete_expired()            → purge records past their expiry, return count

Data is JSON-encoded in both backends, so only JSON-serialisable values can be
put into a session.
"""

import json
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.database import utcnow
from snippetbox.exceptions import DatabaseError
from snippetbox.models.session import SessionRecord

logger = logging.getLogger(__name__)


def generate_token() -> str:
    """43-character URL-safe token with 256 bits of entropy."""
    return secrets.token_urlsafe(32)


@dataclass
class StoredSession:
    data: Dict[str, Any]
    expiry: datetime


class SessionStore(ABC):
    """Abstract session persistence. See module docstring for the contract."""

    @abstractmethod
    async def load(self, token: str) -> Optional[StoredSession]:
        ...

    @abstractmethod
    async def save(self, token: str, data: Dict[str, Any], expiry: datetime) -> None:
        ...

    @abstractmethod
    async def destroy(self, token: str) -> None:
        ...

    @abstractmethod
    async def delete_expired(self) -> int:
        ...

    async def rotate(
        self, old_token: Optional[str], data: Dict[str, Any], expiry: datetime
    ) -> str:
        """
        Issue a new token for `data` and invalidate the old one.

        Used on privilege changes (login, logout, password change) so a token
        captured before the change is worthless afterwards.
        """
        new_token = generate_token()
        await self.save(new_token, data, expiry)
        if old_token:
            await self.destroy(old_token)
        return new_token


class SQLSessionStore(SessionStore):
    """Session records in the `sessions` table, shared by every worker process."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load(self, token: str) -> Optional[StoredSession]:
        try:
            async with self._session_factory() as db:
                record = await db.get(SessionRecord, token)
        except SQLAlchemyError as e:
            logger.error("Database error loading session: %s", str(e))
            raise DatabaseError(context={"operation": "session_load"}) from e

        if record is None or record.expiry <= utcnow():
            return None
        return StoredSession(data=json.loads(record.data), expiry=record.expiry)

    async def save(self, token: str, data: Dict[str, Any], expiry: datetime) -> None:
        try:
            async with self._session_factory() as db:
                await db.merge(SessionRecord(token=token, data=json.dumps(data), expiry=expiry))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error saving session: %s", str(e))
            raise DatabaseError(context={"operation": "session_save"}) from e

    async def destroy(self, token: str) -> None:
        try:
            async with self._session_factory() as db:
                await db.execute(delete(SessionRecord).where(SessionRecord.token == token))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error destroying session: %s", str(e))
            raise DatabaseError(context={"operation": "session_destroy"}) from e

    async def delete_expired(self) -> int:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    delete(SessionRecord).where(SessionRecord.expiry <= utcnow())
                )
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error purging sessions: %s", str(e))
            raise DatabaseError(context={"operation": "session_purge"}) from e
        return result.rowcount or 0


class MemorySessionStore(SessionStore):
    """
    In-process store for development and tests.

    Only safe with a single worker: each process has its own dict.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Tuple[str, datetime]] = {}

    async def load(self, token: str) -> Optional[StoredSession]:
        record = self._records.get(token)
        if record is None:
            return None
        encoded, expiry = record
        if expiry <= utcnow():
            del self._records[token]
            return None
        return StoredSession(data=json.loads(encoded), expiry=expiry)

    async def save(self, token: str, data: Dict[str, Any], expiry: datetime) -> None:
        self._records[token] = (json.dumps(data), expiry)

    async def destroy(self, token: str) -> None:
        self._records.pop(token, None)

    async def delete_expired(self) -> int:
        now = utcnow()
        expired = [token for token, (_, expiry) in self._records.items() if expiry <= now]
        for token in expired:
            del self._records[token]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)
