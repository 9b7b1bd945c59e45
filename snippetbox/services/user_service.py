"""
Snippetbox: User Service
========================

What:  Data access for accounts: signup, credential checks, profile lookups
       and password changes.
How:   bcrypt for hashing (cost from settings, never below 12 in production).
       Hashing runs in Starlette's threadpool so a ~250ms bcrypt round does
       not stall the event loop for other requests.
Who:   Called by the user/account route handlers and AuthenticateMiddleware.

Errors:
    DuplicateEmailError      insert() hit the users_uc_email constraint
    InvalidCredentialsError  unknown email or wrong password (indistinguishable)
    NotFoundError            get()/password_update() on a missing id
    DatabaseError            anything else the driver raised
"""

import logging
import secrets
from typing import Optional

import bcrypt
from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from snippetbox.database import utcnow
from snippetbox.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
)
from snippetbox.models.user import EMAIL_CONSTRAINT, User

logger = logging.getLogger(__name__)


def _is_duplicate_email(exc: IntegrityError) -> bool:
    # MySQL: "Duplicate entry '...' for key 'users.users_uc_email'" (errno 1062)
    # SQLite: "UNIQUE constraint failed: users.email"
    message = str(exc.orig)
    return EMAIL_CONSTRAINT in message or "users.email" in message


class UserService:
    """
    Account storage and password verification.

    Args:
        session_factory: shared async session factory
        rounds: bcrypt log-rounds used for new hashes
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], rounds: int = 12):
        self._session_factory = session_factory
        self._rounds = rounds
        self._dummy_hash: Optional[str] = None

    # ── Hashing helpers ───────────────────────────────────────────────────

    async def _hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = await run_in_threadpool(bcrypt.hashpw, password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    async def _verify(password: str, hashed_password: str) -> bool:
        try:
            return await run_in_threadpool(
                bcrypt.checkpw, password.encode("utf-8"), hashed_password.encode("utf-8")
            )
        except ValueError:
            # Input bcrypt refuses to hash (over 72 bytes) cannot match a stored hash
            return False

    async def _dummy(self) -> str:
        """Hash of a random secret at our cost, checked against for unknown emails."""
        if self._dummy_hash is None:
            self._dummy_hash = await self._hash(secrets.token_urlsafe(16))
        return self._dummy_hash

    # ── Operations ────────────────────────────────────────────────────────

    async def insert(self, name: str, email: str, password: str) -> None:
        """
        Create an account.

        Raises:
            DuplicateEmailError: the email is already registered
            DatabaseError: any other insert failure
        """
        user = User(
            name=name,
            email=email,
            hashed_password=await self._hash(password),
            created=utcnow(),
        )
        try:
            async with self._session_factory() as session:
                session.add(user)
                await session.commit()
        except IntegrityError as e:
            if _is_duplicate_email(e):
                raise DuplicateEmailError(email) from e
            logger.error("Integrity error inserting user: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__}) from e
        except SQLAlchemyError as e:
            logger.error("Database error inserting user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

        logger.info("User %d signed up", user.id)

    async def authenticate(self, email: str, password: str) -> int:
        """
        Check an email/password pair and return the user's id.

        Raises:
            InvalidCredentialsError: unknown email or wrong password
        """
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        select(User.id, User.hashed_password).where(User.email == email)
                    )
                ).one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error authenticating user: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

        if row is None:
            # Same bcrypt cost as a real check, so timing does not reveal the account
            await self._verify(password, await self._dummy())
            raise InvalidCredentialsError()

        user_id, hashed_password = row
        if not await self._verify(password, hashed_password):
            raise InvalidCredentialsError()
        return user_id

    async def exists(self, user_id: int) -> bool:
        try:
            async with self._session_factory() as session:
                found = await session.scalar(select(exists().where(User.id == user_id)))
        except SQLAlchemyError as e:
            logger.error("Database error checking user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id}) from e
        return bool(found)

    async def get(self, user_id: int) -> User:
        """
        Profile lookup.

        Existence is checked first, then the row is fetched in a separate
        round-trip. A delete landing between the two is reported as
        NotFoundError as well.
        """
        if not await self.exists(user_id):
            raise NotFoundError(resource="user", resource_id=user_id)

        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id}) from e

        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    async def password_update(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Replace the password after re-verifying the current one.

        The stored hash is read and overwritten inside one session but without
        a row lock; see DESIGN.md for the concurrency note.

        Raises:
            NotFoundError: no such user
            InvalidCredentialsError: current_password does not match
        """
        try:
            async with self._session_factory() as session:
                hashed_password = await session.scalar(
                    select(User.hashed_password).where(User.id == user_id)
                )
                if hashed_password is None:
                    raise NotFoundError(resource="user", resource_id=user_id)

                if not await self._verify(current_password, hashed_password):
                    raise InvalidCredentialsError()

                await session.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(hashed_password=await self._hash(new_password))
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Database error updating password for user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id}) from e

        logger.info("User %d changed their password", user_id)
