"""
In-memory stand-ins for SnippetService and UserService used by the HTTP tests.

Behaviour:
    users:    dupe@example.com is always taken; alice@example.com / pa$$word
              authenticates as id 1; only ids in `existing_ids` exist.
    snippets: id 1 exists; inserts return 2.
"""

from datetime import datetime
from typing import List

from snippetbox.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
)
from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User

MOCK_TIME = datetime(2024, 3, 17, 10, 15)

MOCK_SNIPPET = Snippet(
    id=1,
    title="An old silent pond",
    content="An old silent pond...",
    created=MOCK_TIME,
    expires=MOCK_TIME.replace(year=2034),
)


class FakeSnippetService:

    def __init__(self):
        self.inserted: List[tuple] = []

    async def insert(self, title: str, content: str, expires: int) -> int:
        self.inserted.append((title, content, expires))
        return 2

    async def get(self, snippet_id: int) -> Snippet:
        if snippet_id == 1:
            return MOCK_SNIPPET
        raise NotFoundError(resource="snippet", resource_id=snippet_id)

    async def latest(self) -> List[Snippet]:
        return [MOCK_SNIPPET]


class FakeUserService:

    def __init__(self):
        self.existing_ids = {1}
        self.password_updates: List[tuple] = []

    async def insert(self, name: str, email: str, password: str) -> None:
        if email == "dupe@example.com":
            raise DuplicateEmailError(email)

    async def authenticate(self, email: str, password: str) -> int:
        if email == "alice@example.com" and password == "pa$$word":
            return 1
        raise InvalidCredentialsError()

    async def exists(self, user_id: int) -> bool:
        return user_id in self.existing_ids

    async def get(self, user_id: int) -> User:
        if user_id not in self.existing_ids:
            raise NotFoundError(resource="user", resource_id=user_id)
        return User(
            id=user_id,
            name="Alice Jones",
            email="alice@example.com",
            hashed_password="",
            created=MOCK_TIME,
        )

    async def password_update(self, user_id: int, current_password: str, new_password: str) -> None:
        if current_password != "pa$$word":
            raise InvalidCredentialsError()
        self.password_updates.append((user_id, new_password))
