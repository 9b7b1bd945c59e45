"""
Snippetbox: User SQLAlchemy Model
=================================

What:  ORM model representing the `users` table.
Who:   Used by UserService and by Alembic.

Constraints:
    users_uc_email: unique email. UserService.insert recognises violations of
    this constraint by name and raises DuplicateEmailError instead of a
    generic DatabaseError.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base

EMAIL_CONSTRAINT = "users_uc_email"


class User(Base):
    """A registered account. `hashed_password` is a bcrypt hash, never plaintext."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # bcrypt output is always 60 ASCII characters
    hashed_password: Mapped[str] = mapped_column(String(60), nullable=False)

    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("email", name=EMAIL_CONSTRAINT),
    )

    def __repr__(self) -> str:
        # hashed_password deliberately left out of the repr
        return f"<User(id={self.id}, email='{self.email}')>"
