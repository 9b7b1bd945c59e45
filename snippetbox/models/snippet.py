"""
Snippetbox: Snippet SQLAlchemy Model
====================================

What:  ORM model representing the `snippets` table.
Who:   Used by SnippetService for inserts and lookups, and by Alembic.

Table Design:
    - id: auto-increment integer; "latest" ordering is by id, newest first
    - created / expires: naive UTC DATETIME (see database.utcnow)
    - Rows are never updated or deleted. Expiry is passive: every read
      filters on expires > now.

    Index on created:
        Serves ad-hoc reporting queries by creation time.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class Snippet(Base):
    """A titled piece of text that stops being visible once `expires` passes."""

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 100 characters is also the form-level limit (SnippetCreateForm)
    title: Mapped[str] = mapped_column(String(100), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    expires: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_snippets_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', expires='{self.expires}')>"
