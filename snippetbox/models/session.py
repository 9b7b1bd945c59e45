"""
Snippetbox: Session Record SQLAlchemy Model
===========================================

What:  ORM model for the `sessions` table used by SQLSessionStore.

Layout:
    token:   opaque URL-safe random string, also the cookie value
    data:    JSON-encoded session dict
    expiry:  absolute naive-UTC deadline; rows past it are ignored on load
             and purged by the background cleanup task
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class SessionRecord(Base):

    __tablename__ = "sessions"

    # secrets.token_urlsafe(32) yields 43 characters
    token: Mapped[str] = mapped_column(String(43), primary_key=True)

    data: Mapped[str] = mapped_column(Text, nullable=False)

    expiry: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("sessions_expiry_idx", "expiry"),
    )
