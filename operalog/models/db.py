"""
SQLAlchemy ORM models for persistent storage.

Each user has at most one wishlist row and one watched row per opera,
enforced by a unique constraint on (user_id, opera_id). Users themselves
live in the identity layer; rows only carry its user id.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return uuid4().hex


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class WishlistEntryDB(Base):
    """An opera a user wants to watch."""

    __tablename__ = "wishlist_entries"
    __table_args__ = (UniqueConstraint("user_id", "opera_id", name="uq_wishlist_user_opera"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    opera_id: Mapped[str] = mapped_column(String(255))
    added_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<WishlistEntryDB(user={self.user_id}, opera={self.opera_id})>"


class WatchedEntryDB(Base):
    """
    A performance a user has seen.

    Cast and comments are small nested lists owned by the entry, so they
    are stored as JSON rather than in child tables.
    """

    __tablename__ = "watched_entries"
    __table_args__ = (UniqueConstraint("user_id", "opera_id", name="uq_watched_user_opera"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    opera_id: Mapped[str] = mapped_column(String(255))
    rating: Mapped[int] = mapped_column(Integer)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    venue: Mapped[str | None] = mapped_column(Text, nullable=True)

    cast: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    comments: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<WatchedEntryDB(user={self.user_id}, opera={self.opera_id}, rating={self.rating})>"
