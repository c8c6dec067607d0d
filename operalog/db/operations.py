"""
Database CRUD operations.

Async functions for reading and writing wishlist and watched entries.
Every query is scoped to a single user id.

Writes are upserts keyed on (user_id, opera_id). The unique constraint is
the authority: if a concurrent request inserts the same key between our
read and our insert, the IntegrityError is treated as a conflict and the
write is retried once as an update of the row that won.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from operalog.models.db import WatchedEntryDB, WishlistEntryDB
from operalog.models.entries import CastMember, Comment, WatchedEntry, WishlistEntry

logger = logging.getLogger(__name__)


@dataclass
class WatchedFields:
    """Validated field values for a watched entry write."""

    rating: int
    date: datetime
    venue: str | None = None
    cast: list[dict[str, Any]] | None = None
    comments: list[dict[str, Any]] | None = None


# --- Wishlist Operations ---


async def list_wishlist(session: AsyncSession, user_id: str) -> list[WishlistEntryDB]:
    """Get all wishlist entries for a user, oldest first."""
    result = await session.execute(
        select(WishlistEntryDB)
        .where(WishlistEntryDB.user_id == user_id)
        .order_by(WishlistEntryDB.added_date, WishlistEntryDB.id)
    )
    return list(result.scalars().all())


async def get_wishlist_entry(
    session: AsyncSession, user_id: str, opera_id: str
) -> WishlistEntryDB | None:
    """Get a user's wishlist entry for an opera, or None."""
    result = await session.execute(
        select(WishlistEntryDB).where(
            WishlistEntryDB.user_id == user_id,
            WishlistEntryDB.opera_id == opera_id,
        )
    )
    return result.scalar_one_or_none()


async def add_wishlist_entry(
    session: AsyncSession, user_id: str, opera_id: str
) -> tuple[WishlistEntryDB, bool]:
    """
    Add an opera to a user's wishlist.

    Returns:
        Tuple of (entry, created) where created is False if the opera
        was already on the wishlist.
    """
    existing = await get_wishlist_entry(session, user_id, opera_id)
    if existing:
        return existing, False

    entry = WishlistEntryDB(user_id=user_id, opera_id=opera_id)
    session.add(entry)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.info("Concurrent wishlist insert for %s/%s, reusing row", user_id, opera_id)
        winner = await get_wishlist_entry(session, user_id, opera_id)
        if winner is None:
            raise
        return winner, False

    await session.refresh(entry)
    return entry, True


async def delete_wishlist_entries(session: AsyncSession, user_id: str, opera_id: str) -> int:
    """
    Remove an opera from a user's wishlist.

    Returns the number of deleted rows (0 if it was not on the wishlist).
    """
    result = await session.execute(
        delete(WishlistEntryDB).where(
            WishlistEntryDB.user_id == user_id,
            WishlistEntryDB.opera_id == opera_id,
        )
    )
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount)  # type: ignore[attr-defined]


def wishlist_to_model(entry: WishlistEntryDB) -> WishlistEntry:
    """Convert a database wishlist row to its wire model."""
    return WishlistEntry(
        id=entry.id,
        opera_id=entry.opera_id,
        user_id=entry.user_id,
        added_date=entry.added_date.isoformat() if entry.added_date else None,
    )


# --- Watched Operations ---


async def list_watched(session: AsyncSession, user_id: str) -> list[WatchedEntryDB]:
    """Get all watched entries for a user, most recent performance first."""
    result = await session.execute(
        select(WatchedEntryDB)
        .where(WatchedEntryDB.user_id == user_id)
        .order_by(WatchedEntryDB.date.desc(), WatchedEntryDB.id)
    )
    return list(result.scalars().all())


async def get_watched_entry(
    session: AsyncSession, user_id: str, opera_id: str
) -> WatchedEntryDB | None:
    """Get a user's watched entry for an opera, or None."""
    result = await session.execute(
        select(WatchedEntryDB).where(
            WatchedEntryDB.user_id == user_id,
            WatchedEntryDB.opera_id == opera_id,
        )
    )
    return result.scalar_one_or_none()


def _apply_watched_fields(entry: WatchedEntryDB, fields: WatchedFields) -> None:
    entry.rating = fields.rating
    entry.date = fields.date
    entry.venue = fields.venue
    entry.cast = fields.cast
    entry.comments = fields.comments


async def upsert_watched_entry(
    session: AsyncSession,
    user_id: str,
    opera_id: str,
    fields: WatchedFields,
) -> tuple[WatchedEntryDB, bool]:
    """
    Insert or update a user's watched entry for an opera.

    If an entry for (user_id, opera_id) exists, it is updated in place.
    Otherwise a new row is created.

    Returns:
        Tuple of (entry, created).
    """
    existing = await get_watched_entry(session, user_id, opera_id)
    if existing:
        _apply_watched_fields(existing, fields)
        await session.flush()
        await session.refresh(existing)
        return existing, False

    entry = WatchedEntryDB(user_id=user_id, opera_id=opera_id)
    _apply_watched_fields(entry, fields)
    session.add(entry)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.info("Concurrent watched insert for %s/%s, updating winner", user_id, opera_id)
        winner = await get_watched_entry(session, user_id, opera_id)
        if winner is None:
            raise
        _apply_watched_fields(winner, fields)
        await session.flush()
        await session.refresh(winner)
        return winner, False

    await session.refresh(entry)
    return entry, True


async def delete_watched_entries(session: AsyncSession, user_id: str, opera_id: str) -> int:
    """
    Delete all of a user's watched entries for an opera.

    Returns the number of deleted rows.
    """
    result = await session.execute(
        delete(WatchedEntryDB).where(
            WatchedEntryDB.user_id == user_id,
            WatchedEntryDB.opera_id == opera_id,
        )
    )
    return int(result.rowcount)  # type: ignore[attr-defined]


def watched_to_model(entry: WatchedEntryDB) -> WatchedEntry:
    """Convert a database watched row to its wire model."""
    return WatchedEntry(
        id=entry.id,
        opera_id=entry.opera_id,
        user_id=entry.user_id,
        rating=entry.rating,
        date=entry.date.isoformat(),
        venue=entry.venue,
        cast=[CastMember.model_validate(c) for c in entry.cast] if entry.cast else None,
        comments=(
            [Comment.model_validate(c) for c in entry.comments] if entry.comments else None
        ),
    )
