"""
Watched-list API endpoints.

POST is an upsert keyed on (user, opera): recording the same opera twice
updates the existing entry. All routes answer 401 without a signed-in user.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from operalog.api.auth import CurrentUser
from operalog.config import MAX_RATING, MIN_RATING
from operalog.db import (
    WatchedFields,
    delete_watched_entries,
    get_session,
    list_watched,
    upsert_watched_entry,
    watched_to_model,
)
from operalog.models.entries import DeleteResponse, WatchedCreateRequest, WatchedEntry
from operalog.models.failure import ValidationFailure

router = APIRouter(prefix="/api/watched", tags=["watched"])


def _parse_date(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime, accepting a trailing Z."""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationFailure("Invalid date format", detail=str(e)) from e


def _validate(request: WatchedCreateRequest) -> tuple[str, WatchedFields]:
    if not request.opera_id or request.rating is None or not request.date:
        raise ValidationFailure("operaId, rating, and date are required")

    if not MIN_RATING <= request.rating <= MAX_RATING:
        raise ValidationFailure(f"rating must be between {MIN_RATING} and {MAX_RATING}")

    fields = WatchedFields(
        rating=request.rating,
        date=_parse_date(request.date),
        venue=request.venue or None,
        cast=[member.model_dump() for member in request.cast] if request.cast else None,
        comments=(
            [comment.model_dump() for comment in request.comments] if request.comments else None
        ),
    )
    return request.opera_id, fields


@router.get("", response_model=list[WatchedEntry])
async def get_watched(
    user_id: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[WatchedEntry]:
    """Get the user's watched list."""
    entries = await list_watched(session, user_id)
    return [watched_to_model(entry) for entry in entries]


@router.post("", response_model=WatchedEntry, status_code=status.HTTP_201_CREATED)
async def save_watched(
    request: WatchedCreateRequest,
    user_id: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> WatchedEntry:
    """
    Add or update a watched opera.

    The request carries the complete entry, including cast and comments;
    it replaces whatever was stored for the same opera.
    """
    opera_id, fields = _validate(request)
    entry, _created = await upsert_watched_entry(session, user_id, opera_id, fields)
    return watched_to_model(entry)


@router.delete("", response_model=DeleteResponse)
async def remove_from_watched(
    user_id: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_session)],
    opera_id: Annotated[str | None, Query(alias="operaId")] = None,
) -> DeleteResponse:
    """
    Delete every watched entry the user has for an opera.

    Deleting an opera that is not on the list succeeds with deleted=False.
    """
    if not opera_id:
        raise ValidationFailure("operaId is required in query parameters")

    count = await delete_watched_entries(session, user_id, opera_id)
    if count:
        return DeleteResponse(deleted=True, message="Removed from watched list")
    return DeleteResponse(deleted=False, message="Watched item not found or already deleted")
