"""
Wishlist API endpoints.

All routes are scoped to the signed-in user and answer 401 otherwise.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from operalog.api.auth import CurrentUser
from operalog.db import (
    add_wishlist_entry,
    delete_wishlist_entries,
    get_session,
    list_wishlist,
    wishlist_to_model,
)
from operalog.models.entries import DeleteResponse, WishlistCreateRequest, WishlistEntry
from operalog.models.failure import ValidationFailure

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


@router.get("", response_model=list[WishlistEntry])
async def get_wishlist(
    user_id: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[WishlistEntry]:
    """Get the user's wishlist."""
    entries = await list_wishlist(session, user_id)
    return [wishlist_to_model(entry) for entry in entries]


@router.post("", response_model=WishlistEntry, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    request: WishlistCreateRequest,
    user_id: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> WishlistEntry:
    """
    Add an opera to the user's wishlist.

    Adding an opera that is already on the wishlist returns the existing
    entry instead of creating a duplicate.
    """
    if not request.opera_id:
        raise ValidationFailure("operaId is required")

    entry, _created = await add_wishlist_entry(session, user_id, request.opera_id)
    return wishlist_to_model(entry)


@router.delete("", response_model=DeleteResponse)
async def remove_from_wishlist(
    user_id: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_session)],
    opera_id: Annotated[str | None, Query(alias="operaId")] = None,
) -> DeleteResponse:
    """
    Remove an opera from the user's wishlist.

    Removing an opera that is not on the wishlist succeeds with deleted=False.
    """
    if not opera_id:
        raise ValidationFailure("operaId is required")

    count = await delete_wishlist_entries(session, user_id, opera_id)
    if count:
        return DeleteResponse(deleted=True, message="Removed from wishlist")
    return DeleteResponse(deleted=False, message="Not on wishlist")
