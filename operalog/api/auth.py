"""
Session endpoints and the authenticated-user dependency.

Sign-in itself happens in the OAuth proxy in front of the app (Google and
Yandex providers). The proxy forwards the signed-in user's id in a request
header; this module is the only place that reads it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from operalog.config import settings
from operalog.models.entries import WireModel
from operalog.models.failure import AuthRequired
from operalog.models.session import SessionStatus

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SessionResponse(WireModel):
    """Projection of the identity layer's session."""

    status: SessionStatus
    user_id: str | None = None


def get_optional_user_id(request: Request) -> str | None:
    """User id forwarded by the identity layer, or None for anonymous requests."""
    value = request.headers.get(settings.auth_user_header, "").strip()
    return value or None


def get_current_user_id(
    user_id: Annotated[str | None, Depends(get_optional_user_id)],
) -> str:
    """
    Dependency that requires an authenticated user.

    Raises:
        AuthRequired: If the request carries no user id
    """
    if not user_id:
        raise AuthRequired()
    return user_id


CurrentUser = Annotated[str, Depends(get_current_user_id)]


@router.get("/session", response_model=SessionResponse)
async def get_auth_session(
    user_id: Annotated[str | None, Depends(get_optional_user_id)],
) -> SessionResponse:
    """Report whether the caller is signed in, and as whom."""
    if user_id is None:
        return SessionResponse(status=SessionStatus.UNAUTHENTICATED)
    return SessionResponse(status=SessionStatus.AUTHENTICATED, user_id=user_id)
