from operalog.models.entries import (
    CastMember,
    Comment,
    DeleteResponse,
    WatchedCreateRequest,
    WatchedEntry,
    WishlistCreateRequest,
    WishlistEntry,
)
from operalog.models.failure import (
    AuthRequired,
    ErrorResponse,
    FailureKind,
    KnownError,
    NetworkFailure,
    NotFoundLocal,
    ValidationFailure,
)
from operalog.models.opera import ComposerInfo, FirstPerformance, Opera
from operalog.models.session import SessionState, SessionStatus

__all__ = [
    "AuthRequired",
    "CastMember",
    "Comment",
    "ComposerInfo",
    "DeleteResponse",
    "ErrorResponse",
    "FailureKind",
    "FirstPerformance",
    "KnownError",
    "NetworkFailure",
    "NotFoundLocal",
    "Opera",
    "SessionState",
    "SessionStatus",
    "ValidationFailure",
    "WatchedCreateRequest",
    "WatchedEntry",
    "WishlistCreateRequest",
    "WishlistEntry",
]
