from dataclasses import dataclass
from enum import Enum


class SessionStatus(str, Enum):
    """Authentication status as reported by the identity layer."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True, slots=True)
class SessionState:
    """The only projection of the identity layer the store observes."""

    status: SessionStatus
    user_id: str | None = None

    @classmethod
    def anonymous(cls) -> "SessionState":
        return cls(status=SessionStatus.UNAUTHENTICATED)
