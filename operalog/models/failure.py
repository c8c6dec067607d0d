"""
Failure classification shared by the API and the client store.

Every failure the application knows how to explain is a `KnownError`
subclass carrying a `FailureKind` and the HTTP status it maps to.

The client store never lets these escape its public methods: they are
caught at the component boundary and turned into a single user-facing
error string.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Transport or non-2xx response
    NETWORK = "network"

    # 401 from the API; expected for anonymous users on read paths
    AUTH_REQUIRED = "auth_required"

    # Malformed request payload or unparseable response body
    VALIDATION = "validation"

    # Referenced entity absent from the local cache
    NOT_FOUND_LOCAL = "not_found_local"

    SERVICE_UNAVAILABLE = "service_unavailable"


class ErrorResponse(BaseModel):
    """Error body returned by every API endpoint on failure."""

    error: str = Field(..., description="User-appropriate explanation of what went wrong")


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to the API error body."""
        return ErrorResponse(error=self.message)


class NetworkFailure(KnownError):
    """A request failed in transport or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(
            kind=FailureKind.NETWORK,
            message=message,
            detail=detail,
            status_code=status_code or 502,
        )


class AuthRequired(KnownError):
    """The endpoint needs an authenticated session."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(kind=FailureKind.AUTH_REQUIRED, message=message, status_code=401)


class ValidationFailure(KnownError):
    """A payload failed validation."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.VALIDATION,
            message=message,
            detail=detail,
            status_code=400,
        )


class NotFoundLocal(KnownError):
    """An entity referenced by a client operation is not in local state."""

    def __init__(self, message: str):
        super().__init__(kind=FailureKind.NOT_FOUND_LOCAL, message=message, status_code=404)
