"""
Wishlist and watched-list entries.

These pydantic models are the wire schema for `/api/wishlist` and
`/api/watched`. The server builds them from ORM rows and the client
validates every response body through them before admitting data into
local state. Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for camelCase JSON models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, object]:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CastMember(WireModel):
    """A performer credited in a watched performance."""

    role: str
    artist: str


class Comment(WireModel):
    """A note attached to a watched entry. Append-only from the client."""

    id: str
    author: str
    date: str
    text: str


class WishlistEntry(WireModel):
    """An opera the user wants to see."""

    id: str | None = None
    opera_id: str
    user_id: str | None = None
    added_date: str | None = None

    @property
    def key(self) -> str:
        return self.opera_id


class WatchedEntry(WireModel):
    """A performance the user has seen."""

    id: str | None = None
    opera_id: str
    user_id: str | None = None
    rating: int
    date: str
    venue: str | None = None
    cast: list[CastMember] | None = None
    comments: list[Comment] | None = None

    @property
    def key(self) -> str:
        return self.opera_id


class WishlistCreateRequest(WireModel):
    """Request body for POST /api/wishlist."""

    opera_id: str | None = None


class WatchedCreateRequest(WireModel):
    """
    Request body for POST /api/watched.

    Required fields are optional here so the endpoint can answer with a
    400 and a readable message instead of a schema error.
    """

    opera_id: str | None = None
    rating: int | None = None
    date: str | None = None
    venue: str | None = None
    cast: list[CastMember] | None = None
    comments: list[Comment] | None = None


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    deleted: bool
    message: str = Field(default="", description="User-friendly message about the deletion")
