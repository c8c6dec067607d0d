"""
HTTP client for the OperaLog API.

Wraps the REST endpoints the client store synchronizes against. Every
response body is validated into typed models before it is returned, and
every failure is raised as a `KnownError` subclass:

- AuthRequired: the server answered 401
- NetworkFailure: transport error or any other non-success status
- ValidationFailure: the body did not match the expected schema
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from operalog.config import (
    CATALOG_ENDPOINT,
    SESSION_ENDPOINT,
    WATCHED_ENDPOINT,
    WISHLIST_ENDPOINT,
    settings,
)
from operalog.models.entries import WatchedEntry, WishlistEntry
from operalog.models.failure import AuthRequired, NetworkFailure, ValidationFailure
from operalog.models.opera import Opera
from operalog.models.session import SessionState, SessionStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

_wishlist_adapter = TypeAdapter(list[WishlistEntry])
_watched_adapter = TypeAdapter(list[WatchedEntry])


def _error_text(response: httpx.Response) -> str:
    """Best-effort extraction of the server's error message."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return response.text


class OperaApiClient:
    """
    Client for the wishlist, watched, catalog and session endpoints.

    A fresh `httpx.AsyncClient` is opened per call, so one instance can be
    shared freely between concurrent coroutines.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            base_url: API base URL. Defaults to settings.api_base_url.
            timeout: Request timeout in seconds. Defaults to settings.request_timeout.
            headers: Extra headers sent with every request (e.g. session cookies).
            transport: Custom transport, e.g. `httpx.ASGITransport` for in-process use.
        """
        self.base_url = base_url or settings.api_base_url
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.headers = headers or {}
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"{method} {path} failed", detail=str(e)) from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthRequired()
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, message: str) -> None:
        if response.is_error:
            raise NetworkFailure(
                message,
                status_code=response.status_code,
                detail=_error_text(response),
            )

    @staticmethod
    def _parse(adapter: TypeAdapter[T], response: httpx.Response) -> T:
        try:
            return adapter.validate_python(response.json())
        except (ValidationError, ValueError) as e:
            raise ValidationFailure(
                f"Unexpected response from {response.request.url.path}", detail=str(e)
            ) from e

    # --- Catalog ---

    async def get_catalog(self) -> list[Opera]:
        """
        Fetch the static opera catalog.

        Raises:
            NetworkFailure: If the request fails
            ValidationFailure: If an entry lacks id, title or composer
        """
        response = await self._request("GET", CATALOG_ENDPOINT)
        self._raise_for_status(response, "Failed to load operas")
        try:
            return [Opera.from_dict(entry) for entry in response.json()]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValidationFailure("Malformed opera catalog", detail=str(e)) from e

    # --- Wishlist ---

    async def list_wishlist(self) -> list[WishlistEntry]:
        """Fetch the signed-in user's wishlist."""
        response = await self._request("GET", WISHLIST_ENDPOINT)
        self._raise_for_status(response, "Failed to fetch wishlist")
        return self._parse(_wishlist_adapter, response)

    async def add_wishlist(self, opera_id: str) -> WishlistEntry:
        """Add an opera to the wishlist, returning the stored entry."""
        response = await self._request("POST", WISHLIST_ENDPOINT, json={"operaId": opera_id})
        self._raise_for_status(response, "Failed to add to wishlist")
        return self._parse(TypeAdapter(WishlistEntry), response)

    async def remove_wishlist(self, opera_id: str) -> bool:
        """
        Remove an opera from the wishlist.

        Returns:
            True if an entry was deleted, False if it was already gone.
        """
        return await self._delete(WISHLIST_ENDPOINT, opera_id, "Failed to remove from wishlist")

    # --- Watched ---

    async def list_watched(self) -> list[WatchedEntry]:
        """Fetch the signed-in user's watched list."""
        response = await self._request("GET", WATCHED_ENDPOINT)
        self._raise_for_status(response, "Failed to fetch watched list")
        return self._parse(_watched_adapter, response)

    async def save_watched(self, entry: WatchedEntry) -> WatchedEntry:
        """Create or update a watched entry, returning the server's canonical copy."""
        response = await self._request("POST", WATCHED_ENDPOINT, json=entry.to_wire())
        self._raise_for_status(response, "Failed to save watched opera")
        return self._parse(TypeAdapter(WatchedEntry), response)

    async def remove_watched(self, opera_id: str) -> bool:
        """Remove an opera from the watched list. See remove_wishlist."""
        return await self._delete(WATCHED_ENDPOINT, opera_id, "Failed to remove from watched list")

    async def _delete(self, path: str, opera_id: str, message: str) -> bool:
        response = await self._request("DELETE", path, params={"operaId": opera_id})
        if response.status_code == httpx.codes.NOT_FOUND:
            logger.debug("DELETE %s for %s: already absent", path, opera_id)
            return False
        self._raise_for_status(response, message)
        try:
            return bool(response.json().get("deleted", True))
        except (ValueError, AttributeError):
            return True

    # --- Session ---

    async def get_session(self) -> SessionState:
        """Fetch the identity layer's view of the current session."""
        response = await self._request("GET", SESSION_ENDPOINT)
        self._raise_for_status(response, "Failed to fetch session")
        try:
            body = response.json()
            return SessionState(
                status=SessionStatus(body["status"]),
                user_id=body.get("userId"),
            )
        except (KeyError, ValueError, AttributeError) as e:
            raise ValidationFailure("Malformed session response", detail=str(e)) from e
