"""
Application state store.

`OperaStore` is the single object consumers hold: it owns the catalog,
the visible (searched) operas, the wishlist and watched collections, the
session controller, and one user-facing error string.

State is read through properties and changed only through methods. No
method raises on network or validation failures; they set `error`
instead, and nothing is retried automatically.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter, ValidationError

from operalog.client.api import OperaApiClient
from operalog.client.catalog import CatalogLoader, CatalogStatus, search_operas
from operalog.client.collections import RemoteCollection
from operalog.client.comments import CommentManager
from operalog.client.persistence import SnapshotStorage
from operalog.client.session import SessionLifecycleController
from operalog.models.entries import CastMember, Comment, WatchedEntry, WishlistEntry
from operalog.models.opera import Opera
from operalog.models.session import SessionState

logger = logging.getLogger(__name__)

_wishlist_adapter = TypeAdapter(list[WishlistEntry])
_watched_adapter = TypeAdapter(list[WatchedEntry])


class OperaStore:
    """Client-side state synchronized with the OperaLog API."""

    def __init__(
        self,
        api: OperaApiClient | None = None,
        storage: SnapshotStorage | None = None,
    ) -> None:
        self._api = api or OperaApiClient()
        self._storage = storage

        self._error: str | None = None
        self._search_query = ""
        self._operas: tuple[Opera, ...] = ()

        self.catalog = CatalogLoader(
            fetch=self._api.get_catalog,
            on_loaded=self._on_catalog_loaded,
            report_error=self._report_error,
        )
        self.wishlist_sync: RemoteCollection[WishlistEntry] = RemoteCollection(
            "wishlist",
            fetch=self._api.list_wishlist,
            create=self._create_wishlist_entry,
            delete=self._api.remove_wishlist,
            report_error=self._report_error,
        )
        self.watched_sync: RemoteCollection[WatchedEntry] = RemoteCollection(
            "watched list",
            fetch=self._api.list_watched,
            create=self._api.save_watched,
            delete=self._api.remove_watched,
            report_error=self._report_error,
        )
        self.session = SessionLifecycleController(
            [self.wishlist_sync, self.watched_sync],
            fetch_session=self._api.get_session,
        )
        self.comments = CommentManager(self.watched_sync, report_error=self._report_error)

    async def _create_wishlist_entry(self, entry: WishlistEntry) -> WishlistEntry:
        return await self._api.add_wishlist(entry.opera_id)

    # --- Read access ---

    @property
    def all_works(self) -> tuple[Opera, ...]:
        return self.catalog.works

    @property
    def operas(self) -> tuple[Opera, ...]:
        """Catalog entries matching the current search query."""
        return self._operas

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def wishlist(self) -> tuple[WishlistEntry, ...]:
        return self.wishlist_sync.items

    @property
    def watched(self) -> tuple[WatchedEntry, ...]:
        return self.watched_sync.items

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_loading(self) -> bool:
        return (
            self.catalog.status is CatalogStatus.LOADING
            or self.wishlist_sync.loading
            or self.watched_sync.loading
        )

    def get_opera(self, opera_id: str) -> Opera | None:
        for opera in self.catalog.works:
            if opera.id == opera_id:
                return opera
        return None

    def is_in_wishlist(self, opera_id: str) -> bool:
        return opera_id in self.wishlist_sync

    def get_watched(self, opera_id: str) -> WatchedEntry | None:
        return self.watched_sync.get(opera_id)

    # --- Errors ---

    def _report_error(self, message: str) -> None:
        self._error = message

    def clear_error(self) -> None:
        self._error = None

    # --- Catalog and search ---

    async def load_initial_data(self) -> None:
        """Load the catalog unless it is already loaded. Retries after a failure."""
        await self.catalog.load()

    def _on_catalog_loaded(self, works: tuple[Opera, ...]) -> None:
        self._error = None
        self.search_operas(self._search_query)

    def search_operas(self, query: str) -> tuple[Opera, ...]:
        """Recompute the visible operas for `query` without storing the query."""
        self._operas = tuple(search_operas(self.catalog.works, query))
        return self._operas

    def set_search_query(self, query: str) -> tuple[Opera, ...]:
        self._search_query = query
        return self.search_operas(query)

    # --- Session ---

    async def on_session_change(self, state: SessionState) -> None:
        await self.session.observe(state)

    async def refresh_session(self) -> SessionState | None:
        return await self.session.refresh()

    # --- Wishlist ---

    async def load_wishlist(self) -> None:
        await self.wishlist_sync.load()

    async def add_to_wishlist(self, opera_id: str) -> bool:
        return await self.wishlist_sync.add(WishlistEntry(opera_id=opera_id))

    async def remove_from_wishlist(self, opera_id: str) -> bool:
        return await self.wishlist_sync.remove(opera_id)

    # --- Watched ---

    async def load_watched(self) -> None:
        await self.watched_sync.load()

    async def add_to_watched(
        self,
        opera_id: str,
        rating: int,
        date: str | datetime | None = None,
        venue: str | None = None,
        cast: list[CastMember] | None = None,
        comments: list[Comment] | None = None,
    ) -> bool:
        """Record (or re-record) a performance. Defaults the date to now."""
        if date is None:
            date = datetime.now(timezone.utc)
        if isinstance(date, datetime):
            date = date.isoformat()

        entry = WatchedEntry(
            opera_id=opera_id,
            rating=rating,
            date=date,
            venue=venue,
            cast=cast,
            comments=comments,
        )
        return await self.watched_sync.add(entry)

    async def remove_from_watched(self, opera_id: str) -> bool:
        return await self.watched_sync.remove(opera_id)

    async def add_comment(self, opera_id: str, text: str, author: str) -> Comment | None:
        return await self.comments.add_comment(opera_id, text=text, author=author)

    # --- Snapshot ---

    def snapshot(self) -> dict[str, Any]:
        """The persisted subset of state, in the stored JSON shape."""
        return {
            "allWorks": [opera.to_dict() for opera in self.catalog.works],
            "operas": [opera.to_dict() for opera in self._operas],
            "searchQuery": self._search_query,
            "wishlist": [entry.to_wire() for entry in self.wishlist_sync.items],
            "watched": [entry.to_wire() for entry in self.watched_sync.items],
            "initialDataLoadAttempted": self.catalog.attempted,
        }

    def restore(self, snapshot: dict[str, Any]) -> bool:
        """
        Adopt a snapshot produced by `snapshot()`.

        The visible operas are recomputed from the restored catalog and
        query. The wishlist and watched list are only adopted while signed
        in, and only into a collection that has not been loaded yet; they
        are not marked loaded, so they are still fetched from the server.
        Returns False and changes nothing if the snapshot is malformed.
        """
        try:
            works = [Opera.from_dict(entry) for entry in snapshot.get("allWorks") or []]
            wishlist = _wishlist_adapter.validate_python(snapshot.get("wishlist") or [])
            watched = _watched_adapter.validate_python(snapshot.get("watched") or [])
            query = str(snapshot.get("searchQuery") or "")
            attempted = bool(snapshot.get("initialDataLoadAttempted", False))
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.warning("Ignoring malformed snapshot: %s", e)
            return False

        self.catalog.restore(works, attempted)
        if self.session.authenticated:
            if not self.wishlist_sync.loaded:
                self.wishlist_sync.restore(wishlist)
            if not self.watched_sync.loaded:
                self.watched_sync.restore(watched)
        elif wishlist or watched:
            logger.debug("Not signed in, skipping saved wishlist and watched list")
        self.set_search_query(query)
        return True

    def save(self) -> None:
        if self._storage is not None:
            path = self._storage.save(self.snapshot())
            logger.debug("Saved snapshot to %s", path)

    def load_saved(self) -> bool:
        """Restore from storage at startup. Returns True if a snapshot was applied."""
        if self._storage is None:
            return False
        snapshot = self._storage.load()
        if snapshot is None:
            return False
        return self.restore(snapshot)
