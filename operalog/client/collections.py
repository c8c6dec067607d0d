"""
Local mirror of a per-user server-side collection.

One `RemoteCollection` backs the wishlist and another the watched list.
The server is the source of truth: entries enter local state only from a
server response, except for explicitly optimistic writes which are rolled
back if the server rejects them.

Ordering
--------
Requests can overlap (a load may still be in flight when an add returns),
so every request takes a number from a monotonic counter and the
collection remembers:

- the issue number of the load whose result is currently applied
- the counter value at which the last mutation result was applied
- the counter value of the last clear()

A load result issued before the applied load or the last clear is
dropped. One issued before a mutation result was applied predates that
change on the server, so it is discarded and the collection is fetched
again. A mutation result is applied only if it was issued after the
applied load and the last clear; otherwise it is dropped.
"""

import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, Protocol, TypeVar

from operalog.models.failure import AuthRequired, KnownError

logger = logging.getLogger(__name__)


class Keyed(Protocol):
    @property
    def key(self) -> str: ...


T = TypeVar("T", bound=Keyed)


class RemoteCollection(Generic[T]):
    """
    A server-backed list of entries, unique by `key` (the opera id).

    Failures never escape `load`, `add` or `remove`: they are logged and
    passed to `report_error` as a user-facing message.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[list[T]]],
        create: Callable[[T], Awaitable[T]],
        delete: Callable[[str], Awaitable[bool]],
        report_error: Callable[[str], None],
    ) -> None:
        """
        Args:
            name: Human-readable collection name used in error messages
            fetch: Returns the full collection from the server
            create: Stores one entry and returns the server's canonical copy
            delete: Deletes the entry with the given key
            report_error: Receives user-facing error messages
        """
        self.name = name
        self._fetch = fetch
        self._create = create
        self._delete = delete
        self._report_error = report_error

        self._items: list[T] = []
        self.loaded = False
        self._in_flight_loads = 0

        self._counter = itertools.count(1)
        self._applied_load_seq = 0
        self._mutation_seq = 0
        self._cleared_seq = 0

    # --- Read access ---

    @property
    def items(self) -> tuple[T, ...]:
        return tuple(self._items)

    @property
    def loading(self) -> bool:
        return self._in_flight_loads > 0

    def get(self, key: str) -> T | None:
        for item in self._items:
            if item.key == key:
                return item
        return None

    def __contains__(self, key: object) -> bool:
        return any(item.key == key for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    # --- Sequencing ---

    def _next_seq(self) -> int:
        return next(self._counter)

    def _load_is_stale(self, seq: int) -> bool:
        return seq <= max(self._applied_load_seq, self._cleared_seq)

    def _mutation_is_current(self, seq: int) -> bool:
        return seq > max(self._applied_load_seq, self._cleared_seq)

    # --- Local state changes ---

    def _put(self, item: T) -> None:
        """Replace any entry with the same key by `item`, appended at the end."""
        self._items = [existing for existing in self._items if existing.key != item.key]
        self._items.append(item)

    def _discard(self, key: str) -> None:
        self._items = [item for item in self._items if item.key != key]

    def _rollback(
        self,
        key: str,
        previous: T | None,
        position: int,
        revert: Callable[[T], T] | None,
    ) -> None:
        """
        Undo an optimistic _put.

        With `revert`, the entry as it is now is mapped back, so changes
        applied to it since the _put survive and an entry removed meanwhile
        stays removed. Without it the prior entry is restored. The entry
        goes back to its old position.
        """
        current = self.get(key)
        self._discard(key)
        if previous is None:
            return
        if revert is not None:
            if current is None:
                return
            previous = revert(current)
        self._items.insert(position, previous)

    def clear(self) -> None:
        """Forget all entries and invalidate every in-flight request."""
        self._items = []
        self.loaded = False
        self._cleared_seq = self._next_seq()

    def restore(self, items: list[T]) -> None:
        """Adopt persisted entries. They still need a load to count as loaded."""
        self._items = list(items)
        self.loaded = False

    # --- Server operations ---

    async def load(self) -> None:
        """
        Replace local entries with the server's collection.

        No-op if already loaded and no load is running. A 401 means the
        user is anonymous: the collection becomes empty without an error.
        If an add or remove is applied while the fetch is in flight, the
        fetched list is out of date and is fetched again.
        """
        if self.loaded and not self.loading:
            return

        self._in_flight_loads += 1
        try:
            while not await self._load_once():
                logger.info("Refetching %s: it changed while loading", self.name)
        finally:
            self._in_flight_loads -= 1

    async def _load_once(self) -> bool:
        """One fetch. Returns False if the result predates an applied mutation."""
        seq = self._next_seq()
        try:
            items = await self._fetch()
        except AuthRequired:
            if not self._load_is_stale(seq):
                logger.debug("%s load: not signed in", self.name)
                self._items = []
                self.loaded = False
            return True
        except KnownError as e:
            if seq > self._cleared_seq:
                logger.error("Failed to load %s: %s (%s)", self.name, e, e.detail)
                self.loaded = False
                self._report_error(f"Failed to load {self.name}")
            return True

        if self._load_is_stale(seq):
            logger.info("Dropping stale %s load response", self.name)
            return True
        if seq <= self._mutation_seq:
            return False

        self._items = list(items)
        self.loaded = True
        self._applied_load_seq = seq
        return True

    async def add(
        self,
        item: T,
        optimistic: bool = False,
        revert: Callable[[T], T] | None = None,
    ) -> bool:
        """
        Store an entry on the server and mirror the result locally.

        On success any local entry with the same key is replaced by the
        server's copy. With `optimistic=True` the entry is shown locally
        before the server answers and rolled back if the request fails.
        `revert` maps the local entry back to its state without this write;
        by default the entry it replaced is restored.

        Returns:
            True if the server accepted the entry.
        """
        seq = self._next_seq()
        previous = self.get(item.key)
        position = self._items.index(previous) if previous is not None else -1
        if optimistic:
            self._put(item)

        try:
            saved = await self._create(item)
        except KnownError as e:
            if optimistic and self._mutation_is_current(seq):
                self._rollback(item.key, previous, position, revert)
            if seq > self._cleared_seq:
                logger.error("Failed to save to %s: %s (%s)", self.name, e, e.detail)
                self._report_error(self._mutation_error("add to", e))
            return False

        if self._mutation_is_current(seq):
            self._put(saved)
            self._mutation_seq = self._next_seq()
        else:
            logger.info("Dropping stale %s add response for %s", self.name, item.key)
        return True

    async def remove(self, key: str) -> bool:
        """
        Delete an entry on the server, then locally.

        A key the server no longer has counts as removed.

        Returns:
            True if the entry is gone from the server.
        """
        seq = self._next_seq()
        try:
            await self._delete(key)
        except KnownError as e:
            if seq > self._cleared_seq:
                logger.error("Failed to remove %s from %s: %s (%s)", key, self.name, e, e.detail)
                self._report_error(self._mutation_error("remove from", e))
            return False

        if self._mutation_is_current(seq):
            self._discard(key)
            self._mutation_seq = self._next_seq()
        else:
            logger.info("Dropping stale %s remove response for %s", self.name, key)
        return True

    def _mutation_error(self, verb: str, error: KnownError) -> str:
        if isinstance(error, AuthRequired):
            return f"Sign in to {verb} your {self.name}"
        return f"Failed to {verb} {self.name}"
