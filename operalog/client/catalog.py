"""
Catalog loading and search.

The catalog is fetched at most once per session. Search is a pure
projection over whatever catalog is currently loaded.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from enum import Enum

from operalog.models.failure import KnownError
from operalog.models.opera import Opera

logger = logging.getLogger(__name__)


def search_operas(catalog: Iterable[Opera], query: str) -> list[Opera]:
    """
    Filter the catalog by a free-text query.

    An empty query returns the whole catalog. Otherwise an opera matches
    when its title or composer contains the query, ignoring case.
    """
    if not query:
        return list(catalog)
    return [opera for opera in catalog if opera.matches(query)]


class CatalogStatus(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


class CatalogLoader:
    """
    Loads the static catalog once and keeps it in memory.

    `load()` fetches only from NOT_ATTEMPTED or ERRORED. A successful load
    replaces the catalog in one step; a failed load keeps whatever catalog
    was there before.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[Opera]]],
        on_loaded: Callable[[tuple[Opera, ...]], None],
        report_error: Callable[[str], None],
    ) -> None:
        self._fetch = fetch
        self._on_loaded = on_loaded
        self._report_error = report_error
        self.status = CatalogStatus.NOT_ATTEMPTED
        self.works: tuple[Opera, ...] = ()

    @property
    def attempted(self) -> bool:
        return self.status is not CatalogStatus.NOT_ATTEMPTED

    async def load(self) -> None:
        """Fetch the catalog unless it is loaded or a fetch is already running."""
        if self.status in (CatalogStatus.LOADED, CatalogStatus.LOADING):
            return

        self.status = CatalogStatus.LOADING
        try:
            operas = await self._fetch()
        except KnownError as e:
            logger.error("Failed to load opera catalog: %s (%s)", e, e.detail)
            self.status = CatalogStatus.ERRORED
            self._report_error("Failed to load operas")
            return

        self.works = tuple(operas)
        self.status = CatalogStatus.LOADED
        logger.info("Loaded %d operas", len(self.works))
        self._on_loaded(self.works)

    def restore(self, works: Sequence[Opera], attempted: bool) -> None:
        """Adopt a persisted catalog. Only a non-empty one counts as loaded."""
        self.works = tuple(works)
        if attempted and self.works:
            self.status = CatalogStatus.LOADED
        else:
            self.status = CatalogStatus.NOT_ATTEMPTED
