"""
Comments on watched entries.

Comments are the one optimistic write in the client: the new comment is
visible immediately, then either confirmed by the server's copy of the
entry or rolled back.

The server stores the comment list as part of the entry, so a request
carries every comment on it. Comments on the same entry are therefore
sent one at a time, each built on the entry as the previous request
left it.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

from operalog.client.collections import RemoteCollection
from operalog.models.entries import Comment, WatchedEntry
from operalog.models.failure import NotFoundLocal

logger = logging.getLogger(__name__)


def without_comment(entry: WatchedEntry, comment_id: str) -> WatchedEntry:
    """Copy of `entry` with the comment `comment_id` removed."""
    comments = [c for c in entry.comments or [] if c.id != comment_id]
    return entry.model_copy(update={"comments": comments or None})


class CommentManager:
    """Appends comments to entries of a watched collection."""

    def __init__(
        self,
        watched: RemoteCollection[WatchedEntry],
        report_error: Callable[[str], None],
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._watched = watched
        self._report_error = report_error
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _find_target(self, opera_id: str) -> WatchedEntry:
        entry = self._watched.get(opera_id)
        if entry is None or entry.id is None:
            raise NotFoundLocal(f"No saved watched entry for opera {opera_id}")
        return entry

    async def add_comment(self, opera_id: str, text: str, author: str) -> Comment | None:
        """
        Append a comment to the watched entry for `opera_id`.

        The entry must exist locally and have been saved on the server.
        The whole entry, new comment included, is sent back to the server,
        whose response replaces the local entry. If the request fails only
        this comment is removed again.

        Returns:
            The comment as synthesized locally, or None if it was not saved.
        """
        async with self._locks[opera_id]:
            try:
                entry = self._find_target(opera_id)
            except NotFoundLocal as e:
                logger.warning("Cannot comment: %s", e)
                self._report_error("Watched opera not found")
                return None

            comment = Comment(
                id=str(uuid4()),
                author=author,
                date=self._clock().isoformat(),
                text=text,
            )
            updated = entry.model_copy(update={"comments": [*(entry.comments or []), comment]})

            saved = await self._watched.add(
                updated,
                optimistic=True,
                revert=lambda current: without_comment(current, comment.id),
            )
        return comment if saved else None
