"""
Session lifecycle controller.

Watches the identity layer's session and keeps the per-user collections
in step with it: load on sign-in, clear on sign-out. Clearing on sign-out
is what keeps one user's lists from showing up in the next session on
the same device.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from operalog.client.collections import RemoteCollection
from operalog.models.failure import KnownError
from operalog.models.session import SessionState, SessionStatus

logger = logging.getLogger(__name__)


class SessionLifecycleController:
    """
    Reacts to session transitions.

    - into AUTHENTICATED: load every collection that is not loaded yet,
      concurrently
    - into UNAUTHENTICATED: clear every collection if any holds data
    - AUTHENTICATING: nothing

    A different user id while authenticated is handled as a sign-out
    followed by a sign-in.
    """

    def __init__(
        self,
        collections: list[RemoteCollection[Any]],
        fetch_session: Callable[[], Awaitable[SessionState]] | None = None,
    ) -> None:
        self._collections = collections
        self._fetch_session = fetch_session
        self.state = SessionState.anonymous()

    @property
    def authenticated(self) -> bool:
        return self.state.status is SessionStatus.AUTHENTICATED

    async def observe(self, state: SessionState) -> None:
        """Apply a session state reported by the identity layer."""
        previous = self.state
        self.state = state

        if state.status is SessionStatus.AUTHENTICATED:
            if previous.status is SessionStatus.AUTHENTICATED and previous.user_id != state.user_id:
                logger.info("Session switched users, clearing collections")
                self._clear()
            await self._load_missing()
        elif state.status is SessionStatus.UNAUTHENTICATED:
            if any(c.loaded or len(c) for c in self._collections):
                logger.info("Signed out, clearing collections")
                self._clear()

    async def refresh(self) -> SessionState | None:
        """
        Poll the session endpoint and apply the result.

        Returns the new state, or None if the session could not be fetched.
        """
        if self._fetch_session is None:
            return self.state

        try:
            state = await self._fetch_session()
        except KnownError as e:
            logger.warning("Could not fetch session: %s (%s)", e, e.detail)
            return None

        await self.observe(state)
        return state

    async def _load_missing(self) -> None:
        pending = [c.load() for c in self._collections if not c.loaded]
        if pending:
            await asyncio.gather(*pending)

    def _clear(self) -> None:
        for collection in self._collections:
            collection.clear()
