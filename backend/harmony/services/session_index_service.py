"""
Session index service.

Keeps the user's chat history list (one summary per session, most recent
activity first). Refreshes are full rebuilds from the store, debounced,
and skipped while a send, edit or regenerate is in flight.
"""

from typing import Awaitable, Callable, Optional

from harmony.core.logger import setup_logger
from harmony.interfaces.chat_store import IChatStore
from harmony.models.chat import ChatSessionSummary
from harmony.utils.debounce import Debouncer

logger = setup_logger(__name__)

IndexListener = Callable[[list[ChatSessionSummary]], Awaitable[None]]


class SessionIndexService:
    """Chat history list for one user."""

    def __init__(
        self,
        store: IChatStore,
        user_id: str,
        debounce_seconds: float = 0.5,
        is_busy: Optional[Callable[[], bool]] = None,
        on_refresh: Optional[IndexListener] = None,
    ):
        self._store = store
        self._user_id = user_id
        self._on_refresh = on_refresh
        self._sessions: list[ChatSessionSummary] = []
        self._refresh_count = 0
        self._debouncer = Debouncer(self.refresh, debounce_seconds, suppress=is_busy)

    @property
    def sessions(self) -> list[ChatSessionSummary]:
        return list(self._sessions)

    @property
    def refresh_count(self) -> int:
        """Number of full rebuilds performed."""
        return self._refresh_count

    async def refresh(self) -> list[ChatSessionSummary]:
        """Rebuild the index from the store."""
        self._refresh_count += 1
        try:
            self._sessions = await self._store.get_session_index(self._user_id)
        except Exception as exc:
            logger.error(f"Failed to refresh chat history for {self._user_id}: {exc}")
            return self.sessions
        logger.debug(f"Chat history refreshed for {self._user_id}: {len(self._sessions)} sessions")
        if self._on_refresh:
            await self._on_refresh(self.sessions)
        return self.sessions

    def schedule_refresh(self) -> None:
        """Debounced refresh; bursts collapse into one rebuild."""
        self._debouncer.trigger()

    async def flush(self) -> None:
        await self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()

    async def rename(self, session_id: str, title: str) -> list[ChatSessionSummary]:
        await self._store.update_title(self._user_id, session_id, title)
        return await self.refresh()

    async def delete(self, session_id: str) -> list[ChatSessionSummary]:
        await self._store.delete_session(self._user_id, session_id)
        return await self.refresh()
