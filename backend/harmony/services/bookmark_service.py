"""
Bookmark service.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from harmony.interfaces.bookmark_repository import IBookmarkRepository
from harmony.models.bookmark import Bookmark
from harmony.models.chat import ChatMessage
from harmony.utils.datetime_utils import now_ms


class BookmarkService:
    """Saves denormalized copies of chat messages."""

    def __init__(self, repository: IBookmarkRepository):
        self._repo = repository

    async def add(self, user_id: str, message: ChatMessage) -> Bookmark:
        bookmark = Bookmark.from_message(message, bookmarked_at=now_ms())
        await self._repo.save(user_id, bookmark)
        return bookmark

    async def remove(self, user_id: str, bookmark_id: str) -> bool:
        return await self._repo.remove(user_id, bookmark_id)

    async def list(self, user_id: str) -> list[Bookmark]:
        return await self._repo.list(user_id)

    async def is_bookmarked(self, user_id: str, message_id: str) -> bool:
        return any(b.id == message_id for b in await self._repo.list(user_id))

    async def subscribe(
        self,
        user_id: str,
        callback: Callable[[list[Bookmark]], Awaitable[None]],
    ) -> Callable[[], None]:
        return await self._repo.subscribe(user_id, callback)

    async def clear_all(self, user_id: str) -> bool:
        return await self._repo.clear(user_id)
