"""
Realtime database bookmark repository ("{user}/data/bookmark/{id}").
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from harmony.core.exceptions import InfrastructureError
from harmony.core.logger import setup_logger
from harmony.infrastructure.local.bookmark_repository import parse_bookmarks
from harmony.interfaces.bookmark_repository import IBookmarkRepository
from harmony.interfaces.realtime_database import IRealtimeDatabase
from harmony.models.bookmark import Bookmark

logger = setup_logger(__name__)

T = TypeVar("T")


def bookmarks_path(user_id: str) -> str:
    return f"{user_id}/data/bookmark"


class RealtimeBookmarkRepository(IBookmarkRepository):
    """Bookmarks on the realtime database with local fallback."""

    def __init__(self, database: IRealtimeDatabase, fallback: IBookmarkRepository):
        self._db = database
        self._fallback = fallback

    async def _run(
        self,
        operation: str,
        remote: Callable[[], Awaitable[T]],
        fallback: Callable[[], Awaitable[T]],
    ) -> T:
        if not self._db.is_available():
            logger.warning(f"Realtime database not available, using local fallback for {operation}")
            return await fallback()
        try:
            return await remote()
        except InfrastructureError as exc:
            logger.warning(f"{operation} failed on realtime database, using local fallback: {exc}")
            return await fallback()

    async def save(self, user_id: str, bookmark: Bookmark) -> str:
        async def remote() -> str:
            await self._db.set(f"{bookmarks_path(user_id)}/{bookmark.id}", bookmark.to_document())
            return bookmark.id

        return await self._run("save_bookmark", remote, lambda: self._fallback.save(user_id, bookmark))

    async def list(self, user_id: str) -> list[Bookmark]:
        async def remote() -> list[Bookmark]:
            return parse_bookmarks(await self._db.get(bookmarks_path(user_id)))

        return await self._run("list_bookmarks", remote, lambda: self._fallback.list(user_id))

    async def remove(self, user_id: str, bookmark_id: str) -> bool:
        async def remote() -> bool:
            await self._db.remove(f"{bookmarks_path(user_id)}/{bookmark_id}")
            return True

        return await self._run(
            "remove_bookmark",
            remote,
            lambda: self._fallback.remove(user_id, bookmark_id),
        )

    async def clear(self, user_id: str) -> bool:
        async def remote() -> bool:
            await self._db.remove(bookmarks_path(user_id))
            return True

        return await self._run("clear_bookmarks", remote, lambda: self._fallback.clear(user_id))

    async def subscribe(
        self,
        user_id: str,
        callback: Callable[[list[Bookmark]], Awaitable[None]],
    ) -> Callable[[], None]:
        async def handle_value(value: Any) -> None:
            await callback(parse_bookmarks(value))

        return await self._run(
            "subscribe_bookmarks",
            lambda: self._db.subscribe(bookmarks_path(user_id), handle_value),
            lambda: self._fallback.subscribe(user_id, callback),
        )
