"""
Local bookmark repository ("harmony_bookmark_{user}" -> list of bookmarks).
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from harmony.core.logger import setup_logger
from harmony.interfaces.bookmark_repository import IBookmarkRepository
from harmony.interfaces.key_value_store import IKeyValueStore
from harmony.models.bookmark import Bookmark

logger = setup_logger(__name__)


def bookmark_key(user_id: str) -> str:
    return f"harmony_bookmark_{user_id}"


def parse_bookmarks(raw: Any) -> list[Bookmark]:
    """Convert stored bookmarks ({id: doc} or [doc, ...]) to models, newest first."""
    if not raw:
        return []
    items = raw.values() if isinstance(raw, dict) else raw
    bookmarks = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            bookmarks.append(Bookmark.model_validate(item))
        except ValidationError as exc:
            logger.warning(f"Skipping malformed bookmark {item.get('id')}: {exc}")
    return sorted(bookmarks, key=lambda b: b.bookmarked_at, reverse=True)


class LocalBookmarkRepository(IBookmarkRepository):
    """Bookmark list kept in the local key-value store."""

    def __init__(self, kv_store: IKeyValueStore):
        self._kv = kv_store

    async def save(self, user_id: str, bookmark: Bookmark) -> str:
        key = bookmark_key(user_id)
        existing = [b for b in await self._kv.get(key) or [] if b.get("id") != bookmark.id]
        existing.append(bookmark.to_document())
        await self._kv.set(key, existing)
        return bookmark.id

    async def list(self, user_id: str) -> list[Bookmark]:
        return parse_bookmarks(await self._kv.get(bookmark_key(user_id)))

    async def remove(self, user_id: str, bookmark_id: str) -> bool:
        key = bookmark_key(user_id)
        existing = await self._kv.get(key)
        if existing is None:
            return False
        await self._kv.set(key, [b for b in existing if b.get("id") != bookmark_id])
        return True

    async def clear(self, user_id: str) -> bool:
        await self._kv.delete(bookmark_key(user_id))
        return True

    async def subscribe(
        self,
        user_id: str,
        callback: Callable[[list[Bookmark]], Awaitable[None]],
    ) -> Callable[[], None]:
        async def handle_value(value: Any) -> None:
            await callback(parse_bookmarks(value))

        return await self._kv.subscribe(bookmark_key(user_id), handle_value)
