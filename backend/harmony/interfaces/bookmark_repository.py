"""
Bookmark repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from harmony.models.bookmark import Bookmark


class IBookmarkRepository(ABC):
    """Abstract interface for bookmark persistence."""

    @abstractmethod
    async def save(self, user_id: str, bookmark: Bookmark) -> str:
        """
        Save a bookmark keyed by the bookmarked message id.

        Returns:
            Bookmark id
        """
        pass

    @abstractmethod
    async def list(self, user_id: str) -> list[Bookmark]:
        """
        List bookmarks.

        Returns:
            Bookmarks, newest bookmarkedAt first
        """
        pass

    @abstractmethod
    async def remove(self, user_id: str, bookmark_id: str) -> bool:
        """Remove a bookmark."""
        pass

    @abstractmethod
    async def clear(self, user_id: str) -> bool:
        """Remove all bookmarks of a user."""
        pass

    @abstractmethod
    async def subscribe(
        self,
        user_id: str,
        callback: Callable[[list[Bookmark]], Awaitable[None]],
    ) -> Callable[[], None]:
        """Listen to the sorted bookmark list until unsubscribed."""
        pass
