"""
Local key-value store interface.

Defines the contract for the local fallback persistence used when the
realtime database is unavailable. Keys are flat strings namespaced by
type, user and session (e.g. "harmony_chat_{user}_{session}").
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional


class IKeyValueStore(ABC):
    """Abstract interface for local key-value persistence."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Read the JSON value stored under key, or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key if present."""
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix, sorted."""
        pass

    @abstractmethod
    async def subscribe(
        self,
        key: str,
        callback: Callable[[Any], Awaitable[None]],
    ) -> Callable[[], None]:
        """
        Listen to changes of one key.

        Fires immediately with the current value and again after every
        write or delete of the key, until unsubscribed.

        Returns:
            Unsubscribe function
        """
        pass
