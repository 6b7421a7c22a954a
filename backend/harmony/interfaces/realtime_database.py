"""
Realtime database interface.

Defines the contract for a hierarchical document store addressed by
"/"-separated paths (Firebase Realtime Database semantics).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

ValueListener = Callable[[Any], Awaitable[None]]


class IRealtimeDatabase(ABC):
    """Abstract interface for the realtime document store."""

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check whether the store is configured.

        Returns:
            False when every operation is known to fail
        """
        pass

    @abstractmethod
    async def get(self, path: str) -> Optional[Any]:
        """
        Read the value at a path.

        Returns:
            Value (dict for inner nodes) or None if nothing is stored
        """
        pass

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        """Replace the value at a path. Setting None removes it."""
        pass

    @abstractmethod
    async def update(self, path: str, values: dict[str, Any]) -> None:
        """Merge children into the node at a path."""
        pass

    @abstractmethod
    async def remove(self, path: str) -> None:
        """Delete the node at a path and everything below it."""
        pass

    @abstractmethod
    async def subscribe(self, path: str, callback: ValueListener) -> Callable[[], None]:
        """
        Listen to value changes at a path.

        The callback receives the current value immediately, then the new
        value after every change at, above or below the path, until the
        returned unsubscribe function is called.

        Returns:
            Unsubscribe function
        """
        pass

    @abstractmethod
    async def push(self, path: str, value: dict[str, Any]) -> str:
        """
        Store value under a new child key of path.

        Returns:
            The child key (chronologically sortable push id)
        """
        pass
