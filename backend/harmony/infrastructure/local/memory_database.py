"""
In-memory implementation of the realtime database.

Keeps a nested-dict tree with Firebase semantics: empty nodes vanish,
reads return copies, and listeners fire after every related write.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Optional

from harmony.core.exceptions import StoreUnavailableError
from harmony.interfaces.realtime_database import IRealtimeDatabase, ValueListener
from harmony.services.realtime_service import PathListenerHub, normalize_path
from harmony.utils.push_id import generate_push_id


class InMemoryRealtimeDatabase(IRealtimeDatabase):
    """Realtime database held in process memory."""

    def __init__(self, available: bool = True):
        self._root: dict[str, Any] = {}
        self._available = available
        self._hub = PathListenerHub()

    def set_available(self, available: bool) -> None:
        """Simulate the store going offline or coming back."""
        self._available = available

    def is_available(self) -> bool:
        return self._available

    def _check(self) -> None:
        if not self._available:
            raise StoreUnavailableError("Realtime database unavailable")

    def _read(self, path: str) -> Optional[Any]:
        node: Any = self._root
        for part in normalize_path(path).split("/"):
            if not part:
                continue
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        if isinstance(node, dict) and not node:
            return None
        return copy.deepcopy(node)

    async def _read_async(self, path: str) -> Optional[Any]:
        return self._read(path)

    def _write(self, path: str, value: Any) -> None:
        parts = [p for p in normalize_path(path).split("/") if p]
        if not parts:
            self._root = copy.deepcopy(value) if isinstance(value, dict) else {}
            return
        if value is None or (isinstance(value, dict) and not value):
            self._delete(parts)
            return
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    def _delete(self, parts: list[str]) -> None:
        trail = [self._root]
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                return
            trail.append(child)
            node = child
        node.pop(parts[-1], None)
        # Prune empty ancestors.
        for depth in range(len(parts) - 1, 0, -1):
            if trail[depth]:
                break
            trail[depth - 1].pop(parts[depth - 1], None)

    async def get(self, path: str) -> Optional[Any]:
        self._check()
        return self._read(path)

    async def set(self, path: str, value: Any) -> None:
        self._check()
        self._write(path, value)
        await self._hub.dispatch(path, self._read_async)

    async def update(self, path: str, values: dict[str, Any]) -> None:
        self._check()
        base = normalize_path(path)
        for key, value in values.items():
            self._write(f"{base}/{key}" if base else key, value)
        await self._hub.dispatch(path, self._read_async)

    async def remove(self, path: str) -> None:
        self._check()
        self._write(path, None)
        await self._hub.dispatch(path, self._read_async)

    async def push(self, path: str, value: dict[str, Any]) -> str:
        key = generate_push_id()
        await self.set(f"{normalize_path(path)}/{key}", value)
        return key

    async def subscribe(self, path: str, callback: ValueListener) -> Callable[[], None]:
        self._check()
        token, unsubscribe = self._hub.add(path, callback)
        await self._hub.deliver(token, self._read(path))
        return unsubscribe
