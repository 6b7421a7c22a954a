"""
In-process realtime fan-out.

RealtimeManager feeds per-user server-sent-event queues.
PathListenerHub delivers value snapshots to callbacks registered on
hierarchical store paths (or plain keys), with Firebase `onValue`
semantics: a write to a path notifies listeners on that path, on its
ancestors and on its descendants.
"""

import asyncio
import itertools
import json
from typing import Any, Awaitable, Callable

from harmony.core.logger import setup_logger

logger = setup_logger(__name__)

Listener = Callable[[Any], Awaitable[None]]
Unsubscribe = Callable[[], None]


class RealtimeManager:
    def __init__(self) -> None:
        self._connections: dict[str, set[asyncio.Queue[str]]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str) -> asyncio.Queue[str]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(queue)
        return queue

    async def disconnect(self, user_id: str, queue: asyncio.Queue[str]) -> None:
        async with self._lock:
            queues = self._connections.get(user_id)
            if not queues:
                return
            queues.discard(queue)
            if not queues:
                self._connections.pop(user_id, None)

    async def publish(self, user_id: str, payload: dict[str, Any]) -> None:
        message = json.dumps(payload, separators=(",", ":"))
        async with self._lock:
            queues = list(self._connections.get(user_id, set()))
        for queue in queues:
            queue.put_nowait(message)


def normalize_path(path: str) -> str:
    return "/".join(part for part in path.split("/") if part)


def paths_related(a: str, b: str) -> bool:
    """True if one path equals, contains or is contained by the other."""
    if a == b or not a or not b:
        return True
    return a.startswith(b + "/") or b.startswith(a + "/")


class PathListenerHub:
    """Registry of value listeners keyed by path."""

    def __init__(self) -> None:
        self._listeners: dict[int, tuple[str, Listener]] = {}
        self._ids = itertools.count(1)

    def add(self, path: str, callback: Listener) -> tuple[int, Unsubscribe]:
        token = next(self._ids)
        self._listeners[token] = (normalize_path(path), callback)

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return token, unsubscribe

    def is_active(self, token: int) -> bool:
        return token in self._listeners

    def __len__(self) -> int:
        return len(self._listeners)

    async def deliver(self, token: int, value: Any) -> None:
        entry = self._listeners.get(token)
        if entry is None:
            return
        try:
            await entry[1](value)
        except Exception:
            logger.exception(f"Listener on '{entry[0]}' failed")

    async def dispatch(self, changed_path: str, read: Callable[[str], Awaitable[Any]]) -> None:
        """Re-read and deliver the value of every listener related to changed_path."""
        changed = normalize_path(changed_path)
        targets = [
            (token, path)
            for token, (path, _) in list(self._listeners.items())
            if paths_related(path, changed)
        ]
        for token, path in targets:
            if not self.is_active(token):
                continue
            value = await read(path)
            await self.deliver(token, value)


realtime_manager = RealtimeManager()
