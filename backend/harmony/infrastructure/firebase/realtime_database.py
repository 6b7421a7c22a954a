"""
Firebase Realtime Database client built on the Firebase Admin SDK.

The SDK is blocking, so every request runs in a worker thread.
Subscriptions use Reference.listen: changes made by other server
instances and by clients reach listeners as well as local writes.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable, Optional

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from harmony.core.config import Settings
from harmony.core.exceptions import InfrastructureError, StoreUnavailableError
from harmony.core.logger import setup_logger
from harmony.interfaces.realtime_database import IRealtimeDatabase, ValueListener
from harmony.services.realtime_service import normalize_path

logger = setup_logger(__name__)

APP_NAME = "harmony"


def apply_event(current: Any, event_type: str, path: str, data: Any) -> Any:
    """
    Apply a listener event to the last known value of the listened node.

    Args:
        current: Value before the event
        event_type: "put" (replace at path) or "patch" (merge children at path)
        path: Path relative to the listened node ("/" for the node itself)
        data: Event payload; None deletes

    Returns:
        New value, with empty nodes removed
    """
    parts = _split(path)
    if event_type == "patch":
        value = current
        for key, child in (data or {}).items():
            value = _put(value, parts + _split(key), child)
        return value
    return _put(current, parts, data)


def _split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def _put(node: Any, parts: list[str], value: Any) -> Any:
    if not parts:
        return _prune(copy.deepcopy(value))
    children = dict(node) if isinstance(node, dict) else {}
    child = _put(children.get(parts[0]), parts[1:], value)
    if child is None:
        children.pop(parts[0], None)
    else:
        children[parts[0]] = child
    return children or None


def _prune(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    pruned = {key: _prune(child) for key, child in value.items()}
    pruned = {key: child for key, child in pruned.items() if child is not None}
    return pruned or None


class _Subscription:
    """Feeds SDK listener events for one path to an async callback, in order."""

    def __init__(self, path: str, callback: ValueListener, loop: asyncio.AbstractEventLoop, value: Any):
        self._path = path
        self._callback = callback
        self._loop = loop
        self._value = value
        self._queue: asyncio.Queue = asyncio.Queue()
        self._registration: Optional[db.ListenerRegistration] = None
        self._closed = False
        self._task = loop.create_task(self._drain())

    def attach(self, registration: db.ListenerRegistration) -> None:
        self._registration = registration
        if self._closed:
            self._loop.run_in_executor(None, registration.close)

    def on_event(self, event: db.Event) -> None:
        # Called on the SDK listener thread.
        if self._closed or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def deliver(self, value: Any) -> None:
        try:
            await self._callback(copy.deepcopy(value))
        except Exception:
            logger.exception(f"Listener on '{self._path}' failed")

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            value = apply_event(self._value, event.event_type, event.path, event.data)
            if value == self._value:
                continue
            self._value = value
            await self.deliver(value)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._task.cancel()
        if self._registration is not None and not self._loop.is_closed():
            self._loop.run_in_executor(None, self._registration.close)


class FirebaseRealtimeDatabase(IRealtimeDatabase):
    """Firebase Realtime Database accessed with firebase_admin.db."""

    def __init__(self, settings: Settings, app: Optional[firebase_admin.App] = None):
        self._settings = settings
        self._app = app
        self._owns_app = False
        self._subscriptions: set[_Subscription] = set()

    def is_available(self) -> bool:
        return self._app is not None or bool(self._settings.FIREBASE_DATABASE_URL)

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        try:
            self._app = firebase_admin.get_app(APP_NAME)
        except ValueError:
            try:
                self._app = firebase_admin.initialize_app(
                    self._credentials(),
                    {
                        "databaseURL": self._settings.FIREBASE_DATABASE_URL,
                        "httpTimeout": self._settings.FIREBASE_TIMEOUT_SECONDS,
                    },
                    name=APP_NAME,
                )
            except (ValueError, OSError) as exc:
                raise StoreUnavailableError(f"Firebase could not be initialized: {exc}") from exc
            self._owns_app = True
            logger.info(f"Firebase app initialized for {self._settings.FIREBASE_DATABASE_URL}")
        return self._app

    def _credentials(self) -> credentials.Base:
        if self._settings.FIREBASE_CREDENTIALS_PATH:
            return credentials.Certificate(self._settings.FIREBASE_CREDENTIALS_PATH)
        return credentials.ApplicationDefault()

    def _reference(self, path: str) -> db.Reference:
        if not self.is_available():
            raise StoreUnavailableError("Firebase is not configured")
        return db.reference(f"/{normalize_path(path)}", app=self._get_app())

    async def _call(self, method: str, path: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except (FirebaseError, GoogleAuthError) as exc:
            raise InfrastructureError(
                f"Firebase {method} {normalize_path(path)} failed: {exc}",
                details={"path": path, "method": method},
            ) from exc

    async def get(self, path: str) -> Optional[Any]:
        return await self._call("get", path, self._reference(path).get)

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self.remove(path)
            return
        await self._call("set", path, self._reference(path).set, value)

    async def update(self, path: str, values: dict[str, Any]) -> None:
        if not values:
            return
        await self._call("update", path, self._reference(path).update, values)

    async def remove(self, path: str) -> None:
        await self._call("delete", path, self._reference(path).delete)

    async def push(self, path: str, value: dict[str, Any]) -> str:
        child = await self._call("push", path, self._reference(path).push, value)
        return child.key

    async def subscribe(self, path: str, callback: ValueListener) -> Callable[[], None]:
        reference = self._reference(path)
        value = await self._call("get", path, reference.get)
        subscription = _Subscription(path, callback, asyncio.get_running_loop(), value)
        self._subscriptions.add(subscription)
        await subscription.deliver(value)
        def unsubscribe() -> None:
            self._subscriptions.discard(subscription)
            subscription.close()

        try:
            registration = await self._call("listen", path, reference.listen, subscription.on_event)
        except InfrastructureError:
            unsubscribe()
            raise
        subscription.attach(registration)

        return unsubscribe

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.close()
        self._subscriptions.clear()
        if self._owns_app and self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None
            self._owns_app = False
