"""
SQLite implementation of the local key-value store.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import delete, select

from harmony.core.exceptions import InfrastructureError
from harmony.infrastructure.local.database import LocalEntryORM, get_session_factory
from harmony.interfaces.key_value_store import IKeyValueStore
from harmony.services.realtime_service import PathListenerHub


class SqliteKeyValueStore(IKeyValueStore):
    """Local fallback store backed by a single SQLite table."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()
        self._hub = PathListenerHub()

    async def _notify(self, key: str) -> None:
        await self._hub.dispatch(key, self._read_for_listener)

    async def _read_for_listener(self, key: str) -> Optional[Any]:
        return await self.get(key)

    async def get(self, key: str) -> Optional[Any]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(LocalEntryORM.value).where(LocalEntryORM.key == key)
                )
                return result.scalar_one_or_none()
        except Exception as exc:
            raise InfrastructureError(f"Local store read failed for '{key}': {exc}") from exc

    async def set(self, key: str, value: Any) -> None:
        try:
            async with self._session_factory() as session:
                orm = await session.get(LocalEntryORM, key)
                if orm:
                    orm.value = value
                else:
                    session.add(LocalEntryORM(key=key, value=value))
                await session.commit()
        except Exception as exc:
            raise InfrastructureError(f"Local store write failed for '{key}': {exc}") from exc
        await self._notify(key)

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(LocalEntryORM).where(LocalEntryORM.key == key))
                await session.commit()
        except Exception as exc:
            raise InfrastructureError(f"Local store delete failed for '{key}': {exc}") from exc
        await self._notify(key)

    async def keys(self, prefix: str = "") -> list[str]:
        async with self._session_factory() as session:
            query = select(LocalEntryORM.key).order_by(LocalEntryORM.key.asc())
            if prefix:
                query = query.where(LocalEntryORM.key.startswith(prefix, autoescape=True))
            result = await session.execute(query)
            return list(result.scalars().all())

    async def subscribe(
        self,
        key: str,
        callback: Callable[[Any], Awaitable[None]],
    ) -> Callable[[], None]:
        token, unsubscribe = self._hub.add(key, callback)
        await self._hub.deliver(token, await self.get(key))
        return unsubscribe
