"""
Settings repository.

AI response preferences stay in the local store
("harmony_preferences_{user}"). The account settings document lives at
"{user}/settings" on the realtime database, falling back to
"harmony_settings_{user}" locally.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError

from harmony.core.exceptions import InfrastructureError, ValidationError as SettingsValidationError
from harmony.core.logger import setup_logger
from harmony.interfaces.key_value_store import IKeyValueStore
from harmony.interfaces.realtime_database import IRealtimeDatabase
from harmony.interfaces.settings_repository import ISettingsRepository
from harmony.models.settings import AccountSettings, UserSettings

logger = setup_logger(__name__)

T = TypeVar("T")


def preferences_key(user_id: str) -> str:
    return f"harmony_preferences_{user_id}"


def account_settings_key(user_id: str) -> str:
    return f"harmony_settings_{user_id}"


def account_settings_path(user_id: str) -> str:
    return f"{user_id}/settings"


def set_dotted(document: dict[str, Any], setting_path: str, value: Any) -> dict[str, Any]:
    """Set document["a"]["b"]["c"] for "a.b.c", creating missing levels."""
    parts = [p for p in setting_path.split(".") if p]
    if not parts:
        raise ValueError("Setting path is empty")
    node = document
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value
    return document


def _parse_account_settings(raw: Any) -> AccountSettings:
    if not isinstance(raw, dict):
        return AccountSettings()
    try:
        return AccountSettings.model_validate(raw)
    except ValidationError as exc:
        logger.warning(f"Ignoring malformed account settings: {exc}")
        return AccountSettings()


class SettingsRepository(ISettingsRepository):
    """Preferences in the local store, account settings on the realtime database."""

    def __init__(self, database: IRealtimeDatabase, kv_store: IKeyValueStore):
        self._db = database
        self._kv = kv_store

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

    # ===========================================
    # AI preferences
    # ===========================================

    async def get_preferences(self, user_id: str) -> UserSettings:
        raw = await self._kv.get(preferences_key(user_id))
        if not isinstance(raw, dict):
            return UserSettings()
        try:
            return UserSettings.model_validate(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed preferences for {user_id}: {exc}")
            return UserSettings()

    async def save_preferences(self, user_id: str, settings: UserSettings) -> UserSettings:
        await self._kv.set(preferences_key(user_id), settings.to_document())
        return settings

    # ===========================================
    # Account settings
    # ===========================================

    async def get_account_settings(self, user_id: str) -> AccountSettings:
        async def remote() -> AccountSettings:
            return _parse_account_settings(await self._db.get(account_settings_path(user_id)))

        async def fallback() -> AccountSettings:
            return _parse_account_settings(await self._kv.get(account_settings_key(user_id)))

        return await self._run("get_account_settings", remote, fallback)

    async def save_account_settings(self, user_id: str, settings: AccountSettings) -> bool:
        document = settings.to_document()

        async def remote() -> bool:
            await self._db.set(account_settings_path(user_id), document)
            return True

        async def fallback() -> bool:
            await self._kv.set(account_settings_key(user_id), document)
            return True

        return await self._run("save_account_settings", remote, fallback)

    async def update_account_setting(self, user_id: str, setting_path: str, value: Any) -> bool:
        current = await self.get_account_settings(user_id)
        try:
            document = set_dotted(current.to_document(), setting_path, value)
            updated = AccountSettings.model_validate(document)
        except (ValueError, ValidationError) as exc:
            raise SettingsValidationError(f"Invalid setting {setting_path}", details=str(exc)) from exc
        return await self.save_account_settings(user_id, updated)

    async def delete_all(self, user_id: str) -> bool:
        await self._kv.delete(preferences_key(user_id))
        await self._kv.delete(account_settings_key(user_id))

        async def remote() -> bool:
            await self._db.remove(account_settings_path(user_id))
            return True

        async def fallback() -> bool:
            return True

        return await self._run("delete_settings", remote, fallback)
