"""
Settings repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from harmony.models.settings import AccountSettings, UserSettings


class ISettingsRepository(ABC):
    """Abstract interface for user preferences and account settings."""

    @abstractmethod
    async def get_preferences(self, user_id: str) -> UserSettings:
        """Get AI response preferences, defaults when none are stored."""
        pass

    @abstractmethod
    async def save_preferences(self, user_id: str, settings: UserSettings) -> UserSettings:
        """Store AI response preferences."""
        pass

    @abstractmethod
    async def get_account_settings(self, user_id: str) -> AccountSettings:
        """Get the account settings document."""
        pass

    @abstractmethod
    async def save_account_settings(self, user_id: str, settings: AccountSettings) -> bool:
        """Replace the account settings document."""
        pass

    @abstractmethod
    async def update_account_setting(self, user_id: str, setting_path: str, value: Any) -> bool:
        """Set one nested setting addressed by a dotted path."""
        pass

    @abstractmethod
    async def delete_all(self, user_id: str) -> bool:
        """Delete preferences and account settings."""
        pass
