"""
User preference and account settings models.
"""

from typing import Any, Optional

from pydantic import Field, field_validator

from harmony.models.chat import CamelModel
from harmony.models.enums import DataScope, Language, Theme, WritingStyle

MIN_MAX_LENGTH = 512
MAX_MAX_LENGTH = 4096


class UserSettings(CamelModel):
    """AI response preferences (writing style, language, length bound)."""

    writing_style: WritingStyle = WritingStyle.CONCISE
    language: Language = Language.HINGLISH
    max_length: int = 2048

    @field_validator("max_length", mode="before")
    @classmethod
    def clamp_max_length(cls, value):
        try:
            value = int(value)
        except (TypeError, ValueError):
            return 2048
        return max(MIN_MAX_LENGTH, min(MAX_MAX_LENGTH, value))


class UserSettingsUpdate(CamelModel):
    """Partial preference update."""

    writing_style: Optional[WritingStyle] = None
    language: Optional[Language] = None
    max_length: Optional[int] = None


class EmailNotificationSettings(CamelModel):
    security_alerts: Optional[bool] = None
    product_updates: Optional[bool] = None


class BrowserNotificationSettings(CamelModel):
    enabled: Optional[bool] = None
    permission: Optional[str] = Field(None, pattern="^(default|granted|denied)$")


class NotificationSettings(CamelModel):
    email: Optional[EmailNotificationSettings] = None
    browser: Optional[BrowserNotificationSettings] = None


class PrivacySettings(CamelModel):
    data_processing: Optional[bool] = None
    analytics: Optional[bool] = None


class AppearanceSettings(CamelModel):
    animation_effects: Optional[bool] = None


class AccountSettings(CamelModel):
    """Account-level settings document."""

    theme: Optional[Theme] = None
    notifications: Optional[NotificationSettings] = None
    privacy: Optional[PrivacySettings] = None
    appearance: Optional[AppearanceSettings] = None


class AccountSettingUpdate(CamelModel):
    """Single nested setting addressed by a dotted path (e.g. "notifications.email.productUpdates")."""

    path: str = Field(..., min_length=1, max_length=200)
    value: Any = None


class DataDeletionRequest(CamelModel):
    scope: DataScope


class DataDeletionResponse(CamelModel):
    deleted: list[DataScope] = Field(default_factory=list)
