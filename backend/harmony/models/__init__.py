"""Pydantic models (schemas) for the application."""

from harmony.models.enums import (
    ConcreteStyle,
    DataScope,
    Language,
    QuestionStatus,
    SubscriptionPlan,
    SubscriptionStatus,
    Theme,
    WritingStyle,
)
from harmony.models.chat import (
    ChatMessage,
    ChatMessageCreate,
    ChatSessionSummary,
    ChatStateSnapshot,
    ReplyContextEntry,
    SessionMetadata,
)
from harmony.models.bookmark import Bookmark
from harmony.models.question import PrivateQuestion, PrivateQuestionCreate, Question, QuestionCreate
from harmony.models.settings import AccountSettings, UserSettings, UserSettingsUpdate
from harmony.models.subscription import SubscriptionInfo

__all__ = [
    # Enums
    "ConcreteStyle",
    "DataScope",
    "Language",
    "QuestionStatus",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "Theme",
    "WritingStyle",
    # Chat
    "ChatMessage",
    "ChatMessageCreate",
    "ChatSessionSummary",
    "ChatStateSnapshot",
    "ReplyContextEntry",
    "SessionMetadata",
    # Bookmarks
    "Bookmark",
    # Questions
    "Question",
    "QuestionCreate",
    "PrivateQuestion",
    "PrivateQuestionCreate",
    # Settings
    "AccountSettings",
    "UserSettings",
    "UserSettingsUpdate",
    # Subscription
    "SubscriptionInfo",
]
