"""Abstract interfaces for infrastructure abstraction."""

from harmony.interfaces.auth_provider import IAuthProvider
from harmony.interfaces.bookmark_repository import IBookmarkRepository
from harmony.interfaces.chat_store import IChatStore
from harmony.interfaces.key_value_store import IKeyValueStore
from harmony.interfaces.llm_provider import ILLMProvider
from harmony.interfaces.question_repository import IQuestionRepository
from harmony.interfaces.realtime_database import IRealtimeDatabase
from harmony.interfaces.settings_repository import ISettingsRepository

__all__ = [
    "IAuthProvider",
    "IBookmarkRepository",
    "IChatStore",
    "IKeyValueStore",
    "ILLMProvider",
    "IQuestionRepository",
    "IRealtimeDatabase",
    "ISettingsRepository",
]
