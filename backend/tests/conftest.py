"""
Shared test fixtures.

Stores run against a temporary SQLite file and the in-memory realtime
database; the AI backend is a scripted fake.
"""

import asyncio
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from harmony.core.config import Settings
from harmony.infrastructure.firebase.chat_store import RealtimeChatStore
from harmony.infrastructure.firebase.settings_repository import SettingsRepository
from harmony.infrastructure.local.chat_store import LocalChatStore
from harmony.infrastructure.local.database import init_db
from harmony.infrastructure.local.key_value_store import SqliteKeyValueStore
from harmony.infrastructure.local.memory_database import InMemoryRealtimeDatabase
from harmony.interfaces.auth_provider import User
from harmony.interfaces.chat_store import IChatStore
from harmony.interfaces.llm_provider import ILLMProvider
from harmony.models.chat import ChatMessage, ChatMessageCreate
from harmony.services.chat_orchestrator import ChatOrchestrator


class FakeLLMProvider(ILLMProvider):
    """Scripted AI backend that records every call."""

    def __init__(self):
        self.replies: list[str] = []
        self.error: Optional[Exception] = None
        self.delay: float = 0.0
        self.style_reply: Optional[str] = None
        self.title_reply: Optional[str] = "Test Title"
        self.calls: list[dict] = []
        self.prompts: list[str] = []
        self.forgotten: list[str] = []

    def get_model_name(self) -> str:
        return "fake-llm"

    async def complete(self, session_key, message, prior_messages, system_prompt=None):
        self.calls.append(
            {
                "session_key": session_key,
                "message": message,
                "prior_messages": list(prior_messages),
                "system_prompt": system_prompt,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return f"Reply to: {message}"

    async def generate_text(self, prompt, temperature=0.2, max_output_tokens=100):
        self.prompts.append(prompt)
        if prompt.startswith("Classify"):
            return self.style_reply
        return self.title_reply

    def forget_session(self, session_key: str) -> None:
        self.forgotten.append(session_key)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        REALTIME_BACKEND="memory",
        LOCAL_STORE_URL=f"sqlite+aiosqlite:///{tmp_path / 'local.db'}",
        SEND_SAFETY_TIMEOUT_SECONDS=2.0,
        THINKING_FADE_SECONDS=0.01,
        HISTORY_REFRESH_DEBOUNCE_SECONDS=0.05,
        EDIT_SETTLE_SECONDS=0.0,
    )


@pytest_asyncio.fixture
async def session_factory(test_settings):
    engine = create_async_engine(test_settings.LOCAL_STORE_URL, echo=False)
    await init_db(engine)
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def kv_store(session_factory) -> SqliteKeyValueStore:
    return SqliteKeyValueStore(session_factory=session_factory)


@pytest.fixture
def remote_db() -> InMemoryRealtimeDatabase:
    return InMemoryRealtimeDatabase()


@pytest.fixture
def local_chat_store(kv_store) -> LocalChatStore:
    return LocalChatStore(kv_store)


@pytest.fixture
def chat_store(remote_db, local_chat_store) -> RealtimeChatStore:
    return RealtimeChatStore(remote_db, local_chat_store)


@pytest.fixture
def settings_repo(remote_db, kv_store) -> SettingsRepository:
    return SettingsRepository(remote_db, kv_store)


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def user() -> User:
    return User(id="test_user", email="test@example.com", image_url="https://img.example/test.png")


@pytest_asyncio.fixture
async def orchestrator(user, chat_store, llm, settings_repo, test_settings):
    orch = ChatOrchestrator(
        user=user,
        store=chat_store,
        llm_provider=llm,
        settings_repo=settings_repo,
        settings=test_settings,
    )
    yield orch
    await orch.close()


async def seed_conversation(
    store: IChatStore,
    user_id: str,
    session_id: str,
    contents: list[str],
    start: int = 1_000,
) -> list[ChatMessage]:
    """Append alternating user/AI messages with increasing timestamps."""
    for index, content in enumerate(contents):
        await store.append(
            user_id,
            session_id,
            ChatMessageCreate(content=content, is_user=index % 2 == 0, timestamp=start + index * 1_000),
        )
    return await store.list_messages(user_id, session_id)


@pytest.fixture
def seed():
    return seed_conversation
