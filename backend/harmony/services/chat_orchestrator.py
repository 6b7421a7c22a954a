"""
Chat orchestrator.

One orchestrator per authenticated user. It owns the active session
pointer and its message subscription, persists user and AI messages
through the chat store, asks the prompt resolver and the AI backend for
replies, and publishes every state change on the user's event stream.

Failures are caught here and logged; callers observe the outcome through
the state snapshot (isSending, message list) rather than exceptions.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from harmony.core.config import Settings
from harmony.core.exceptions import InfrastructureError, LLMError
from harmony.core.logger import setup_logger
from harmony.interfaces.auth_provider import User
from harmony.interfaces.chat_store import IChatStore
from harmony.interfaces.llm_provider import ILLMProvider
from harmony.interfaces.settings_repository import ISettingsRepository
from harmony.models.chat import (
    ChatMessage,
    ChatMessageCreate,
    ChatSessionSummary,
    ChatStateSnapshot,
    ReplyContextEntry,
)
from harmony.models.enums import WritingStyle
from harmony.models.settings import UserSettings
from harmony.services.context_window import (
    DataSnippetBuffer,
    ReplyContext,
    format_with_replies,
    select_context,
)
from harmony.services.prompt_resolver import PromptResolver, ResolvedPrompt
from harmony.services.session_index_service import SessionIndexService
from harmony.services.title_service import generate_title
from harmony.utils.chat_utils import WELCOME_MESSAGE, WELCOME_TITLE
from harmony.utils.datetime_utils import new_chat_title, new_session_id, now_ms, now_utc, today_session_id

logger = setup_logger(__name__)

EventPublisher = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class _Reply:
    resolved: ResolvedPrompt
    content: str


class ChatOrchestrator:
    """Stateful coordinator of one user's chat."""

    def __init__(
        self,
        user: User,
        store: IChatStore,
        llm_provider: ILLMProvider,
        settings_repo: ISettingsRepository,
        settings: Settings,
        resolver: Optional[PromptResolver] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        self._user = user
        self._store = store
        self._llm = llm_provider
        self._settings_repo = settings_repo
        self._settings = settings
        self._resolver = resolver or PromptResolver(llm_provider)
        self._publisher = publisher

        self.history = SessionIndexService(
            store,
            user.id,
            debounce_seconds=settings.HISTORY_REFRESH_DEBOUNCE_SECONDS,
            is_busy=lambda: self._busy,
            on_refresh=self._publish_history,
        )

        self._session_id: Optional[str] = None
        self._messages: list[ChatMessage] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._is_loading = False
        self._is_sending = False
        self._is_thinking = False
        self._current_style = WritingStyle.CONCISE
        self._auto_resolved = False
        self._reply_context = ReplyContext()
        self._snippets: dict[str, DataSnippetBuffer] = {}
        self._initialized = False

        # Set synchronously before the first await of a send/edit/regenerate.
        self._busy = False
        self._generation = 0
        self._thinking_task: Optional[asyncio.Task] = None

    # ===========================================
    # State
    # ===========================================

    @property
    def user_id(self) -> str:
        return self._user.id

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def is_busy(self) -> bool:
        return self._busy

    def snapshot(self) -> ChatStateSnapshot:
        return ChatStateSnapshot(
            session_id=self._session_id,
            messages=list(self._messages),
            is_loading=self._is_loading,
            is_sending=self._is_sending,
            is_thinking=self._is_thinking,
            current_style=self._current_style,
            reply_context=self._reply_context.entries,
        )

    def _session_key(self, session_id: str) -> str:
        return f"{self._user.id}-{session_id}"

    def _snippet_buffer(self, session_id: str) -> DataSnippetBuffer:
        if session_id not in self._snippets:
            self._snippets[session_id] = DataSnippetBuffer()
        return self._snippets[session_id]

    async def _publish(self) -> None:
        if self._publisher is None:
            return
        try:
            await self._publisher({"type": "chat_state", "data": self.snapshot().to_document()})
        except Exception as exc:
            logger.warning(f"Failed to publish chat state for {self._user.id}: {exc}")

    async def _publish_history(self, sessions: list[ChatSessionSummary]) -> None:
        if self._publisher is None:
            return
        try:
            await self._publisher(
                {"type": "chat_history", "data": [s.to_document() for s in sessions]}
            )
        except Exception as exc:
            logger.warning(f"Failed to publish chat history for {self._user.id}: {exc}")

    def apply_preferences(self, preferences: UserSettings) -> None:
        """Reflect saved preferences in the displayed style."""
        self._current_style = preferences.writing_style
        self._auto_resolved = False

    # ===========================================
    # Sessions
    # ===========================================

    async def initialize(self) -> ChatStateSnapshot:
        """
        First load: open the most recent session, or seed today's welcome chat.
        """
        if self._initialized:
            return self.snapshot()
        self._initialized = True
        self._is_loading = True
        try:
            self.apply_preferences(await self._settings_repo.get_preferences(self._user.id))
            target = today_session_id()
            if await self._store.has_existing_chats(self._user.id):
                sessions = await self.history.refresh()
                if sessions:
                    target = sessions[0].session_id
            else:
                await self._seed_session(target, WELCOME_TITLE)
                self.history.schedule_refresh()
            await self._subscribe(target)
        except Exception as exc:
            logger.error(f"Failed to initialize chat for {self._user.id}: {exc}", exc_info=True)
            self._is_loading = False
            await self._publish()
        return self.snapshot()

    async def _seed_session(self, session_id: str, title: str) -> None:
        await self._store.create_session(self._user.id, session_id, title)
        await self._store.append(
            self._user.id,
            session_id,
            ChatMessageCreate(content=WELCOME_MESSAGE, is_user=False, timestamp=now_ms()),
        )

    async def _subscribe(self, session_id: str) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if session_id != self._session_id:
            self._reply_context.clear()
        self._session_id = session_id
        self._messages = []
        self._is_loading = True

        async def on_messages(messages: list[ChatMessage]) -> None:
            if self._session_id != session_id:
                return
            self._messages = messages
            self._is_loading = False
            self._snippet_buffer(session_id).add_from_messages(messages)
            await self._publish()

        self._unsubscribe = await self._store.subscribe(self._user.id, session_id, on_messages)

    async def load_session(self, session_id: str) -> ChatStateSnapshot:
        """Switch the active session and subscribe to its messages."""
        self._initialized = True
        try:
            await self._subscribe(session_id)
        except Exception as exc:
            logger.error(f"Failed to load chat session {session_id}: {exc}")
            self._is_loading = False
            await self._publish()
        return self.snapshot()

    async def create_session(self) -> ChatStateSnapshot:
        """Start a new chat seeded with the welcome message."""
        self._initialized = True
        now = now_utc()
        session_id = new_session_id(now)
        try:
            await self._seed_session(session_id, new_chat_title(now))
            await self._subscribe(session_id)
            self.history.schedule_refresh()
        except Exception as exc:
            logger.error(f"Failed to create new chat: {exc}")
            self._is_loading = False
            await self._publish()
        return self.snapshot()

    # ===========================================
    # Reply context
    # ===========================================

    async def add_reply_context(self, message_id: str) -> ChatStateSnapshot:
        message = next((m for m in self._messages if m.id == message_id), None)
        if message is not None:
            self._reply_context.add(
                ReplyContextEntry(
                    message_id=message.id,
                    content=message.content,
                    timestamp=message.timestamp,
                )
            )
            await self._publish()
        return self.snapshot()

    async def remove_reply_context(self, message_id: str) -> ChatStateSnapshot:
        self._reply_context.remove(message_id)
        await self._publish()
        return self.snapshot()

    async def clear_reply_context(self) -> ChatStateSnapshot:
        self._reply_context.clear()
        await self._publish()
        return self.snapshot()

    # ===========================================
    # Sending state
    # ===========================================

    async def _begin_busy(self) -> int:
        self._generation += 1
        if self._thinking_task is not None:
            self._thinking_task.cancel()
            self._thinking_task = None
        self._is_sending = True
        self._is_thinking = True
        await self._publish()
        return self._generation

    async def _end_busy(self) -> None:
        self._busy = False
        self._is_sending = False
        await self._publish()
        self._thinking_task = asyncio.create_task(self._fade_thinking())

    async def _release(self, started: bool) -> None:
        if started:
            await self._end_busy()
        else:
            self._busy = False

    async def _fade_thinking(self) -> None:
        try:
            await asyncio.sleep(self._settings.THINKING_FADE_SECONDS)
        except asyncio.CancelledError:
            return
        self._is_thinking = False
        self._thinking_task = None
        await self._publish()

    async def _compute_reply(
        self,
        session_id: str,
        content: str,
        prior: list[ChatMessage],
        generation: int,
        replies: Optional[list[ReplyContextEntry]] = None,
    ) -> Optional[_Reply]:
        """
        Resolve the prompt and ask the AI backend, bounded by the safety timeout.

        Returns None when the call failed, timed out or was superseded.
        """

        async def run() -> _Reply:
            preferences = await self._settings_repo.get_preferences(self._user.id)
            if self._auto_resolved:
                self._current_style = WritingStyle.AUTO
                self._auto_resolved = False
            resolved = await self._resolver.resolve(preferences, content)
            if resolved.auto:
                self._current_style = WritingStyle(resolved.style.value)
                self._auto_resolved = True
                await self._publish()
            context = select_context(prior, resolved.style, self._snippet_buffer(session_id))
            outgoing = format_with_replies(content, replies or [], resolved.style)
            reply = await self._llm.complete(
                self._session_key(session_id),
                outgoing,
                context,
                resolved.prompt,
            )
            return _Reply(resolved=resolved, content=reply)

        try:
            result = await asyncio.wait_for(run(), timeout=self._settings.SEND_SAFETY_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(
                f"AI request for {self._session_key(session_id)} timed out after "
                f"{self._settings.SEND_SAFETY_TIMEOUT_SECONDS}s and was cancelled"
            )
            self._generation += 1
            self._llm.forget_session(self._session_key(session_id))
            return None
        except LLMError as exc:
            logger.error(f"AI request failed ({exc.reason}): {exc.message}")
            return None

        if generation != self._generation:
            logger.warning(f"Discarding late AI reply for {self._session_key(session_id)}")
            return None
        return result

    # ===========================================
    # Operations
    # ===========================================

    async def send_message(self, content: str) -> ChatStateSnapshot:
        """
        Persist the user message, get the AI reply and persist it.

        Empty content and calls made while another operation is running
        are ignored.
        """
        content = content.strip()
        if not content or self._busy:
            return self.snapshot()
        self._busy = True

        started = False
        persisted = False
        try:
            if self._session_id is None:
                await self.initialize()
            session_id = self._session_id
            if session_id is None:
                return self.snapshot()

            started = True
            generation = await self._begin_busy()
            prior = await self._store.list_messages(self._user.id, session_id)
            await self._store.append(
                self._user.id,
                session_id,
                ChatMessageCreate(
                    content=content,
                    is_user=True,
                    timestamp=now_ms(),
                    user_profile_image=self._user.image_url,
                ),
            )
            persisted = True
            await self._reply_to(session_id, content, prior, generation)
        except Exception as exc:
            logger.error(f"Failed to send message: {exc}", exc_info=True)
        finally:
            await self._release(started)
        if persisted:
            self.history.schedule_refresh()
        return self.snapshot()

    async def _reply_to(
        self,
        session_id: str,
        content: str,
        prior: list[ChatMessage],
        generation: int,
    ) -> None:
        reply = await self._compute_reply(
            session_id,
            content,
            prior,
            generation,
            replies=self._reply_context.entries,
        )
        if reply is None:
            return

        await self._store.append(
            self._user.id,
            session_id,
            ChatMessageCreate(content=reply.content, is_user=False, timestamp=now_ms()),
        )
        self._reply_context.clear()

        if not any(m.is_user for m in prior):
            title = await generate_title(self._llm, content)
            if title:
                await self._store.update_title(self._user.id, session_id, title)

    async def edit_message(self, message_id: str, new_content: str) -> ChatStateSnapshot:
        """
        Replace a user message and everything after it with the edited
        message and a fresh reply. The reply is computed first, so a failed
        AI call leaves the conversation untouched.
        """
        new_content = new_content.strip()
        session_id = self._session_id
        if not new_content or self._busy or session_id is None:
            return self.snapshot()
        self._busy = True

        started = False
        completed = False
        try:
            messages = await self._store.list_messages(self._user.id, session_id)
            index = next((i for i, m in enumerate(messages) if m.id == message_id), None)
            if index is None or not messages[index].is_user:
                return self.snapshot()
            original = messages[index]

            started = True
            generation = await self._begin_busy()
            self._llm.forget_session(self._session_key(session_id))
            reply = await self._compute_reply(session_id, new_content, messages[:index], generation)
            if reply is not None:
                completed = await self.replace_suffix(
                    session_id,
                    messages[index:],
                    [
                        ChatMessageCreate(
                            content=new_content,
                            is_user=True,
                            timestamp=now_ms(),
                            user_profile_image=original.user_profile_image,
                        ),
                        ChatMessageCreate(content=reply.content, is_user=False, timestamp=now_ms()),
                    ],
                    operation="edit",
                )
        except Exception as exc:
            logger.error(f"Failed to edit message {message_id}: {exc}", exc_info=True)
        finally:
            await self._release(started)
        if completed:
            self.history.schedule_refresh()
        return self.snapshot()

    async def regenerate_message(self, message_id: str) -> ChatStateSnapshot:
        """
        Replace an AI message with a new reply to the user message before it.
        """
        session_id = self._session_id
        if self._busy or session_id is None:
            return self.snapshot()
        self._busy = True

        started = False
        completed = False
        try:
            messages = await self._store.list_messages(self._user.id, session_id)
            index = next((i for i, m in enumerate(messages) if m.id == message_id), None)
            if index is None or messages[index].is_user:
                return self.snapshot()
            prompt_index = next((i for i in range(index - 1, -1, -1) if messages[i].is_user), None)
            if prompt_index is None:
                return self.snapshot()
            prompt_message = messages[prompt_index]
            prior = [m for m in messages[:index] if m.id != prompt_message.id]

            started = True
            generation = await self._begin_busy()
            self._llm.forget_session(self._session_key(session_id))
            if await self._store.remove(self._user.id, session_id, message_id):
                reply = await self._compute_reply(session_id, prompt_message.content, prior, generation)
                if reply is not None:
                    await self._store.append(
                        self._user.id,
                        session_id,
                        ChatMessageCreate(content=reply.content, is_user=False, timestamp=now_ms()),
                    )
                    completed = True
            else:
                logger.error(f"Failed to delete message {message_id} for regeneration")
        except Exception as exc:
            logger.error(f"Failed to regenerate message {message_id}: {exc}", exc_info=True)
        finally:
            await self._release(started)
        if completed:
            self.history.schedule_refresh()
        return self.snapshot()

    async def delete_message(self, message_id: str) -> ChatStateSnapshot:
        session_id = self._session_id
        if session_id is None:
            return self.snapshot()
        try:
            messages = await self._store.list_messages(self._user.id, session_id)
            if any(m.id == message_id for m in messages):
                await self._store.remove(self._user.id, session_id, message_id)
                self._reply_context.remove(message_id)
        except Exception as exc:
            logger.error(f"Failed to delete message {message_id}: {exc}")
        return self.snapshot()

    async def replace_suffix(
        self,
        session_id: str,
        suffix: list[ChatMessage],
        replacements: list[ChatMessageCreate],
        operation: str = "replace",
    ) -> bool:
        """
        Delete a run of trailing messages and append their replacements.

        When a step fails midway the session keeps whatever was already
        applied and its metadata records a partial-failure marker.
        """
        removed = 0
        added = 0
        try:
            for message in suffix:
                if not await self._store.remove(self._user.id, session_id, message.id):
                    raise InfrastructureError(f"Could not delete message {message.id}")
                removed += 1
            await asyncio.sleep(self._settings.EDIT_SETTLE_SECONDS)
            for replacement in replacements:
                await self._store.append(self._user.id, session_id, replacement)
                added += 1
            return True
        except Exception as exc:
            detail = (
                f"{operation} stopped after deleting {removed}/{len(suffix)} "
                f"and adding {added}/{len(replacements)} messages: {exc}"
            )
            logger.error(f"Partial failure in session {session_id}: {detail}")
            try:
                await self._store.mark_partial_failure(self._user.id, session_id, detail)
            except Exception as mark_exc:
                logger.error(f"Could not record partial failure for {session_id}: {mark_exc}")
            return False

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.history.cancel()
        if self._thinking_task is not None:
            self._thinking_task.cancel()
            self._thinking_task = None


OrchestratorFactory = Callable[[User], ChatOrchestrator]


class ChatOrchestratorRegistry:
    """Per-user orchestrators, created and initialized on first use."""

    def __init__(self, factory: OrchestratorFactory):
        self._factory = factory
        self._orchestrators: dict[str, ChatOrchestrator] = {}
        self._lock = asyncio.Lock()

    async def get(self, user: User) -> ChatOrchestrator:
        async with self._lock:
            orchestrator = self._orchestrators.get(user.id)
            if orchestrator is None:
                orchestrator = self._factory(user)
                self._orchestrators[user.id] = orchestrator
        await orchestrator.initialize()
        return orchestrator

    def peek(self, user_id: str) -> Optional[ChatOrchestrator]:
        return self._orchestrators.get(user_id)

    async def discard(self, user_id: str) -> None:
        async with self._lock:
            orchestrator = self._orchestrators.pop(user_id, None)
        if orchestrator is not None:
            await orchestrator.close()

    async def close_all(self) -> None:
        async with self._lock:
            orchestrators = list(self._orchestrators.values())
            self._orchestrators.clear()
        for orchestrator in orchestrators:
            await orchestrator.close()
