"""
Realtime database implementation of the chat store.

Layout:
- "{user}/data/chat/{session}/{messageId}"   -> message document
- "{user}/data/metadata/chats/{session}"     -> session metadata

Every operation falls back to the local chat store when the realtime
database is unconfigured or a request fails.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar

from harmony.core.exceptions import InfrastructureError
from harmony.core.logger import setup_logger
from harmony.interfaces.chat_store import IChatStore, MessagesListener
from harmony.interfaces.realtime_database import IRealtimeDatabase
from harmony.models.chat import ChatMessage, ChatMessageCreate, ChatSessionSummary, SessionMetadata
from harmony.utils.chat_utils import (
    parse_messages,
    parse_metadata,
    sort_session_index,
    summarize_session,
)
from harmony.utils.datetime_utils import default_session_title, now_ms

logger = setup_logger(__name__)

T = TypeVar("T")


def chats_path(user_id: str) -> str:
    return f"{user_id}/data/chat"


def messages_path(user_id: str, session_id: str) -> str:
    return f"{user_id}/data/chat/{session_id}"


def metadata_root(user_id: str) -> str:
    return f"{user_id}/data/metadata/chats"


def metadata_path(user_id: str, session_id: str) -> str:
    return f"{user_id}/data/metadata/chats/{session_id}"


class RealtimeChatStore(IChatStore):
    """Chat store on the realtime database with transparent local fallback."""

    def __init__(self, database: IRealtimeDatabase, fallback: IChatStore):
        self._db = database
        self._fallback = fallback

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
    # Messages
    # ===========================================

    async def append(self, user_id: str, session_id: str, message: ChatMessageCreate) -> str:
        """
        Store a message, then bring the session metadata up to date.

        Falls back to the local store only when the message itself could
        not be written. Metadata is denormalized: a failed metadata write
        is logged and the remote message id is still returned.
        """
        if not self._db.is_available():
            logger.warning("Realtime database not available, using local fallback for append")
            return await self._fallback.append(user_id, session_id, message)
        try:
            message_id = await self._db.push(messages_path(user_id, session_id), message.to_document())
        except InfrastructureError as exc:
            logger.warning(f"append failed on realtime database, using local fallback: {exc}")
            return await self._fallback.append(user_id, session_id, message)

        try:
            await self._ensure_session_remote(user_id, session_id)
            await self._update_metadata_remote(user_id, session_id, message.content)
        except InfrastructureError as exc:
            logger.warning(f"Message {message_id} stored but metadata of session {session_id} not updated: {exc}")
        return message_id

    async def list_messages(self, user_id: str, session_id: str) -> list[ChatMessage]:
        async def remote() -> list[ChatMessage]:
            return parse_messages(await self._db.get(messages_path(user_id, session_id)))

        return await self._run(
            "list_messages",
            remote,
            lambda: self._fallback.list_messages(user_id, session_id),
        )

    async def subscribe(
        self,
        user_id: str,
        session_id: str,
        on_change: MessagesListener,
    ) -> Callable[[], None]:
        async def handle_value(value: Any) -> None:
            await on_change(parse_messages(value))

        return await self._run(
            "subscribe",
            lambda: self._db.subscribe(messages_path(user_id, session_id), handle_value),
            lambda: self._fallback.subscribe(user_id, session_id, on_change),
        )

    async def remove(self, user_id: str, session_id: str, message_id: str) -> bool:
        async def remote() -> bool:
            await self._db.remove(f"{messages_path(user_id, session_id)}/{message_id}")
            return True

        return await self._run(
            "remove",
            remote,
            lambda: self._fallback.remove(user_id, session_id, message_id),
        )

    # ===========================================
    # Sessions
    # ===========================================

    async def list_session_dates(self, user_id: str) -> list[str]:
        async def remote() -> list[str]:
            chats = await self._db.get(chats_path(user_id)) or {}
            return sorted(chats.keys(), reverse=True)

        return await self._run(
            "list_session_dates",
            remote,
            lambda: self._fallback.list_session_dates(user_id),
        )

    async def get_session_index(self, user_id: str) -> list[ChatSessionSummary]:
        async def remote() -> list[ChatSessionSummary]:
            chats = await self._db.get(chats_path(user_id)) or {}
            metadata = await self._db.get(metadata_root(user_id)) or {}
            summaries = [
                summarize_session(
                    session_id,
                    parse_messages(raw_messages),
                    parse_metadata(metadata.get(session_id)),
                )
                for session_id, raw_messages in chats.items()
            ]
            return sort_session_index(summaries)

        return await self._run(
            "get_session_index",
            remote,
            lambda: self._fallback.get_session_index(user_id),
        )

    async def get_metadata(self, user_id: str, session_id: str) -> Optional[SessionMetadata]:
        async def remote() -> Optional[SessionMetadata]:
            return parse_metadata(await self._db.get(metadata_path(user_id, session_id)))

        return await self._run(
            "get_metadata",
            remote,
            lambda: self._fallback.get_metadata(user_id, session_id),
        )

    async def _ensure_session_remote(self, user_id: str, session_id: str) -> bool:
        return await self._create_session_remote(user_id, session_id, default_session_title(session_id))

    async def ensure_session(self, user_id: str, session_id: str) -> bool:
        return await self._run(
            "ensure_session",
            lambda: self._ensure_session_remote(user_id, session_id),
            lambda: self._fallback.ensure_session(user_id, session_id),
        )

    async def _create_session_remote(self, user_id: str, session_id: str, title: str) -> bool:
        path = metadata_path(user_id, session_id)
        if await self._db.get(path) is not None:
            return True
        await self._db.set(
            path,
            {"title": title, "createdAt": now_ms(), "lastMessage": "", "messageCount": 0},
        )
        return True

    async def create_session(self, user_id: str, session_id: str, title: str) -> bool:
        return await self._run(
            "create_session",
            lambda: self._create_session_remote(user_id, session_id, title),
            lambda: self._fallback.create_session(user_id, session_id, title),
        )

    async def _update_metadata_remote(self, user_id: str, session_id: str, last_message: str) -> bool:
        messages = await self._db.get(messages_path(user_id, session_id)) or {}
        now = now_ms()
        await self._db.update(
            metadata_path(user_id, session_id),
            {
                "lastMessage": last_message,
                "lastTimestamp": now,
                "messageCount": len(messages),
                "updatedAt": now,
            },
        )
        return True

    async def update_metadata(self, user_id: str, session_id: str, last_message: str) -> bool:
        return await self._run(
            "update_metadata",
            lambda: self._update_metadata_remote(user_id, session_id, last_message),
            lambda: self._fallback.update_metadata(user_id, session_id, last_message),
        )

    async def update_title(self, user_id: str, session_id: str, title: str) -> bool:
        async def remote() -> bool:
            await self._db.update(metadata_path(user_id, session_id), {"title": title, "updatedAt": now_ms()})
            return True

        return await self._run(
            "update_title",
            remote,
            lambda: self._fallback.update_title(user_id, session_id, title),
        )

    async def delete_session(self, user_id: str, session_id: str) -> bool:
        async def remote() -> bool:
            await self._db.remove(messages_path(user_id, session_id))
            await self._db.remove(metadata_path(user_id, session_id))
            return True

        return await self._run(
            "delete_session",
            remote,
            lambda: self._fallback.delete_session(user_id, session_id),
        )

    async def has_existing_chats(self, user_id: str) -> bool:
        async def remote() -> bool:
            chats = await self._db.get(chats_path(user_id))
            metadata = await self._db.get(metadata_root(user_id))
            return bool(chats) or bool(metadata)

        return await self._run(
            "has_existing_chats",
            remote,
            lambda: self._fallback.has_existing_chats(user_id),
        )

    async def mark_partial_failure(self, user_id: str, session_id: str, detail: str) -> bool:
        async def remote() -> bool:
            await self._db.update(
                metadata_path(user_id, session_id),
                {"partialFailure": detail, "updatedAt": now_ms()},
            )
            return True

        return await self._run(
            "mark_partial_failure",
            remote,
            lambda: self._fallback.mark_partial_failure(user_id, session_id, detail),
        )

    async def delete_all(self, user_id: str) -> bool:
        async def remote() -> bool:
            await self._db.remove(chats_path(user_id))
            await self._db.remove(metadata_root(user_id))
            return True

        return await self._run(
            "delete_all",
            remote,
            lambda: self._fallback.delete_all(user_id),
        )
