"""
Local fallback implementation of the chat store.

Uses the same key layout as the original browser storage:
- "harmony_chat_{user}_{session}"  -> list of message documents
- "harmony-chat-history-{user}"    -> list of session metadata documents
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from harmony.interfaces.chat_store import IChatStore, MessagesListener
from harmony.interfaces.key_value_store import IKeyValueStore
from harmony.models.chat import ChatMessage, ChatMessageCreate, ChatSessionSummary, SessionMetadata
from harmony.utils.chat_utils import (
    is_session_id,
    parse_messages,
    parse_metadata,
    sort_session_index,
    summarize_session,
)
from harmony.utils.datetime_utils import default_session_title, now_ms
from harmony.utils.push_id import generate_push_id


def chat_key(user_id: str, session_id: str) -> str:
    return f"harmony_chat_{user_id}_{session_id}"


def history_key(user_id: str) -> str:
    return f"harmony-chat-history-{user_id}"


class LocalChatStore(IChatStore):
    """Chat store kept in the local key-value store."""

    def __init__(self, kv_store: IKeyValueStore):
        self._kv = kv_store

    # ===========================================
    # History (session metadata) helpers
    # ===========================================

    async def _load_history(self, user_id: str) -> list[dict[str, Any]]:
        history = await self._kv.get(history_key(user_id))
        return [entry for entry in history or [] if isinstance(entry, dict)]

    async def _find_entry(self, user_id: str, session_id: str) -> Optional[dict[str, Any]]:
        for entry in await self._load_history(user_id):
            if entry.get("sessionId") == session_id:
                return entry
        return None

    async def _upsert_entry(
        self,
        user_id: str,
        session_id: str,
        changes: dict[str, Any],
        default_title: Optional[str] = None,
    ) -> None:
        history = await self._load_history(user_id)
        for entry in history:
            if entry.get("sessionId") == session_id:
                entry.update(changes)
                break
        else:
            now = now_ms()
            entry = {
                "sessionId": session_id,
                "title": default_title or default_session_title(session_id),
                "createdAt": now,
                "lastMessage": "",
                "messageCount": 0,
            }
            entry.update(changes)
            history.append(entry)
        await self._kv.set(history_key(user_id), history)

    # ===========================================
    # Messages
    # ===========================================

    async def append(self, user_id: str, session_id: str, message: ChatMessageCreate) -> str:
        key = chat_key(user_id, session_id)
        existing = await self._kv.get(key) or []
        message_id = generate_push_id()
        existing.append({**message.to_document(), "id": message_id})
        await self._kv.set(key, existing)
        await self.update_metadata(user_id, session_id, message.content)
        return message_id

    async def list_messages(self, user_id: str, session_id: str) -> list[ChatMessage]:
        return parse_messages(await self._kv.get(chat_key(user_id, session_id)))

    async def subscribe(
        self,
        user_id: str,
        session_id: str,
        on_change: MessagesListener,
    ) -> Callable[[], None]:
        async def handle_value(value: Any) -> None:
            await on_change(parse_messages(value))

        return await self._kv.subscribe(chat_key(user_id, session_id), handle_value)

    async def remove(self, user_id: str, session_id: str, message_id: str) -> bool:
        key = chat_key(user_id, session_id)
        existing = await self._kv.get(key)
        if existing is None:
            return False
        filtered = [item for item in existing if item.get("id") != message_id]
        if len(filtered) == len(existing):
            return False
        await self._kv.set(key, filtered)
        return True

    # ===========================================
    # Sessions
    # ===========================================

    async def _message_session_ids(self, user_id: str) -> list[str]:
        prefix = chat_key(user_id, "")
        session_ids = []
        for key in await self._kv.keys(prefix):
            session_id = key[len(prefix):]
            if is_session_id(session_id) and await self._kv.get(key):
                session_ids.append(session_id)
        return session_ids

    async def list_session_dates(self, user_id: str) -> list[str]:
        session_ids = set(await self._message_session_ids(user_id))
        session_ids.update(
            entry["sessionId"] for entry in await self._load_history(user_id) if entry.get("sessionId")
        )
        return sorted(session_ids, reverse=True)

    async def get_session_index(self, user_id: str) -> list[ChatSessionSummary]:
        history = {entry.get("sessionId"): entry for entry in await self._load_history(user_id)}
        summaries = []
        for session_id in await self._message_session_ids(user_id):
            messages = await self.list_messages(user_id, session_id)
            summaries.append(
                summarize_session(session_id, messages, parse_metadata(history.get(session_id)))
            )
        return sort_session_index(summaries)

    async def get_metadata(self, user_id: str, session_id: str) -> Optional[SessionMetadata]:
        return parse_metadata(await self._find_entry(user_id, session_id))

    async def ensure_session(self, user_id: str, session_id: str) -> bool:
        if await self._find_entry(user_id, session_id) is None:
            await self._upsert_entry(user_id, session_id, {})
        return True

    async def create_session(self, user_id: str, session_id: str, title: str) -> bool:
        if await self._find_entry(user_id, session_id) is None:
            await self._upsert_entry(user_id, session_id, {}, default_title=title)
        return True

    async def update_metadata(self, user_id: str, session_id: str, last_message: str) -> bool:
        count = len(await self._kv.get(chat_key(user_id, session_id)) or [])
        now = now_ms()
        await self._upsert_entry(
            user_id,
            session_id,
            {
                "lastMessage": last_message,
                "lastTimestamp": now,
                "messageCount": count,
                "updatedAt": now,
            },
        )
        return True

    async def update_title(self, user_id: str, session_id: str, title: str) -> bool:
        await self._upsert_entry(user_id, session_id, {"title": title, "updatedAt": now_ms()})
        return True

    async def delete_session(self, user_id: str, session_id: str) -> bool:
        await self._kv.delete(chat_key(user_id, session_id))
        history = [
            entry for entry in await self._load_history(user_id) if entry.get("sessionId") != session_id
        ]
        await self._kv.set(history_key(user_id), history)
        return True

    async def has_existing_chats(self, user_id: str) -> bool:
        if await self._load_history(user_id):
            return True
        return bool(await self._message_session_ids(user_id))

    async def mark_partial_failure(self, user_id: str, session_id: str, detail: str) -> bool:
        await self._upsert_entry(user_id, session_id, {"partialFailure": detail, "updatedAt": now_ms()})
        return True

    async def delete_all(self, user_id: str) -> bool:
        for key in await self._kv.keys(chat_key(user_id, "")):
            await self._kv.delete(key)
        await self._kv.delete(history_key(user_id))
        return True
