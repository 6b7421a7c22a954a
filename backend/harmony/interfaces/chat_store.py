"""
Chat store interface.

Defines the contract for chat message and session metadata persistence,
scoped by user and session id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from harmony.models.chat import ChatMessage, ChatMessageCreate, ChatSessionSummary, SessionMetadata

MessagesListener = Callable[[list[ChatMessage]], Awaitable[None]]


class IChatStore(ABC):
    """Abstract interface for chat session persistence."""

    @abstractmethod
    async def append(self, user_id: str, session_id: str, message: ChatMessageCreate) -> str:
        """
        Append a message to a session.

        Ensures the session metadata exists, then refreshes its
        lastMessage / lastTimestamp / messageCount.

        Args:
            user_id: Owner user ID
            session_id: Session ID
            message: Message to store

        Returns:
            Store-assigned message id
        """
        pass

    @abstractmethod
    async def list_messages(self, user_id: str, session_id: str) -> list[ChatMessage]:
        """
        List messages for a session.

        Returns:
            Messages ordered by timestamp ascending (ties by id)
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        user_id: str,
        session_id: str,
        on_change: MessagesListener,
    ) -> Callable[[], None]:
        """
        Subscribe to a session's message list.

        on_change receives the full sorted list now and after every insert
        or delete, until the returned function is called.

        Returns:
            Unsubscribe function
        """
        pass

    @abstractmethod
    async def remove(self, user_id: str, session_id: str, message_id: str) -> bool:
        """
        Delete one message. Session metadata is not updated.

        Returns:
            True on success
        """
        pass

    @abstractmethod
    async def list_session_dates(self, user_id: str) -> list[str]:
        """
        List session ids for a user.

        Returns:
            Session ids, most recent first
        """
        pass

    @abstractmethod
    async def get_session_index(self, user_id: str) -> list[ChatSessionSummary]:
        """
        Build one summary per session.

        Returns:
            Summaries sorted by lastTimestamp descending
        """
        pass

    @abstractmethod
    async def get_metadata(self, user_id: str, session_id: str) -> Optional[SessionMetadata]:
        """Read a session's metadata record, if any."""
        pass

    @abstractmethod
    async def ensure_session(self, user_id: str, session_id: str) -> bool:
        """Create metadata with the default title if it is missing."""
        pass

    @abstractmethod
    async def create_session(self, user_id: str, session_id: str, title: str) -> bool:
        """Create metadata with a title. No-op if metadata already exists."""
        pass

    @abstractmethod
    async def update_metadata(self, user_id: str, session_id: str, last_message: str) -> bool:
        """Refresh the denormalized lastMessage / lastTimestamp / messageCount fields."""
        pass

    @abstractmethod
    async def update_title(self, user_id: str, session_id: str, title: str) -> bool:
        """Set a session's title."""
        pass

    @abstractmethod
    async def delete_session(self, user_id: str, session_id: str) -> bool:
        """Delete a session's messages and metadata (not atomic)."""
        pass

    @abstractmethod
    async def has_existing_chats(self, user_id: str) -> bool:
        """Check whether the user has any messages or session metadata."""
        pass

    @abstractmethod
    async def mark_partial_failure(self, user_id: str, session_id: str, detail: str) -> bool:
        """Record on the session metadata that a multi-step mutation stopped halfway."""
        pass

    @abstractmethod
    async def delete_all(self, user_id: str) -> bool:
        """Delete every session of a user."""
        pass

    async def get_message_count(self, user_id: str, session_id: str) -> int:
        """Count the messages of a session."""
        return len(await self.list_messages(user_id, session_id))
