"""
Chat message and session models.

Documents are stored with camelCase keys (isUser, lastTimestamp, ...),
so every model here dumps by alias.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from harmony.models.enums import WritingStyle


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase document keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChatMessageBase(CamelModel):
    """Base chat message fields."""

    content: str = Field("", max_length=100000, description="Message content")
    is_user: bool = Field(..., description="True for user-authored messages")
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds, set by the writer")
    user_profile_image: Optional[str] = Field(None, description="Display-only avatar URL")


class ChatMessageCreate(ChatMessageBase):
    """Schema for creating a chat message. The store assigns the id."""

    pass


class ChatMessage(ChatMessageBase):
    """Chat message model."""

    id: str


class SessionMetadata(CamelModel):
    """Denormalized per-session record."""

    title: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    last_message: str = ""
    last_timestamp: int = 0
    message_count: int = 0
    partial_failure: Optional[str] = None


class ChatSessionSummary(CamelModel):
    """One entry of the session index (chat history)."""

    session_id: str
    title: str
    message_count: int = 0
    last_message: str = ""
    last_timestamp: int = 0
    partial_failure: Optional[str] = None


class ReplyContextEntry(CamelModel):
    """A message pinned to be quoted in the next outgoing message."""

    message_id: str
    content: str
    timestamp: int


class ChatStateSnapshot(CamelModel):
    """Observable state of a user's chat orchestrator."""

    session_id: Optional[str] = None
    messages: list[ChatMessage] = Field(default_factory=list)
    is_loading: bool = False
    is_sending: bool = False
    is_thinking: bool = False
    current_style: WritingStyle = WritingStyle.CONCISE
    reply_context: list[ReplyContextEntry] = Field(default_factory=list)


def sort_messages(messages: list[ChatMessage]) -> list[ChatMessage]:
    """Order messages by timestamp, ties broken by id."""
    return sorted(messages, key=lambda m: (m.timestamp, m.id))


class SendMessageRequest(CamelModel):
    content: str = Field(..., min_length=1, max_length=100000)


class EditMessageRequest(CamelModel):
    content: str = Field(..., min_length=1, max_length=100000)


class ReplyContextRequest(CamelModel):
    message_id: str


class RenameSessionRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
