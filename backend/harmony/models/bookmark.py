"""
Bookmark model.

A bookmark is a denormalized copy of a chat message; deleting the
original message leaves the bookmark in place.
"""

from pydantic import Field

from harmony.models.chat import ChatMessage


class Bookmark(ChatMessage):
    """Bookmarked chat message."""

    bookmarked_at: int = Field(..., ge=0, description="Epoch milliseconds")

    @classmethod
    def from_message(cls, message: ChatMessage, bookmarked_at: int) -> "Bookmark":
        return cls(**message.model_dump(), bookmarked_at=bookmarked_at)
