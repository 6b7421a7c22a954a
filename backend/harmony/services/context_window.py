"""
Conversation context sent with each AI request.

- Default window: the last 4 messages.
- Mathematical style: the last 6 messages, plus up to 4 earlier messages
  carrying a data block. When no earlier data message exists, a synthetic
  message built from the session's cached data snippets is prepended.
- Reply context: up to 3 pinned messages quoted ahead of the new question.
"""

from collections import deque
from typing import Optional

from harmony.models.chat import ChatMessage, ReplyContextEntry
from harmony.models.enums import ConcreteStyle
from harmony.utils.chat_utils import extract_data_blocks, has_data_block

DEFAULT_WINDOW = 4
MATHEMATICAL_WINDOW = 6
MAX_EARLIER_DATA_MESSAGES = 4
MAX_DATA_SNIPPETS = 10
MAX_SUMMARY_SNIPPETS = 3
MAX_REPLY_CONTEXT = 3
REPLY_PREVIEW_CHARS = 200
DATA_REFERENCE_PREVIEW_CHARS = 500

DATA_CONTEXT_MESSAGE_ID = "previous-data-context"


class DataSnippetBuffer:
    """Per-session FIFO of recently seen data blocks."""

    def __init__(self, max_snippets: int = MAX_DATA_SNIPPETS):
        self._snippets: deque[str] = deque(maxlen=max_snippets)

    def add(self, snippet: str) -> None:
        snippet = snippet.strip()
        if snippet and snippet not in self._snippets:
            self._snippets.append(snippet)

    def add_from_messages(self, messages: list[ChatMessage]) -> None:
        for message in messages:
            for block in extract_data_blocks(message.content):
                self.add(block)

    def recent(self, limit: int = MAX_SUMMARY_SNIPPETS) -> list[str]:
        if limit <= 0:
            return []
        return list(self._snippets)[-limit:]

    def clear(self) -> None:
        self._snippets.clear()

    def __len__(self) -> int:
        return len(self._snippets)


def build_data_context_message(snippets: list[str], timestamp: int) -> ChatMessage:
    body = "\n\n".join(f"```json\n{snippet}\n```" for snippet in snippets)
    return ChatMessage(
        id=DATA_CONTEXT_MESSAGE_ID,
        content=f"Previous data context for reference:\n{body}",
        is_user=False,
        timestamp=timestamp,
    )


def select_context(
    messages: list[ChatMessage],
    style: ConcreteStyle,
    snippets: Optional[DataSnippetBuffer] = None,
) -> list[ChatMessage]:
    """
    Pick the prior messages sent along with a request, oldest first.

    Args:
        messages: Session history before the new message, oldest first
        style: Concrete style of the request
        snippets: Session data buffer used when no earlier data message qualifies
    """
    if style != ConcreteStyle.MATHEMATICAL:
        return messages[-DEFAULT_WINDOW:]

    recent = messages[-MATHEMATICAL_WINDOW:]
    earlier = messages[: max(0, len(messages) - MATHEMATICAL_WINDOW)]
    data_messages = [m for m in earlier if has_data_block(m.content)][-MAX_EARLIER_DATA_MESSAGES:]
    if data_messages:
        return data_messages + recent

    if snippets is not None:
        cached = snippets.recent(MAX_SUMMARY_SNIPPETS)
        if cached:
            first_timestamp = recent[0].timestamp if recent else 0
            return [build_data_context_message(cached, first_timestamp)] + recent
    return recent


class ReplyContext:
    """Bounded queue of pinned messages; re-pinning a message replaces it."""

    def __init__(self, max_entries: int = MAX_REPLY_CONTEXT):
        self._max_entries = max_entries
        self._entries: list[ReplyContextEntry] = []

    def add(self, entry: ReplyContextEntry) -> None:
        self._entries = [e for e in self._entries if e.message_id != entry.message_id]
        self._entries.append(entry)
        self._entries = self._entries[-self._max_entries:]

    def remove(self, message_id: str) -> None:
        self._entries = [e for e in self._entries if e.message_id != message_id]

    def clear(self) -> None:
        self._entries = []

    @property
    def entries(self) -> list[ReplyContextEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def format_with_replies(
    content: str,
    replies: list[ReplyContextEntry],
    style: ConcreteStyle,
) -> str:
    """Prefix the outgoing message with the pinned messages it replies to."""
    if not replies:
        return content
    lines = []
    for index, reply in enumerate(replies, start=1):
        if style == ConcreteStyle.MATHEMATICAL and has_data_block(reply.content):
            lines.append(f"[Data Reference {index}]: {_truncate(reply.content, DATA_REFERENCE_PREVIEW_CHARS)}")
        else:
            lines.append(f"[Reply {index}]: {_truncate(reply.content, REPLY_PREVIEW_CHARS)}")
    lines.append(f"[New Question]: {content}")
    return "\n\n".join(lines)
