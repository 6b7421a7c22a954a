"""
Helpers shared by the chat stores and the orchestrator.
"""

import re
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from harmony.core.logger import setup_logger
from harmony.models.chat import ChatMessage, ChatSessionSummary, SessionMetadata, sort_messages
from harmony.utils.datetime_utils import default_session_title

logger = setup_logger(__name__)

WELCOME_MESSAGE = "Welcome to Harmony! How can I assist you today?"
WELCOME_TITLE = "Welcome Chat"

FENCED_BLOCK_PATTERN = re.compile(r"```([A-Za-z]*)[ \t]*\n?([\s\S]*?)```")
DATA_LANGUAGES = {"json", "data", "chart"}

_SESSION_ID_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_messages(raw: Any) -> list[ChatMessage]:
    """
    Convert a stored message collection to sorted ChatMessage models.

    Accepts the realtime database shape ({pushKey: message}, the key being
    the message id) and the local store shape ([message, ...]). Malformed
    entries are skipped.
    """
    if not raw:
        return []
    items: Iterable[Any]
    if isinstance(raw, dict):
        items = [{**item, "id": key} if isinstance(item, dict) else item for key, item in raw.items()]
    else:
        items = raw
    messages = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            messages.append(ChatMessage.model_validate(item))
        except ValidationError as exc:
            logger.warning(f"Skipping malformed chat message {item.get('id')}: {exc}")
    return sort_messages(messages)


def parse_metadata(raw: Any) -> Optional[SessionMetadata]:
    if not isinstance(raw, dict):
        return None
    try:
        return SessionMetadata.model_validate(raw)
    except ValidationError as exc:
        logger.warning(f"Ignoring malformed session metadata: {exc}")
        return None


def summarize_session(
    session_id: str,
    messages: list[ChatMessage],
    metadata: Optional[SessionMetadata],
) -> ChatSessionSummary:
    """Build a session index entry; the title falls back to the date."""
    last = max(messages, key=lambda m: (m.timestamp, m.id)) if messages else None
    title = metadata.title if metadata and metadata.title else default_session_title(session_id)
    return ChatSessionSummary(
        session_id=session_id,
        title=title,
        message_count=len(messages),
        last_message=last.content if last else "",
        last_timestamp=last.timestamp if last else 0,
        partial_failure=metadata.partial_failure if metadata else None,
    )


def sort_session_index(summaries: list[ChatSessionSummary]) -> list[ChatSessionSummary]:
    return sorted(summaries, key=lambda s: s.last_timestamp, reverse=True)


def is_session_id(value: str) -> bool:
    return bool(_SESSION_ID_PATTERN.match(value))


def extract_data_blocks(content: str) -> list[str]:
    """
    Bodies of the fenced JSON/data code blocks in content.

    A block counts when it is tagged json, data or chart, or is untagged
    and starts with "{" or "[".
    """
    blocks = []
    for language, body in FENCED_BLOCK_PATTERN.findall(content or ""):
        body = body.strip()
        if not body:
            continue
        if language.lower() in DATA_LANGUAGES or (not language and body[0] in "{["):
            blocks.append(body)
    return blocks


def has_data_block(content: str) -> bool:
    """True if content holds a fenced JSON/data code block."""
    return bool(extract_data_blocks(content))
