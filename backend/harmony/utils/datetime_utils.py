"""
Datetime helpers for session ids, titles and epoch-millisecond timestamps.

Session ids are either a calendar date ("2025-01-31") or, for explicitly
created chats, the date followed by the creation time in epoch
milliseconds ("2025-01-31-1738310400000").
"""

import time
from datetime import date, datetime, timezone
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def today_session_id(now: Optional[datetime] = None) -> str:
    """Session id for today's default conversation."""
    return (now or now_utc()).date().isoformat()


def new_session_id(now: Optional[datetime] = None) -> str:
    """Session id for an explicitly created conversation."""
    now = now or now_utc()
    return f"{now.date().isoformat()}-{int(now.timestamp() * 1000)}"


def session_base_date(session_id: str) -> Optional[date]:
    """Parse the YYYY-MM-DD prefix of a session id, or None."""
    base = "-".join(session_id.split("-")[:3])
    try:
        return date.fromisoformat(base)
    except ValueError:
        return None


def default_session_title(session_id: str) -> str:
    """
    Title used when no custom title was ever set.

    >>> default_session_title("2025-01-31-1738310400000")
    'Chat 1/31/2025'
    """
    base = session_base_date(session_id)
    if base is None:
        return f"Chat {session_id}"
    return f"Chat {base.month}/{base.day}/{base.year}"


def new_chat_title(now: Optional[datetime] = None) -> str:
    """Title for a chat created with "new chat", e.g. "New Chat 09:05 PM"."""
    return f"New Chat {(now or now_utc()).strftime('%I:%M %p')}"


def ms_to_date(timestamp_ms: int) -> str:
    """Calendar date (UTC) of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).date().isoformat()
