"""API routers."""

from harmony.api import (
    bookmarks,
    chat,
    history,
    questions,
    realtime,
    settings,
    subscription,
)

__all__ = [
    "bookmarks",
    "chat",
    "history",
    "questions",
    "realtime",
    "settings",
    "subscription",
]
