"""
Unit tests for bookmarks (service and both repositories).
"""

import pytest

from harmony.infrastructure.firebase.bookmark_repository import RealtimeBookmarkRepository
from harmony.infrastructure.local.bookmark_repository import LocalBookmarkRepository, parse_bookmarks
from harmony.models.chat import ChatMessage
from harmony.services.bookmark_service import BookmarkService

USER = "u1"


@pytest.fixture(params=["remote", "local"])
def service(request, remote_db, kv_store):
    if request.param == "local":
        remote_db.set_available(False)
    return BookmarkService(RealtimeBookmarkRepository(remote_db, LocalBookmarkRepository(kv_store)))


def _message(message_id: str, content: str = "saved answer") -> ChatMessage:
    return ChatMessage(id=message_id, content=content, is_user=False, timestamp=1_000)


class TestBookmarkService:
    @pytest.mark.asyncio
    async def test_add_copies_message(self, service):
        bookmark = await service.add(USER, _message("m1", "keep this"))

        assert bookmark.id == "m1"
        assert bookmark.content == "keep this"
        assert bookmark.bookmarked_at > 0
        assert [b.id for b in await service.list(USER)] == ["m1"]

    @pytest.mark.asyncio
    async def test_add_twice_keeps_one_copy(self, service):
        await service.add(USER, _message("m1"))
        await service.add(USER, _message("m1"))

        assert len(await service.list(USER)) == 1

    @pytest.mark.asyncio
    async def test_is_bookmarked(self, service):
        await service.add(USER, _message("m1"))

        assert await service.is_bookmarked(USER, "m1") is True
        assert await service.is_bookmarked(USER, "m2") is False

    @pytest.mark.asyncio
    async def test_remove(self, service):
        await service.add(USER, _message("m1"))
        await service.add(USER, _message("m2"))

        assert await service.remove(USER, "m1") is True
        assert [b.id for b in await service.list(USER)] == ["m2"]

    @pytest.mark.asyncio
    async def test_clear_all(self, service):
        await service.add(USER, _message("m1"))

        await service.clear_all(USER)

        assert await service.list(USER) == []

    @pytest.mark.asyncio
    async def test_subscribe_sees_changes(self, service):
        seen = []

        async def on_change(bookmarks):
            seen.append([b.id for b in bookmarks])

        unsubscribe = await service.subscribe(USER, on_change)
        await service.add(USER, _message("m1"))
        unsubscribe()
        await service.add(USER, _message("m2"))

        assert seen == [[], ["m1"]]


class TestParseBookmarks:
    def test_newest_first_and_malformed_skipped(self):
        raw = {
            "a": {"id": "a", "content": "old", "isUser": False, "timestamp": 1, "bookmarkedAt": 10},
            "b": {"id": "b", "content": "new", "isUser": True, "timestamp": 2, "bookmarkedAt": 20},
            "c": {"id": "c"},
        }

        assert [b.id for b in parse_bookmarks(raw)] == ["b", "a"]

    def test_empty(self):
        assert parse_bookmarks(None) == []
