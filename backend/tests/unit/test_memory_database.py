"""
Unit tests for the in-memory realtime database.
"""

import pytest

from harmony.core.exceptions import StoreUnavailableError
from harmony.infrastructure.local.memory_database import InMemoryRealtimeDatabase


@pytest.fixture
def db():
    return InMemoryRealtimeDatabase()


class TestReadWrite:
    @pytest.mark.asyncio
    async def test_set_and_get_nested(self, db):
        await db.set("u1/data/chat/2025-01-01/m1", {"content": "hi"})

        assert await db.get("u1/data/chat/2025-01-01/m1") == {"content": "hi"}
        assert await db.get("u1/data/chat") == {"2025-01-01": {"m1": {"content": "hi"}}}

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, db):
        await db.set("a/b", {"x": 1})
        value = await db.get("a/b")
        value["x"] = 2

        assert await db.get("a/b") == {"x": 1}

    @pytest.mark.asyncio
    async def test_missing_path_is_none(self, db):
        assert await db.get("nothing/here") is None

    @pytest.mark.asyncio
    async def test_update_merges_children(self, db):
        await db.set("meta", {"title": "A", "count": 1})
        await db.update("meta", {"count": 2, "lastMessage": "x"})

        assert await db.get("meta") == {"title": "A", "count": 2, "lastMessage": "x"}

    @pytest.mark.asyncio
    async def test_remove_prunes_empty_parents(self, db):
        await db.set("u1/data/chat/s1/m1", {"content": "hi"})
        await db.remove("u1/data/chat/s1/m1")

        assert await db.get("u1/data/chat/s1") is None
        assert await db.get("u1") is None

    @pytest.mark.asyncio
    async def test_push_generates_ordered_keys(self, db):
        first = await db.push("list", {"n": 1})
        second = await db.push("list", {"n": 2})

        assert second > first
        assert list((await db.get("list")).keys()) == [first, second]


class TestAvailability:
    @pytest.mark.asyncio
    async def test_unavailable_raises(self, db):
        db.set_available(False)

        assert db.is_available() is False
        with pytest.raises(StoreUnavailableError):
            await db.get("a")
        with pytest.raises(StoreUnavailableError):
            await db.set("a", 1)


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_initial_value_then_every_change(self, db):
        seen = []

        async def listener(value):
            seen.append(value)

        await db.set("s/m1", {"n": 1})
        unsubscribe = await db.subscribe("s", listener)
        await db.set("s/m2", {"n": 2})
        await db.remove("s/m1")

        assert seen == [
            {"m1": {"n": 1}},
            {"m1": {"n": 1}, "m2": {"n": 2}},
            {"m2": {"n": 2}},
        ]

        unsubscribe()
        await db.set("s/m3", {"n": 3})
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_ancestor_write_notifies_descendant_listener(self, db):
        seen = []

        async def listener(value):
            seen.append(value)

        await db.subscribe("u1/data/chat/s1", listener)
        await db.remove("u1")

        assert seen == [None, None]

    @pytest.mark.asyncio
    async def test_unrelated_write_does_not_notify(self, db):
        seen = []

        async def listener(value):
            seen.append(value)

        await db.subscribe("u1/a", listener)
        await db.set("u1/b", 1)

        assert seen == [None]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_writes(self, db):
        async def broken(value):
            raise RuntimeError("boom")

        await db.subscribe("x", broken)
        await db.set("x", 1)

        assert await db.get("x") == 1
