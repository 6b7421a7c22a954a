"""
Unit tests for the Firebase Realtime Database client.

The Admin SDK reference is replaced with a MagicMock; listener events are
fed from a worker thread the way the SDK delivers them.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from firebase_admin.exceptions import UnavailableError

from harmony.core.config import Settings
from harmony.core.exceptions import InfrastructureError, StoreUnavailableError
from harmony.infrastructure.firebase import realtime_database
from harmony.infrastructure.firebase.realtime_database import FirebaseRealtimeDatabase, apply_event


@pytest.fixture
def reference():
    ref = MagicMock()
    ref.get.return_value = None
    ref.push.return_value = SimpleNamespace(key="-Nabc123")
    return ref


@pytest.fixture
def database(monkeypatch, reference):
    paths = []

    def fake_reference(path, app=None):
        paths.append(path)
        return reference

    monkeypatch.setattr(realtime_database.db, "reference", fake_reference)
    database = FirebaseRealtimeDatabase(Settings(FIREBASE_DATABASE_URL=""), app=MagicMock())
    database.paths = paths
    return database


class TestApplyEvent:
    def test_root_put_replaces_value(self):
        assert apply_event({"a": 1}, "put", "/", {"b": 2}) == {"b": 2}

    def test_child_put_and_delete(self):
        value = apply_event({"m1": {"content": "hi"}}, "put", "/m2", {"content": "yo"})
        assert value == {"m1": {"content": "hi"}, "m2": {"content": "yo"}}

        assert apply_event(value, "put", "/m1", None) == {"m2": {"content": "yo"}}
        assert apply_event({"m1": {"content": "hi"}}, "put", "/m1", None) is None

    def test_patch_merges_children(self):
        value = apply_event({"title": "Old", "messageCount": 1}, "patch", "/", {"title": "New", "lastMessage": "x"})

        assert value == {"title": "New", "messageCount": 1, "lastMessage": "x"}

    def test_patch_on_nested_path(self):
        value = apply_event({"m1": {"content": "hi"}}, "patch", "/m1", {"content": "edited"})

        assert value == {"m1": {"content": "edited"}}


class TestFirebaseRealtimeDatabase:
    @pytest.mark.asyncio
    async def test_reads_and_writes_go_through_references(self, database, reference):
        reference.get.return_value = {"theme": "dark"}

        assert await database.get("u1/settings/") == {"theme": "dark"}
        await database.set("u1/settings", {"theme": "light"})
        await database.update("u1/settings", {"analytics": False})
        await database.remove("u1/settings")

        assert database.paths == ["/u1/settings"] * 4
        reference.set.assert_called_once_with({"theme": "light"})
        reference.update.assert_called_once_with({"analytics": False})
        reference.delete.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_push_returns_generated_key(self, database, reference):
        key = await database.push("u1/data/chat/2025-01-01", {"content": "hi"})

        assert key == "-Nabc123"
        reference.push.assert_called_once_with({"content": "hi"})

    @pytest.mark.asyncio
    async def test_set_none_deletes(self, database, reference):
        await database.set("u1/settings", None)

        reference.delete.assert_called_once_with()
        reference.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_update_is_skipped(self, database, reference):
        await database.update("u1/settings", {})

        reference.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_infrastructure_error(self, database, reference):
        reference.get.side_effect = UnavailableError("database offline")

        with pytest.raises(InfrastructureError):
            await database.get("anything")

    @pytest.mark.asyncio
    async def test_subscribe_delivers_listener_events(self, database, reference):
        reference.get.return_value = {"m1": {"content": "hi"}}
        registration = MagicMock()
        handlers = []

        def listen(handler):
            handlers.append(handler)
            return registration

        reference.listen.side_effect = listen
        seen = []

        async def listener(value):
            seen.append(value)

        unsubscribe = await database.subscribe("u1/data/chat/s1", listener)
        # Initial snapshot from the SDK repeats the current value.
        await asyncio.to_thread(
            handlers[0], SimpleNamespace(event_type="put", path="/", data={"m1": {"content": "hi"}})
        )
        await asyncio.to_thread(
            handlers[0], SimpleNamespace(event_type="put", path="/m2", data={"content": "from another client"})
        )
        await asyncio.sleep(0.05)
        unsubscribe()
        await asyncio.sleep(0.05)
        handlers[0](SimpleNamespace(event_type="put", path="/m1", data=None))
        await asyncio.sleep(0.05)

        assert seen == [
            {"m1": {"content": "hi"}},
            {"m1": {"content": "hi"}, "m2": {"content": "from another client"}},
        ]
        registration.close.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_close_stops_subscriptions(self, database, reference):
        registration = MagicMock()
        reference.listen.return_value = registration

        async def listener(value):
            pass

        await database.subscribe("u1/settings", listener)
        await database.close()
        await asyncio.sleep(0.05)

        registration.close.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        database = FirebaseRealtimeDatabase(Settings(FIREBASE_DATABASE_URL=""))

        assert database.is_available() is False
        with pytest.raises(StoreUnavailableError):
            await database.get("anything")
