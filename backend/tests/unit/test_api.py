"""
API tests: routers, dependency wiring and error mapping.

Requests go through httpx's ASGI transport so the app shares the test's
event loop with the stores.
"""

import httpx
import pytest
import pytest_asyncio

from harmony.api.deps import (
    get_account_service,
    get_auth_provider,
    get_bookmark_service,
    get_chat_store,
    get_orchestrator_registry,
    get_question_repository,
    get_settings_repository,
)
from harmony.core.exceptions import DuplicateError, InfrastructureError, NotFoundError, StoreUnavailableError
from harmony.infrastructure.firebase.bookmark_repository import RealtimeBookmarkRepository
from harmony.infrastructure.firebase.question_repository import RealtimeQuestionRepository
from harmony.infrastructure.local.bookmark_repository import LocalBookmarkRepository
from harmony.infrastructure.local.mock_auth import MockAuthProvider
from harmony.services.account_service import AccountService
from harmony.services.bookmark_service import BookmarkService
from harmony.services.chat_orchestrator import ChatOrchestrator, ChatOrchestratorRegistry
from harmony.utils.chat_utils import WELCOME_MESSAGE
from harmony.utils.datetime_utils import today_session_id
from main import create_app, status_code_for

AUTH = {"Authorization": "Bearer test_user"}


@pytest.fixture
def registry(chat_store, llm, settings_repo, test_settings):
    return ChatOrchestratorRegistry(
        lambda user: ChatOrchestrator(user, chat_store, llm, settings_repo, test_settings)
    )


@pytest.fixture
def app(registry, chat_store, settings_repo, remote_db, kv_store):
    bookmark_repo = RealtimeBookmarkRepository(remote_db, LocalBookmarkRepository(kv_store))
    question_repo = RealtimeQuestionRepository(remote_db)

    app = create_app()
    app.dependency_overrides[get_auth_provider] = lambda: MockAuthProvider(enabled=True)
    app.dependency_overrides[get_orchestrator_registry] = lambda: registry
    app.dependency_overrides[get_chat_store] = lambda: chat_store
    app.dependency_overrides[get_settings_repository] = lambda: settings_repo
    app.dependency_overrides[get_question_repository] = lambda: question_repo
    app.dependency_overrides[get_bookmark_service] = lambda: BookmarkService(bookmark_repo)
    app.dependency_overrides[get_account_service] = lambda: AccountService(
        chat_store, bookmark_repo, question_repo, settings_repo
    )
    return app


@pytest_asyncio.fixture
async def client(app, registry):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await registry.close_all()


class TestErrorMapping:
    @pytest.mark.parametrize(
        "exc, code",
        [
            (NotFoundError("x"), 404),
            (DuplicateError("x"), 409),
            (StoreUnavailableError("x"), 503),
            (InfrastructureError("x"), 503),
        ],
    )
    def test_status_codes(self, exc, code):
        assert status_code_for(exc) == code


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_header(self, client):
        response = await client.get("/api/chat")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_scheme(self, client):
        response = await client.get("/api/chat", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_health_is_public(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestChatApi:
    @pytest.mark.asyncio
    async def test_first_request_opens_welcome_chat(self, client):
        response = await client.get("/api/chat", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["sessionId"] == today_session_id()
        assert [m["content"] for m in body["messages"]] == [WELCOME_MESSAGE]
        assert body["isSending"] is False

    @pytest.mark.asyncio
    async def test_send_message(self, client, llm):
        llm.replies = ["Namaste!"]

        response = await client.post("/api/chat/messages", json={"content": "hello"}, headers=AUTH)

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert [(m["content"], m["isUser"]) for m in messages[-2:]] == [("hello", True), ("Namaste!", False)]

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, client):
        response = await client.post("/api/chat/messages", json={"content": ""}, headers=AUTH)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_edit_and_regenerate(self, client, llm):
        await client.post("/api/chat/messages", json={"content": "first"}, headers=AUTH)
        state = (await client.get("/api/chat", headers=AUTH)).json()
        user_message = next(m for m in state["messages"] if m["isUser"])

        llm.replies = ["edited reply"]
        edited = await client.put(
            f"/api/chat/messages/{user_message['id']}", json={"content": "changed"}, headers=AUTH
        )
        assert [m["content"] for m in edited.json()["messages"]][-2:] == ["changed", "edited reply"]

        ai_message = edited.json()["messages"][-1]
        llm.replies = ["second try"]
        regenerated = await client.post(f"/api/chat/messages/{ai_message['id']}/regenerate", headers=AUTH)
        assert regenerated.json()["messages"][-1]["content"] == "second try"

    @pytest.mark.asyncio
    async def test_sessions_and_reply_context(self, client):
        created = await client.post("/api/chat/sessions", headers=AUTH)
        assert created.status_code == 201
        session = created.json()
        welcome_id = session["messages"][0]["id"]

        pinned = await client.post("/api/chat/reply-context", json={"messageId": welcome_id}, headers=AUTH)
        assert [e["messageId"] for e in pinned.json()["replyContext"]] == [welcome_id]

        cleared = await client.delete("/api/chat/reply-context", headers=AUTH)
        assert cleared.json()["replyContext"] == []

        loaded = await client.post(f"/api/chat/sessions/{today_session_id()}/load", headers=AUTH)
        assert loaded.json()["sessionId"] == today_session_id()

    @pytest.mark.asyncio
    async def test_history_rename_and_delete(self, client):
        await client.get("/api/chat", headers=AUTH)

        sessions = (await client.get("/api/history", headers=AUTH)).json()
        assert [s["sessionId"] for s in sessions] == [today_session_id()]

        renamed = await client.patch(f"/api/history/{today_session_id()}", json={"title": "Renamed"}, headers=AUTH)
        assert renamed.json()[0]["title"] == "Renamed"

        remaining = await client.delete(f"/api/history/{today_session_id()}", headers=AUTH)
        assert remaining.json() == []


class TestBookmarksApi:
    @pytest.mark.asyncio
    async def test_bookmark_lifecycle(self, client):
        message = {"id": "m1", "content": "worth keeping", "isUser": False, "timestamp": 1}

        created = await client.post("/api/bookmarks", json=message, headers=AUTH)
        assert created.status_code == 201
        assert created.json()["bookmarkedAt"] > 0

        status = await client.get("/api/bookmarks/m1", headers=AUTH)
        assert status.json() == {"messageId": "m1", "isBookmarked": True}

        assert (await client.delete("/api/bookmarks/m1", headers=AUTH)).status_code == 204
        assert (await client.get("/api/bookmarks", headers=AUTH)).json() == []


class TestQuestionsApi:
    @pytest.mark.asyncio
    async def test_submit_and_vote(self, client):
        created = await client.post(
            "/api/questions/public",
            json={"question": "Can I export chats?", "category": "general", "author": "Asha"},
        )
        assert created.status_code == 201
        question_id = created.json()["id"]

        voted = await client.post(f"/api/questions/public/{question_id}/vote", json={}, headers=AUTH)
        assert voted.json()["votes"] == 1

        again = await client.post(f"/api/questions/public/{question_id}/vote", json={}, headers=AUTH)
        assert again.status_code == 409

        status = await client.get(f"/api/questions/public/{question_id}/vote", headers=AUTH)
        assert status.json() == {"questionId": question_id, "hasVoted": True}

    @pytest.mark.asyncio
    async def test_vote_on_missing_question(self, client):
        response = await client.post("/api/questions/public/missing/vote", json={}, headers=AUTH)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_submit_without_database(self, client, remote_db):
        remote_db.set_available(False)

        response = await client.post(
            "/api/questions/private",
            json={"question": "Billing?", "category": "billing"},
            headers=AUTH,
        )

        assert response.status_code == 503


class TestSettingsApi:
    @pytest.mark.asyncio
    async def test_update_preferences_merges(self, client):
        await client.patch("/api/settings/preferences", json={"language": "english"}, headers=AUTH)
        response = await client.patch("/api/settings/preferences", json={"writingStyle": "formal"}, headers=AUTH)

        assert response.json() == {"writingStyle": "formal", "language": "english", "maxLength": 2048}

    @pytest.mark.asyncio
    async def test_preferences_update_current_style(self, client):
        await client.get("/api/chat", headers=AUTH)

        await client.patch("/api/settings/preferences", json={"writingStyle": "auto"}, headers=AUTH)

        state = (await client.get("/api/chat", headers=AUTH)).json()
        assert state["currentStyle"] == "auto"

    @pytest.mark.asyncio
    async def test_account_setting_validation(self, client):
        ok = await client.patch("/api/settings/account", json={"path": "theme", "value": "dark"}, headers=AUTH)
        assert ok.json() == {"theme": "dark"}

        bad = await client.patch("/api/settings/account", json={"path": "theme", "value": "neon"}, headers=AUTH)
        assert bad.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_chats(self, client, chat_store, registry):
        await client.get("/api/chat", headers=AUTH)

        response = await client.post("/api/settings/delete-data", json={"scope": "chats"}, headers=AUTH)

        assert response.json() == {"deleted": ["chats"]}
        assert await chat_store.has_existing_chats("test_user") is False
        assert registry.peek("test_user") is None


class TestSubscriptionApi:
    @pytest.mark.asyncio
    async def test_pro_user(self, client):
        headers = {"Authorization": "Bearer pro_user"}

        info = (await client.get("/api/subscription", headers=headers)).json()
        access = (await client.get("/api/subscription/features/advanced_analytics", headers=headers)).json()

        assert info["plan"] == "pro"
        assert "Analytics dashboard" in info["features"]
        assert access == {"feature": "advanced_analytics", "plan": "pro", "hasAccess": True}

    @pytest.mark.asyncio
    async def test_plans(self, client):
        plans = (await client.get("/api/subscription/plans")).json()

        assert set(plans) == {"free", "pro", "education", "enterprise"}
