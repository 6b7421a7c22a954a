"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from harmony.core.config import Settings, get_settings
from harmony.core.exceptions import AuthenticationError
from harmony.interfaces.auth_provider import IAuthProvider, User
from harmony.interfaces.bookmark_repository import IBookmarkRepository
from harmony.interfaces.chat_store import IChatStore
from harmony.interfaces.key_value_store import IKeyValueStore
from harmony.interfaces.llm_provider import ILLMProvider
from harmony.interfaces.question_repository import IQuestionRepository
from harmony.interfaces.realtime_database import IRealtimeDatabase
from harmony.interfaces.settings_repository import ISettingsRepository
from harmony.services.account_service import AccountService
from harmony.services.bookmark_service import BookmarkService
from harmony.services.chat_orchestrator import ChatOrchestrator, ChatOrchestratorRegistry
from harmony.services.prompt_resolver import PromptResolver
from harmony.services.realtime_service import realtime_manager


# ===========================================
# Store Dependencies
# ===========================================


@lru_cache()
def get_realtime_database() -> IRealtimeDatabase:
    """Get realtime database instance."""
    settings = get_settings()
    if settings.REALTIME_BACKEND == "memory":
        from harmony.infrastructure.local.memory_database import InMemoryRealtimeDatabase
        return InMemoryRealtimeDatabase()

    from harmony.infrastructure.firebase.realtime_database import FirebaseRealtimeDatabase
    return FirebaseRealtimeDatabase(settings)


@lru_cache()
def get_key_value_store() -> IKeyValueStore:
    """Get local fallback key-value store instance."""
    from harmony.infrastructure.local.key_value_store import SqliteKeyValueStore
    return SqliteKeyValueStore()


@lru_cache()
def get_chat_store() -> IChatStore:
    """Get chat store instance (realtime database with local fallback)."""
    from harmony.infrastructure.firebase.chat_store import RealtimeChatStore
    from harmony.infrastructure.local.chat_store import LocalChatStore

    return RealtimeChatStore(get_realtime_database(), LocalChatStore(get_key_value_store()))


@lru_cache()
def get_bookmark_repository() -> IBookmarkRepository:
    """Get bookmark repository instance."""
    from harmony.infrastructure.firebase.bookmark_repository import RealtimeBookmarkRepository
    from harmony.infrastructure.local.bookmark_repository import LocalBookmarkRepository

    return RealtimeBookmarkRepository(
        get_realtime_database(),
        LocalBookmarkRepository(get_key_value_store()),
    )


@lru_cache()
def get_question_repository() -> IQuestionRepository:
    """Get help-center question repository instance."""
    from harmony.infrastructure.firebase.question_repository import RealtimeQuestionRepository
    return RealtimeQuestionRepository(get_realtime_database())


@lru_cache()
def get_settings_repository() -> ISettingsRepository:
    """Get settings repository instance."""
    from harmony.infrastructure.firebase.settings_repository import SettingsRepository
    return SettingsRepository(get_realtime_database(), get_key_value_store())


# ===========================================
# Provider Dependencies
# ===========================================


@lru_cache()
def get_llm_provider() -> ILLMProvider:
    """Get LLM provider instance."""
    from harmony.infrastructure.gcp.gemini_provider import GeminiProvider
    return GeminiProvider(get_settings())


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER == "clerk":
        from harmony.infrastructure.auth.clerk_auth import ClerkAuthProvider

        return ClerkAuthProvider(settings)

    from harmony.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=True)


# ===========================================
# Service Dependencies
# ===========================================


def _build_orchestrator(user: User) -> ChatOrchestrator:
    llm_provider = get_llm_provider()

    async def publish(event: dict) -> None:
        await realtime_manager.publish(user.id, event)

    return ChatOrchestrator(
        user=user,
        store=get_chat_store(),
        llm_provider=llm_provider,
        settings_repo=get_settings_repository(),
        settings=get_settings(),
        resolver=PromptResolver(llm_provider),
        publisher=publish,
    )


@lru_cache()
def get_orchestrator_registry() -> ChatOrchestratorRegistry:
    """Get the per-user chat orchestrator registry."""
    return ChatOrchestratorRegistry(_build_orchestrator)


@lru_cache()
def get_bookmark_service() -> BookmarkService:
    return BookmarkService(get_bookmark_repository())


@lru_cache()
def get_account_service() -> AccountService:
    return AccountService(
        chat_store=get_chat_store(),
        bookmark_repo=get_bookmark_repository(),
        question_repo=get_question_repository(),
        settings_repo=get_settings_repository(),
    )


# ===========================================
# User Authentication
# ===========================================


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    With the mock provider the bearer token is the username.
    With Clerk, the session JWT is verified against the JWKS.
    """
    if not auth_provider.is_enabled():
        # Mock user for development
        user = User(id="dev_user", email="dev@example.com", display_name="Developer")
        request.state.user = user
        return user

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        user = await auth_provider.verify_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )
    request.state.user = user
    return user


async def get_chat_orchestrator(
    user: Annotated[User, Depends(get_current_user)],
    registry: Annotated[ChatOrchestratorRegistry, Depends(get_orchestrator_registry)],
) -> ChatOrchestrator:
    """Get (and lazily initialize) the current user's orchestrator."""
    return await registry.get(user)


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

AppSettings = Annotated[Settings, Depends(get_settings)]
ChatStore = Annotated[IChatStore, Depends(get_chat_store)]
BookmarkRepo = Annotated[IBookmarkRepository, Depends(get_bookmark_repository)]
QuestionRepo = Annotated[IQuestionRepository, Depends(get_question_repository)]
SettingsRepo = Annotated[ISettingsRepository, Depends(get_settings_repository)]
LLMProvider = Annotated[ILLMProvider, Depends(get_llm_provider)]
Registry = Annotated[ChatOrchestratorRegistry, Depends(get_orchestrator_registry)]
Orchestrator = Annotated[ChatOrchestrator, Depends(get_chat_orchestrator)]
Bookmarks = Annotated[BookmarkService, Depends(get_bookmark_service)]
Accounts = Annotated[AccountService, Depends(get_account_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]
