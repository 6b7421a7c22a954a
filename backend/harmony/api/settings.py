"""
Settings API endpoints (AI preferences, account settings, data management).
"""

from fastapi import APIRouter

from harmony.api.deps import Accounts, CurrentUser, Registry, SettingsRepo
from harmony.models.enums import DataScope
from harmony.models.settings import (
    AccountSettings,
    AccountSettingUpdate,
    DataDeletionRequest,
    DataDeletionResponse,
    UserSettings,
    UserSettingsUpdate,
)

router = APIRouter()


@router.get("/preferences", response_model=UserSettings)
async def get_preferences(user: CurrentUser, repo: SettingsRepo):
    """Get AI response preferences."""
    return await repo.get_preferences(user.id)


@router.patch("/preferences", response_model=UserSettings)
async def update_preferences(
    update: UserSettingsUpdate,
    user: CurrentUser,
    repo: SettingsRepo,
    registry: Registry,
):
    """Update AI response preferences (writing style, language, max length)."""
    current = await repo.get_preferences(user.id)
    merged = UserSettings.model_validate(
        {**current.model_dump(), **update.model_dump(exclude_unset=True, exclude_none=True)}
    )
    saved = await repo.save_preferences(user.id, merged)
    orchestrator = registry.peek(user.id)
    if orchestrator is not None:
        orchestrator.apply_preferences(saved)
    return saved


@router.get("/account", response_model=AccountSettings, response_model_exclude_none=True)
async def get_account_settings(user: CurrentUser, repo: SettingsRepo):
    return await repo.get_account_settings(user.id)


@router.put("/account", response_model=AccountSettings, response_model_exclude_none=True)
async def save_account_settings(settings: AccountSettings, user: CurrentUser, repo: SettingsRepo):
    await repo.save_account_settings(user.id, settings)
    return settings


@router.patch("/account", response_model=AccountSettings, response_model_exclude_none=True)
async def update_account_setting(
    update: AccountSettingUpdate,
    user: CurrentUser,
    repo: SettingsRepo,
):
    """Set one nested account setting."""
    await repo.update_account_setting(user.id, update.path, update.value)
    return await repo.get_account_settings(user.id)


@router.post("/delete-data", response_model=DataDeletionResponse)
async def delete_user_data(
    request: DataDeletionRequest,
    user: CurrentUser,
    accounts: Accounts,
    registry: Registry,
):
    """Delete chats, bookmarks, private questions, or everything."""
    deleted = await accounts.delete_user_data(user.id, request.scope)
    if request.scope in (DataScope.CHATS, DataScope.ALL):
        await registry.discard(user.id)
    return DataDeletionResponse(deleted=deleted)
