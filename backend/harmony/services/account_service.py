"""
Account data management: bulk deletion of a user's stored data.
"""

from harmony.core.exceptions import InfrastructureError
from harmony.core.logger import setup_logger
from harmony.interfaces.bookmark_repository import IBookmarkRepository
from harmony.interfaces.chat_store import IChatStore
from harmony.interfaces.question_repository import IQuestionRepository
from harmony.interfaces.settings_repository import ISettingsRepository
from harmony.models.enums import DataScope

logger = setup_logger(__name__)


class AccountService:
    """Deletes user data by scope."""

    def __init__(
        self,
        chat_store: IChatStore,
        bookmark_repo: IBookmarkRepository,
        question_repo: IQuestionRepository,
        settings_repo: ISettingsRepository,
    ):
        self._chat_store = chat_store
        self._bookmark_repo = bookmark_repo
        self._question_repo = question_repo
        self._settings_repo = settings_repo

    async def delete_user_data(self, user_id: str, scope: DataScope) -> list[DataScope]:
        """
        Delete data in scope.

        "all" also removes preferences and account settings. Private
        questions need the realtime database; when it is unavailable they
        are skipped and left out of the returned scopes.

        Returns:
            Scopes that were deleted
        """
        deleted: list[DataScope] = []
        if scope in (DataScope.CHATS, DataScope.ALL):
            await self._chat_store.delete_all(user_id)
            deleted.append(DataScope.CHATS)
        if scope in (DataScope.BOOKMARKS, DataScope.ALL):
            await self._bookmark_repo.clear(user_id)
            deleted.append(DataScope.BOOKMARKS)
        if scope in (DataScope.FAQS, DataScope.ALL):
            try:
                await self._question_repo.delete_private(user_id)
                deleted.append(DataScope.FAQS)
            except InfrastructureError as exc:
                logger.warning(f"Skipping private question deletion for {user_id}: {exc}")
        if scope == DataScope.ALL:
            await self._settings_repo.delete_all(user_id)
            deleted.append(DataScope.ALL)
        logger.info(f"Deleted {', '.join(s.value for s in deleted) or 'nothing'} for {user_id}")
        return deleted
