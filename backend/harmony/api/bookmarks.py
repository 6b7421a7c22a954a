"""
Bookmarks API endpoints.
"""

from fastapi import APIRouter, HTTPException, status

from harmony.api.deps import Bookmarks, CurrentUser
from harmony.models.bookmark import Bookmark
from harmony.models.chat import ChatMessage

router = APIRouter()


@router.get("", response_model=list[Bookmark])
async def list_bookmarks(user: CurrentUser, service: Bookmarks):
    """List bookmarks, newest first."""
    return await service.list(user.id)


@router.post("", response_model=Bookmark, status_code=status.HTTP_201_CREATED)
async def add_bookmark(message: ChatMessage, user: CurrentUser, service: Bookmarks):
    """Bookmark a chat message (a copy is stored)."""
    return await service.add(user.id, message)


@router.get("/{message_id}")
async def get_bookmark_status(message_id: str, user: CurrentUser, service: Bookmarks):
    """Check whether a message is bookmarked."""
    return {"messageId": message_id, "isBookmarked": await service.is_bookmarked(user.id, message_id)}


@router.delete("/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_bookmark(bookmark_id: str, user: CurrentUser, service: Bookmarks):
    """Remove a bookmark."""
    if not await service.remove(user.id, bookmark_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bookmark {bookmark_id} not found",
        )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_bookmarks(user: CurrentUser, service: Bookmarks):
    """Remove all bookmarks."""
    await service.clear_all(user.id)
