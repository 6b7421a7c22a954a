"""
Chat history (session index) API endpoints.
"""

from fastapi import APIRouter

from harmony.api.deps import Orchestrator
from harmony.models.chat import ChatSessionSummary, RenameSessionRequest

router = APIRouter()


@router.get("", response_model=list[ChatSessionSummary])
async def list_sessions(orchestrator: Orchestrator):
    """List chat sessions, most recent activity first."""
    return await orchestrator.history.refresh()


@router.patch("/{session_id}", response_model=list[ChatSessionSummary])
async def rename_session(
    session_id: str,
    request: RenameSessionRequest,
    orchestrator: Orchestrator,
):
    """Rename a chat session."""
    return await orchestrator.history.rename(session_id, request.title)


@router.delete("/{session_id}", response_model=list[ChatSessionSummary])
async def delete_session(session_id: str, orchestrator: Orchestrator):
    """Delete a chat session (messages and metadata)."""
    return await orchestrator.history.delete(session_id)
