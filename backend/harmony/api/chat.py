"""
Chat API endpoints.

Every operation returns the resulting chat state. Failures inside the
orchestrator (AI errors, timeouts, store fallbacks) are logged and show
up as an unchanged message list, never as an error response.
"""

from fastapi import APIRouter, status

from harmony.api.deps import Orchestrator
from harmony.models.chat import (
    ChatStateSnapshot,
    EditMessageRequest,
    ReplyContextRequest,
    SendMessageRequest,
)

router = APIRouter()


@router.get("", response_model=ChatStateSnapshot)
async def get_chat_state(orchestrator: Orchestrator):
    """Get the current chat state (active session, messages, flags)."""
    return orchestrator.snapshot()


@router.post("/messages", response_model=ChatStateSnapshot)
async def send_message(request: SendMessageRequest, orchestrator: Orchestrator):
    """Send a user message and wait for the AI reply."""
    return await orchestrator.send_message(request.content)


@router.put("/messages/{message_id}", response_model=ChatStateSnapshot)
async def edit_message(
    message_id: str,
    request: EditMessageRequest,
    orchestrator: Orchestrator,
):
    """Edit a user message; it and everything after it are replaced."""
    return await orchestrator.edit_message(message_id, request.content)


@router.post("/messages/{message_id}/regenerate", response_model=ChatStateSnapshot)
async def regenerate_message(message_id: str, orchestrator: Orchestrator):
    """Replace an AI message with a new reply."""
    return await orchestrator.regenerate_message(message_id)


@router.delete("/messages/{message_id}", response_model=ChatStateSnapshot)
async def delete_message(message_id: str, orchestrator: Orchestrator):
    """Delete one message."""
    return await orchestrator.delete_message(message_id)


@router.post("/sessions", response_model=ChatStateSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(orchestrator: Orchestrator):
    """Start a new chat."""
    return await orchestrator.create_session()


@router.post("/sessions/{session_id}/load", response_model=ChatStateSnapshot)
async def load_session(session_id: str, orchestrator: Orchestrator):
    """Switch to another chat session."""
    return await orchestrator.load_session(session_id)


@router.post("/reply-context", response_model=ChatStateSnapshot)
async def add_reply_context(request: ReplyContextRequest, orchestrator: Orchestrator):
    """Pin a message to be quoted in the next outgoing message."""
    return await orchestrator.add_reply_context(request.message_id)


@router.delete("/reply-context/{message_id}", response_model=ChatStateSnapshot)
async def remove_reply_context(message_id: str, orchestrator: Orchestrator):
    return await orchestrator.remove_reply_context(message_id)


@router.delete("/reply-context", response_model=ChatStateSnapshot)
async def clear_reply_context(orchestrator: Orchestrator):
    return await orchestrator.clear_reply_context()
