"""
Server-sent event stream of chat state and chat history changes.
"""

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from harmony.api.deps import CurrentUser, Registry
from harmony.services.realtime_service import realtime_manager

router = APIRouter()

KEEP_ALIVE_SECONDS = 15


@router.get("/stream")
async def stream_realtime(
    user: CurrentUser,
    registry: Registry,
    request: Request,
) -> StreamingResponse:
    queue = await realtime_manager.connect(user.id)
    orchestrator = registry.peek(user.id)
    initial_state = orchestrator.snapshot().to_document() if orchestrator else None

    async def event_generator() -> AsyncGenerator[str, None]:
        try:
            yield 'data: {"type":"connected"}\n\n'
            if initial_state is not None:
                payload = json.dumps({"type": "chat_state", "data": initial_state}, separators=(",", ":"))
                yield f"data: {payload}\n\n"
            while True:
                if await request.is_disconnected():
                    break
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=KEEP_ALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {data}\n\n"
        finally:
            await realtime_manager.disconnect(user.id, queue)

    return StreamingResponse(event_generator(), media_type="text/event-stream")
