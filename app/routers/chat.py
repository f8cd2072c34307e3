# =============================================================================
# app/routers/chat.py - Conversational Assistant Endpoint
# =============================================================================
# Streams the assistant's reply as plain text deltas.
#
# Flow:
# 1. Validate the conversation (ChatRequest)
# 2. Open the upstream model stream; failure here is a normal JSON error
# 3. Stream deltas back; a client disconnect cancels the upstream stream
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from app.auth import AuthUser, get_current_user_optional
from app.dependencies import ChatAssistantDep
from core.models.chat import ChatRequest
from lib.utils import CancellationToken

logger = logging.getLogger(__name__)

router = APIRouter()

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/chat")
async def chat(
    body: ChatRequest,
    request: Request,
    assistant: ChatAssistantDep,
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    Send the conversation so far and stream back the assistant's reply.

    The response body is the reply text itself, chunk by chunk, with no
    event framing. The system persona is added server-side.
    """
    user_email = user.email if user else None
    logger.info(f"Chat request: messages={len(body.messages)}, has_context={body.family_context is not None}")

    # Raises ModelServiceError before any bytes are sent
    stream = await assistant.open_stream(body.messages, body.family_context, user_email)
    cancel_token = CancellationToken()

    async def body_iterator():
        async for delta in assistant.iter_deltas(stream, cancel_token):
            yield delta
            if await request.is_disconnected():
                cancel_token.cancel("client disconnected")

    return StreamingResponse(
        body_iterator(),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
