# =============================================================================
# agents/chat_assistant.py - Conversational Care Assistant
# =============================================================================
# Streams assistant replies from the model as an async iterator of text
# deltas.
#
# Two phases, so the HTTP layer can choose how to report failures:
# 1. open_stream(): starts the upstream request. Errors here happen before
#    any bytes are sent and become a normal JSON error response.
# 2. iter_deltas(): yields text as it arrives. Errors here propagate and
#    abort the response stream.
#
# Cancelling the token (or closing the generator) closes the upstream
# stream so the provider stops generating.
#
# Usage:
#   assistant = ChatAssistant()
#   stream = await assistant.open_stream(messages, family_context)
#   async for delta in assistant.iter_deltas(stream, cancel_token):
#       ...
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import AsyncOpenAI

from app.config import Settings, settings as default_settings
from app.exceptions import ModelServiceError
from agents.prompts.assistant_system import build_assistant_prompt
from core.models.chat import ChatMessage
from lib.utils import CancellationToken

logger = logging.getLogger(__name__)


class ChatAssistant:
    """
    Streaming chat over the provider's chat-completions API.

    A new client is built per assistant; the route builds one assistant per
    request.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: AsyncOpenAI | None = None,
    ):
        settings = settings or default_settings
        self.client = client or AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
        )
        self.model = settings.chat_model
        self.temperature = settings.CHAT_TEMPERATURE
        self.max_tokens = settings.CHAT_MAX_TOKENS

    def build_messages(
        self,
        messages: Sequence[ChatMessage],
        family_context: dict[str, Any] | list[Any] | None = None,
        user_email: str | None = None,
    ) -> list[dict[str, str]]:
        """System persona first, then the conversation in order."""
        system = {
            "role": "system",
            "content": build_assistant_prompt(family_context, user_email=user_email),
        }
        return [system, *(m.to_openai() for m in messages)]

    async def open_stream(
        self,
        messages: Sequence[ChatMessage],
        family_context: dict[str, Any] | list[Any] | None = None,
        user_email: str | None = None,
    ):
        """
        Start the upstream streaming completion.

        Raises:
            ModelServiceError: If the request cannot be started
        """
        payload = self.build_messages(messages, family_context, user_email)
        logger.info(f"Opening chat stream: model={self.model}, messages={len(payload)}")

        try:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=payload,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
        except Exception as e:
            logger.error(f"Failed to open chat stream: {e}")
            raise ModelServiceError(f"Chat request failed: {e}", model=self.model)

    async def iter_deltas(
        self,
        stream,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """
        Yield non-empty text deltas in arrival order.

        Stops early when `cancel_token` is cancelled. The upstream stream is
        always closed on exit, including on error and generator close.
        """
        delta_count = 0
        try:
            async for chunk in stream:
                if cancel_token is not None and cancel_token.cancelled:
                    logger.info(f"Chat stream cancelled after {delta_count} deltas: {cancel_token.reason}")
                    break
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    delta_count += 1
                    yield content
        except Exception:
            logger.exception(f"Chat stream failed after {delta_count} deltas")
            raise
        finally:
            await stream.close()

        logger.debug(f"Chat stream finished with {delta_count} deltas")

    async def stream_reply(
        self,
        messages: Sequence[ChatMessage],
        family_context: dict[str, Any] | list[Any] | None = None,
        cancel_token: CancellationToken | None = None,
        user_email: str | None = None,
    ) -> AsyncIterator[str]:
        """Open a stream and iterate its deltas in one call."""
        stream = await self.open_stream(messages, family_context, user_email)
        async for delta in self.iter_deltas(stream, cancel_token):
            yield delta
