# =============================================================================
# core/models/chat.py - Assistant Chat Schemas
# =============================================================================
# These models define the API contract for the conversational assistant:
# - ChatMessage: One role-tagged message in the conversation
# - ChatRequest: The full conversation plus optional family context
#
# The response is not modelled: it is a raw text stream of assistant deltas.
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """
    Who sent the message in a conversation.

    - user: The family member typing
    - assistant: Earlier replies from the assistant
    - system: Extra instructions from the client (rare)
    """
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """A single message, in the provider's chat format."""

    role: MessageRole
    content: str = Field(..., max_length=20_000)

    def to_openai(self) -> dict[str, str]:
        """Format for the chat-completions `messages` array."""
        return {"role": self.role.value, "content": self.content}


class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    Example:
        {
            "messages": [
                {"role": "user", "content": "What should we do first?"}
            ],
            "familyContext": {"tasks": [{"title": "Pick up prescription", "status": "pending"}]}
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Conversation so far, oldest first"
    )

    family_context: dict[str, Any] | list[Any] | None = Field(
        default=None,
        alias="familyContext",
        description="Optional slice of family state (e.g. current tasks)"
    )
