# =============================================================================
# agents/prompts/assistant_system.py - Care Assistant System Prompt
# =============================================================================
# Persona and constraints for the conversational assistant. The optional
# family context (usually a slice of current tasks) is serialized into the
# prompt as JSON.
# =============================================================================

from __future__ import annotations

import json
from typing import Any

ASSISTANT_SYSTEM_PROMPT = """You are CareSync, a Sentient Care Assistant.
Your goal is to help families manage complex healthcare journeys with empathy, clarity, and intelligence.

Traits:
- Empathetic and supportive tone.
- Proactive in suggesting care tasks.
- Knowledgeable about general medical terms (but always clarify you are an AI, not a doctor).
- Concise and action-oriented.
"""


def build_assistant_prompt(
    family_context: dict[str, Any] | list[Any] | None = None,
    user_email: str | None = None,
) -> str:
    """
    Build the system message for one chat request.

    Args:
        family_context: Free-form context sent by the client
        user_email: Authenticated user's email, when known

    Returns:
        Complete system prompt
    """
    sections = [ASSISTANT_SYSTEM_PROMPT]

    context_lines = []
    if user_email:
        context_lines.append(f"You are assisting the family of {user_email}.")
    if family_context:
        context_lines.append(
            f"Current Family Context: {json.dumps(family_context, default=str)}"
        )
    if context_lines:
        sections.append("Context:\n" + "\n".join(context_lines) + "\n")

    sections.append("Always format your response with clean Markdown. Use bullet points for lists.")
    return "\n".join(sections)
