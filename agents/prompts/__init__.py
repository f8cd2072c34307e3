# =============================================================================
# agents/prompts/ - Prompts for AI Agents
# =============================================================================
# - analysis_prompt.py: Document analysis instruction + JSON schema
# - assistant_system.py: Care assistant persona
# =============================================================================

from agents.prompts.analysis_prompt import (
    ANALYSIS_JSON_SCHEMA,
    ANALYSIS_PROMPT_TEMPLATE,
    build_analysis_prompt,
)
from agents.prompts.assistant_system import (
    ASSISTANT_SYSTEM_PROMPT,
    build_assistant_prompt,
)

__all__ = [
    "ANALYSIS_JSON_SCHEMA",
    "ANALYSIS_PROMPT_TEMPLATE",
    "build_analysis_prompt",
    "ASSISTANT_SYSTEM_PROMPT",
    "build_assistant_prompt",
]
