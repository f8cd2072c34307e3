# =============================================================================
# agents/ - AI Agent Definitions
# =============================================================================
# This package contains the two model-facing agents:
# - document_analyst.py: Extracts care tasks from document text (JSON mode)
# - chat_assistant.py: Streams conversational replies as text deltas
#
# Prompts:
# - prompts/analysis_prompt.py: Task-extraction instruction template
# - prompts/assistant_system.py: Assistant persona
# =============================================================================

from agents.document_analyst import (
    AnalysisOutcome,
    DocumentAnalyst,
    fallback_analysis,
)
from agents.chat_assistant import ChatAssistant

__all__ = [
    "AnalysisOutcome",
    "DocumentAnalyst",
    "fallback_analysis",
    "ChatAssistant",
]
