# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - task.py: Care tasks, priorities, statuses, create/update inputs
# - member.py: Family members
# - document.py: Uploaded documents
# - analysis.py: Model output schema and the /analyze response envelope
# - chat.py: Assistant chat request schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Task Models
# -----------------------------------------------------------------------------
from .task import (
    Task,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
)

# -----------------------------------------------------------------------------
# Member Models
# -----------------------------------------------------------------------------
from .member import (
    Member,
    MemberCreate,
    MemberRole,
)

# -----------------------------------------------------------------------------
# Document Models
# -----------------------------------------------------------------------------
from .document import DocumentRecord

# -----------------------------------------------------------------------------
# Analysis Models - Model output contract and API envelope
# -----------------------------------------------------------------------------
from .analysis import (
    AnalysisKind,
    AnalysisResult,
    AnalysisWarning,
    AnalyzeResponse,
    DocumentType,
    PatientInfo,
    ProposedTask,
    TaskCategory,
)

# -----------------------------------------------------------------------------
# Chat Models - Conversational assistant
# -----------------------------------------------------------------------------
from .chat import (
    ChatMessage,
    ChatRequest,
    MessageRole,
)

__all__ = [
    # Task
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    # Member
    "Member",
    "MemberCreate",
    "MemberRole",
    # Document
    "DocumentRecord",
    # Analysis
    "AnalysisKind",
    "AnalysisResult",
    "AnalysisWarning",
    "AnalyzeResponse",
    "DocumentType",
    "PatientInfo",
    "ProposedTask",
    "TaskCategory",
    # Chat
    "ChatMessage",
    "ChatRequest",
    "MessageRole",
]
