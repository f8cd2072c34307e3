# =============================================================================
# core/models/analysis.py - Document Analysis Schemas
# =============================================================================
# These models define two contracts:
#
# 1. Model output (AnalysisResult): the JSON the LLM is asked to produce.
#    We validate it right after json.loads so a malformed answer becomes a
#    distinct, loggable condition instead of a KeyError three layers down.
#
# 2. API output (AnalyzeResponse): the envelope returned by POST /analyze.
#    `kind` tells the caller exactly what they got:
#      - analysis: a genuine model analysis
#      - fallback: the model answered but its output was unusable, so a
#                  single generic task was produced (see `warning`)
#      - demo:     canned data because DEMO_MODE is switched on
# =============================================================================

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field, field_validator

from core.models.document import DocumentRecord
from core.models.task import Task, TaskPriority

logger = logging.getLogger(__name__)

# Strings models use to mean "nothing here"
_NULL_STRINGS = {"", "null", "none", "n/a", "na", "not specified", "unknown"}


class DocumentType(str, Enum):
    """Classification the model assigns to a document."""
    DISCHARGE_SUMMARY = "discharge_summary"
    PRESCRIPTION = "prescription"
    CARE_PLAN = "care_plan"
    OTHER = "other"


class TaskCategory(str, Enum):
    """What kind of care a proposed task is about."""
    MEDICATION = "medication"
    APPOINTMENT = "appointment"
    MONITORING = "monitoring"
    LIFESTYLE = "lifestyle"
    OTHER = "other"


class AnalysisKind(str, Enum):
    """Discriminant for what an analysis response contains."""
    ANALYSIS = "analysis"
    FALLBACK = "fallback"
    DEMO = "demo"


def _is_null_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() in _NULL_STRINGS


# =============================================================================
# Model Output Schema
# =============================================================================

class PatientInfo(BaseModel):
    """Who the document is about."""

    name: str | None = None
    conditions: list[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, v: Any) -> Any:
        return None if _is_null_string(v) else v

    @field_validator("conditions", mode="before")
    @classmethod
    def _null_conditions(cls, v: Any) -> Any:
        return [] if v is None else v


class ProposedTask(BaseModel):
    """A task as proposed by the model, before it gets an ID and a family."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    category: TaskCategory = TaskCategory.OTHER

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, v: Any) -> Any:
        if v is None:
            return TaskPriority.MEDIUM
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, v: Any) -> Any:
        """Accept YYYY-MM-DD (or a datetime string); anything unreadable is no date."""
        if v is None or _is_null_string(v):
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        if isinstance(v, str):
            try:
                return date.fromisoformat(v.strip()[:10])
            except ValueError:
                logger.debug(f"Ignoring unparseable due_date from model: {v!r}")
                return None
        return None

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return TaskCategory.OTHER
        value = v.strip().lower()
        return value if value in TaskCategory._value2member_map_ else TaskCategory.OTHER


class AnalysisResult(BaseModel):
    """
    The structured analysis requested from the model.

    Example:
        {
            "document_type": "discharge_summary",
            "patient_info": {"name": "John Doe", "conditions": ["Hypertension"]},
            "tasks": [{"title": "...", "priority": "high", "due_date": "2024-03-01", ...}],
            "key_information": ["Medication dosage adjusted"],
            "summary": "Discharged after ..."
        }
    """

    document_type: DocumentType = DocumentType.OTHER
    patient_info: PatientInfo = Field(default_factory=PatientInfo)
    tasks: list[ProposedTask] = Field(..., description="Proposed care tasks")
    key_information: list[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("document_type", mode="before")
    @classmethod
    def _normalize_document_type(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return DocumentType.OTHER
        value = v.strip().lower()
        return value if value in DocumentType._value2member_map_ else DocumentType.OTHER

    @field_validator("patient_info", mode="before")
    @classmethod
    def _null_patient_info(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("key_information", mode="before")
    @classmethod
    def _null_key_information(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("summary", mode="before")
    @classmethod
    def _null_summary(cls, v: Any) -> Any:
        return "" if v is None else v


# =============================================================================
# API Output Schema
# =============================================================================

class AnalysisWarning(BaseModel):
    """Why an analysis fell back to the generic task."""

    code: str = Field(..., description="ANALYSIS_UNPARSEABLE or ANALYSIS_SCHEMA_INVALID")
    detail: str


class AnalyzeResponse(BaseModel):
    """
    Success envelope for POST /analyze.

    Example:
        {
            "success": true,
            "kind": "analysis",
            "is_demo": false,
            "document": {...},
            "tasks": [...],
            "analysis": {...},
            "warning": null,
            "persisted": false
        }
    """

    success: bool = True
    kind: AnalysisKind
    document: DocumentRecord
    tasks: list[Task] = Field(default_factory=list)
    analysis: AnalysisResult
    warning: AnalysisWarning | None = None
    persisted: bool = False

    @computed_field
    @property
    def is_demo(self) -> bool:
        """True only for DEMO_MODE responses."""
        return self.kind == AnalysisKind.DEMO
