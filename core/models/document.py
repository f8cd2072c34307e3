# =============================================================================
# core/models/document.py - Uploaded Document Schema
# =============================================================================
# A document is an uploaded medical file plus the analysis the model produced
# for it. The analysis is kept as unstructured JSON; it is never stored as a
# typed entity of its own.
# =============================================================================

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from lib.utils import new_id, utc_now


class DocumentRecord(BaseModel):
    """
    Schema for a stored (or client-held) document.

    `file_url` is the storage path when the upload was persisted and None
    when the caller keeps results client-side.
    """

    id: str = Field(default_factory=new_id)
    family_id: str = Field(..., min_length=1)
    uploaded_by: str | None = Field(default=None, description="Auth user who uploaded")
    filename: str
    file_url: str | None = None
    document_type: str | None = None
    analysis_result: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utc_now)

    def to_row(self) -> dict[str, Any]:
        """JSON-safe dict matching the `documents` table columns."""
        return self.model_dump(mode="json")
