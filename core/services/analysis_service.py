# =============================================================================
# core/services/analysis_service.py - Document Upload Pipeline
# =============================================================================
# Orchestrates one POST /analyze request:
#
#   validate -> (demo?) -> extract text -> analyze -> materialize tasks -> persist?
#
# Everything here is synchronous (pdfplumber, the sync OpenAI client and
# supabase-py all block). The router runs it in the threadpool.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, time, timezone

from app.config import Settings, settings as default_settings
from app.exceptions import (
    AuthenticationRequiredError,
    DocumentExtractionError,
    EmptyDocumentError,
    FileTooLargeError,
    MissingInputError,
    UnsupportedFileTypeError,
)
from agents.document_analyst import DocumentAnalyst
from core.models.analysis import AnalysisResult, AnalyzeResponse
from core.models.document import DocumentRecord
from core.models.task import Task, TaskStatus
from core.demo_data import demo_analysis_response
from core.services.family_service import FamilyService
from core.services.storage_service import StorageService
from lib.pdf_text import PdfTextError, extract_pdf_text, is_pdf
from lib.utils import new_id, utc_now

logger = logging.getLogger(__name__)


def due_at_midnight(day: date | None) -> datetime | None:
    """A due date as UTC midnight of that day, or None."""
    if day is None:
        return None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def materialize_tasks(
    analysis: AnalysisResult,
    family_id: str,
    document_id: str,
    now: datetime | None = None,
) -> list[Task]:
    """
    Turn proposed tasks into Task records.

    Every task gets a fresh unique id and starts pending with no assignee.
    """
    now = now or utc_now()
    return [
        Task(
            id=new_id(),
            family_id=family_id,
            document_id=document_id,
            title=proposed.title,
            description=proposed.description,
            priority=proposed.priority,
            status=TaskStatus.PENDING,
            assigned_to=None,
            due_date=due_at_midnight(proposed.due_date),
            created_at=now,
            updated_at=now,
        )
        for proposed in analysis.tasks
    ]


class AnalysisService:
    """
    Runs the upload-to-tasks pipeline for a single document.

    Example:
        service = AnalysisService()
        response = service.analyze_upload(
            filename="discharge.pdf",
            content_type="application/pdf",
            content=pdf_bytes,
            family_id="family-123",
        )
        response.kind    # AnalysisKind.ANALYSIS
    """

    def __init__(
        self,
        settings: Settings | None = None,
        analyst_factory: Callable[[Settings], DocumentAnalyst] | None = None,
    ):
        self.settings = settings or default_settings
        self._analyst_factory = analyst_factory or DocumentAnalyst

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_upload(
        self,
        filename: str | None,
        content_type: str | None,
        content: bytes | None,
        family_id: str | None,
    ) -> None:
        """
        Reject uploads the pipeline can't handle.

        Raises:
            MissingInputError: No file or no family id
            UnsupportedFileTypeError: Not a PDF
            FileTooLargeError: Over MAX_UPLOAD_SIZE_MB
        """
        missing = []
        if content is None or not filename:
            missing.append("file")
        if not family_id or not family_id.strip():
            missing.append("familyId")
        if missing:
            raise MissingInputError(missing)

        if not is_pdf(filename, content_type):
            logger.warning(f"Rejected non-PDF upload: {filename} ({content_type})")
            raise UnsupportedFileTypeError(filename, content_type)

        if len(content) > self.settings.max_upload_size_bytes:
            size_mb = len(content) / (1024 * 1024)
            raise FileTooLargeError(size_mb, self.settings.MAX_UPLOAD_SIZE_MB)

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def analyze_upload(
        self,
        filename: str | None,
        content_type: str | None,
        content: bytes | None,
        family_id: str | None,
        uploaded_by: str | None = None,
    ) -> AnalyzeResponse:
        """
        Analyze an uploaded document and return its tasks.

        Args:
            filename: Original filename
            content_type: Declared MIME type
            content: File bytes
            family_id: Family the tasks belong to
            uploaded_by: Authenticated user id (required when persisting)

        Returns:
            AnalyzeResponse with kind analysis, fallback or demo

        Raises:
            CareSyncException subclasses for every failure; see app/exceptions.py
        """
        self.validate_upload(filename, content_type, content, family_id)
        family_id = family_id.strip()
        logger.info(f"Analyzing upload: file={filename}, bytes={len(content)}, family={family_id}")

        if self.settings.DEMO_MODE:
            logger.warning(f"DEMO_MODE is on; returning demo analysis for {filename}")
            return demo_analysis_response(family_id, filename)

        if self.settings.PERSIST_RESULTS:
            if not uploaded_by:
                raise AuthenticationRequiredError()
            FamilyService.require_member(family_id, uploaded_by)

        text = self.extract_text(filename, content)

        analyst = self._analyst_factory(self.settings)
        outcome = analyst.analyze(text)
        if outcome.warning:
            logger.warning(f"Using fallback analysis for {filename}: {outcome.warning.code}")

        now = utc_now()
        document_id = new_id()
        tasks = materialize_tasks(outcome.result, family_id, document_id, now=now)
        document = DocumentRecord(
            id=document_id,
            family_id=family_id,
            uploaded_by=uploaded_by,
            filename=filename,
            document_type=outcome.result.document_type.value,
            analysis_result=outcome.result.model_dump(mode="json"),
            created_at=now,
        )

        persisted = False
        if self.settings.PERSIST_RESULTS:
            document = self.persist(document, tasks, content, content_type)
            persisted = True

        logger.info(f"Analysis complete: document={document_id}, kind={outcome.kind.value}, tasks={len(tasks)}")

        return AnalyzeResponse(
            kind=outcome.kind,
            document=document,
            tasks=tasks,
            analysis=outcome.result,
            warning=outcome.warning,
            persisted=persisted,
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def extract_text(self, filename: str, content: bytes) -> str:
        """
        Extract the PDF's text layer.

        Raises:
            DocumentExtractionError: pdfplumber failed
            EmptyDocumentError: No text (or only whitespace)
        """
        try:
            text = extract_pdf_text(content)
        except PdfTextError as e:
            logger.error(f"PDF parse failed for {filename}: {e}")
            raise DocumentExtractionError(filename, e.message)

        if not text.strip():
            logger.warning(f"No text extracted from {filename}")
            raise EmptyDocumentError(filename)

        logger.info(f"Extracted {len(text)} chars from {filename}")
        return text

    def persist(
        self,
        document: DocumentRecord,
        tasks: list[Task],
        content: bytes,
        content_type: str | None,
    ) -> DocumentRecord:
        """Upload the original file, then store the document and its tasks."""
        path = StorageService.upload_document(
            family_id=document.family_id,
            document_id=document.id,
            filename=document.filename,
            content=content,
            content_type=content_type or "application/pdf",
            bucket=self.settings.STORAGE_BUCKET,
        )
        document = document.model_copy(update={"file_url": path})
        FamilyService.save_analysis(document, tasks)
        return document
