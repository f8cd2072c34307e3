# =============================================================================
# tests/test_analysis_service.py - Upload Pipeline Tests
# =============================================================================
# This module contains tests for:
# - Upload validation (missing input, non-PDF, too large)
# - Text extraction failures
# - Task materialization (ids, family, due dates)
# - DEMO_MODE and PERSIST_RESULTS paths
#
# pdfplumber, OpenAI and Supabase are all mocked.
# =============================================================================

import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from agents.document_analyst import AnalysisOutcome, DocumentAnalyst
from app.exceptions import (
    AuthenticationRequiredError,
    DocumentExtractionError,
    EmptyDocumentError,
    FamilyNotFoundError,
    FileTooLargeError,
    MissingInputError,
    ModelServiceError,
    PersistenceError,
    StorageUploadError,
    UnsupportedFileTypeError,
)
from core.models.analysis import AnalysisKind, AnalysisResult, ProposedTask
from core.models.task import TaskStatus
from core.services.analysis_service import AnalysisService, due_at_midnight, materialize_tasks
from lib.pdf_text import PdfTextError
from tests.conftest import make_completion

EXTRACT = "core.services.analysis_service.extract_pdf_text"


@pytest.fixture
def analyst_factory():
    """A factory whose analysts must never be used unless a test says so."""
    return MagicMock(name="analyst_factory")


@pytest.fixture
def model_backed_service(test_settings, mock_openai_client, sample_analysis_dict):
    """A service with a real DocumentAnalyst over a mocked OpenAI client."""
    mock_openai_client.chat.completions.create.return_value = make_completion(
        json.dumps(sample_analysis_dict)
    )
    return AnalysisService(
        test_settings,
        analyst_factory=lambda s: DocumentAnalyst(s, client=mock_openai_client),
    )


def upload(service, content, /, **overrides):
    values = {
        "filename": "discharge.pdf",
        "content_type": "application/pdf",
        "content": content,
        "family_id": "family-123",
    }
    values.update(overrides)
    return service.analyze_upload(**values)


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidation:
    """Uploads the pipeline rejects before doing any work."""

    @pytest.mark.parametrize(
        "filename,content_type",
        [
            ("photo.png", "image/png"),
            ("notes.txt", "text/plain"),
            ("notes.docx", "application/octet-stream"),
            ("scan.jpg", None),
        ],
    )
    def test_non_pdf_rejected_without_model_call(self, test_settings, analyst_factory, pdf_bytes, filename, content_type):
        service = AnalysisService(test_settings, analyst_factory=analyst_factory)

        with patch(EXTRACT) as extract:
            with pytest.raises(UnsupportedFileTypeError) as exc_info:
                upload(service, pdf_bytes, filename=filename, content_type=content_type)

        assert exc_info.value.status_code == 400
        assert "please upload a PDF" in exc_info.value.message
        extract.assert_not_called()
        analyst_factory.assert_not_called()

    def test_pdf_by_extension_when_type_is_generic(self, test_settings, analyst_factory, pdf_bytes):
        analyst_factory.return_value.analyze.return_value = AnalysisOutcome(
            result=AnalysisResult(tasks=[ProposedTask(title="Call pharmacy")]),
            kind=AnalysisKind.ANALYSIS,
        )
        service = AnalysisService(test_settings, analyst_factory=analyst_factory)

        with patch(EXTRACT, return_value="Some text"):
            response = upload(service, pdf_bytes, filename="scan.PDF", content_type="application/octet-stream")

        analyst_factory.return_value.analyze.assert_called_once_with("Some text")
        assert [t.title for t in response.tasks] == ["Call pharmacy"]

    @pytest.mark.parametrize(
        "overrides,missing",
        [
            ({"content": None}, ["file"]),
            ({"family_id": ""}, ["familyId"]),
            ({"family_id": "   "}, ["familyId"]),
            ({"content": None, "family_id": None}, ["file", "familyId"]),
        ],
    )
    def test_missing_input(self, test_settings, analyst_factory, pdf_bytes, overrides, missing):
        service = AnalysisService(test_settings, analyst_factory=analyst_factory)

        with pytest.raises(MissingInputError) as exc_info:
            upload(service, pdf_bytes, **overrides)

        assert exc_info.value.details["missing"] == missing
        analyst_factory.assert_not_called()

    def test_too_large(self, make_settings, analyst_factory):
        service = AnalysisService(make_settings(MAX_UPLOAD_SIZE_MB=1), analyst_factory=analyst_factory)

        with pytest.raises(FileTooLargeError) as exc_info:
            upload(service, b"%PDF" + b"0" * (1024 * 1024))

        assert exc_info.value.status_code == 413
        analyst_factory.assert_not_called()


# =============================================================================
# Extraction Tests
# =============================================================================

class TestExtraction:
    """Failures reading the PDF never reach the model."""

    @pytest.mark.parametrize("text", ["", "   \n\t  \n"])
    def test_empty_text(self, test_settings, analyst_factory, pdf_bytes, text):
        service = AnalysisService(test_settings, analyst_factory=analyst_factory)

        with patch(EXTRACT, return_value=text):
            with pytest.raises(EmptyDocumentError) as exc_info:
                upload(service, pdf_bytes)

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "No text could be extracted from this document."
        analyst_factory.assert_not_called()

    def test_parser_failure(self, test_settings, analyst_factory, pdf_bytes):
        service = AnalysisService(test_settings, analyst_factory=analyst_factory)

        with patch(EXTRACT, side_effect=PdfTextError("Failed to read PDF: bad xref")):
            with pytest.raises(DocumentExtractionError) as exc_info:
                upload(service, pdf_bytes)

        assert exc_info.value.message == "PDF Parse Failed"
        assert "bad xref" in exc_info.value.details["error"]
        analyst_factory.assert_not_called()


# =============================================================================
# Materialization Tests
# =============================================================================

class TestMaterialization:
    """One Task per proposed task, with fresh ids and the request's family."""

    def test_n_tasks_with_unique_ids(self, model_backed_service, pdf_bytes):
        with patch(EXTRACT, return_value="Discharge summary ..."):
            response = upload(model_backed_service, pdf_bytes)

        assert response.kind == AnalysisKind.ANALYSIS
        assert response.is_demo is False
        assert len(response.tasks) == 3
        assert len({t.id for t in response.tasks}) == 3
        assert all(t.family_id == "family-123" for t in response.tasks)
        assert all(t.document_id == response.document.id for t in response.tasks)
        assert all(t.status == TaskStatus.PENDING and t.assigned_to is None for t in response.tasks)

    def test_due_dates_are_utc_midnight_or_null(self, model_backed_service, pdf_bytes):
        with patch(EXTRACT, return_value="Discharge summary ..."):
            response = upload(model_backed_service, pdf_bytes)

        rows = [t.to_row() for t in response.tasks]
        assert rows[0]["due_date"] == "2024-03-15T00:00:00Z"
        assert rows[1]["due_date"] == "2024-03-03T00:00:00Z"
        assert rows[2]["due_date"] is None

    def test_document_record(self, model_backed_service, pdf_bytes, sample_analysis_dict):
        with patch(EXTRACT, return_value="Discharge summary ..."):
            response = upload(model_backed_service, pdf_bytes, uploaded_by="user-1")

        assert response.document.filename == "discharge.pdf"
        assert response.document.family_id == "family-123"
        assert response.document.uploaded_by == "user-1"
        assert response.document.file_url is None
        assert response.document.document_type == "discharge_summary"
        assert response.document.analysis_result["summary"] == sample_analysis_dict["summary"]
        assert response.persisted is False

    def test_fallback_flows_through(self, test_settings, mock_openai_client, pdf_bytes):
        mock_openai_client.chat.completions.create.return_value = make_completion("not json at all")
        service = AnalysisService(
            test_settings,
            analyst_factory=lambda s: DocumentAnalyst(s, client=mock_openai_client),
        )

        with patch(EXTRACT, return_value="Discharge summary ..."):
            response = upload(service, pdf_bytes)

        assert response.kind == AnalysisKind.FALLBACK
        assert response.warning.code == "ANALYSIS_UNPARSEABLE"
        assert [t.title for t in response.tasks] == ["Review uploaded document"]
        assert response.tasks[0].family_id == "family-123"

    def test_materialize_generates_new_ids_each_time(self):
        analysis = AnalysisResult(tasks=[ProposedTask(title="A"), ProposedTask(title="B")])

        first = materialize_tasks(analysis, "family-1", "doc-1")
        second = materialize_tasks(analysis, "family-1", "doc-1")

        assert {t.id for t in first}.isdisjoint({t.id for t in second})

    def test_due_at_midnight(self):
        assert due_at_midnight(None) is None
        assert due_at_midnight(date(2024, 3, 15)).isoformat() == "2024-03-15T00:00:00+00:00"


# =============================================================================
# Demo Mode Tests
# =============================================================================

class TestDemoMode:
    """DEMO_MODE returns canned data for the real family and filename."""

    def test_demo_skips_extraction_and_model(self, make_settings, analyst_factory, pdf_bytes):
        service = AnalysisService(make_settings(DEMO_MODE=True), analyst_factory=analyst_factory)

        with patch(EXTRACT) as extract:
            response = upload(service, pdf_bytes, filename="mom.pdf")

        extract.assert_not_called()
        analyst_factory.assert_not_called()
        assert response.kind == AnalysisKind.DEMO
        assert response.is_demo is True
        assert response.document.filename == "mom.pdf"
        assert response.document.id.startswith("doc-demo-")
        assert len(response.tasks) == 3
        assert all(t.id.startswith("task-demo-") for t in response.tasks)
        assert all(t.family_id == "family-123" for t in response.tasks)
        assert "DEMO ANALYSIS" in response.analysis.summary

    def test_demo_still_validates(self, make_settings, pdf_bytes):
        service = AnalysisService(make_settings(DEMO_MODE=True))

        with pytest.raises(UnsupportedFileTypeError):
            upload(service, pdf_bytes, filename="photo.png", content_type="image/png")

    def test_errors_never_become_demo_data(self, test_settings, mock_openai_client, pdf_bytes):
        mock_openai_client.chat.completions.create.side_effect = RuntimeError("boom")
        service = AnalysisService(
            test_settings,
            analyst_factory=lambda s: DocumentAnalyst(s, client=mock_openai_client),
        )

        with patch(EXTRACT, return_value="text"):
            with pytest.raises(ModelServiceError) as exc_info:
                upload(service, pdf_bytes)

        assert exc_info.value.status_code == 502

# =============================================================================
# Persistence Tests
# =============================================================================

@pytest.fixture
def persist_settings(make_settings):
    return make_settings(
        PERSIST_RESULTS=True,
        SUPABASE_URL="https://test-project.supabase.co",
        SUPABASE_SERVICE_KEY="service-key",
        SUPABASE_JWT_SECRET="secret",
        STORAGE_BUCKET="care-docs",
    )


@pytest.fixture
def persisting_service(persist_settings, mock_openai_client, sample_analysis_dict):
    mock_openai_client.chat.completions.create.return_value = make_completion(
        json.dumps(sample_analysis_dict)
    )
    return AnalysisService(
        persist_settings,
        analyst_factory=lambda s: DocumentAnalyst(s, client=mock_openai_client),
    )


@pytest.fixture
def membership():
    with patch("core.services.analysis_service.FamilyService.require_member") as require:
        yield require


class TestPersistence:
    """PERSIST_RESULTS uploads the file and stores document + tasks."""

    def test_persists_document_and_tasks(self, persisting_service, membership, pdf_bytes):
        with patch(EXTRACT, return_value="text"), \
                patch("core.services.analysis_service.StorageService.upload_document") as upload_doc, \
                patch("core.services.analysis_service.FamilyService.save_analysis") as save:
            upload_doc.return_value = "families/family-123/doc/discharge.pdf"
            response = upload(persisting_service, pdf_bytes, uploaded_by="user-1")

        assert response.persisted is True
        assert response.document.file_url == "families/family-123/doc/discharge.pdf"
        membership.assert_called_once_with("family-123", "user-1")

        upload_kwargs = upload_doc.call_args.kwargs
        assert upload_kwargs["bucket"] == "care-docs"
        assert upload_kwargs["document_id"] == response.document.id
        assert upload_kwargs["content"] == pdf_bytes

        saved_document, saved_tasks = save.call_args.args
        assert saved_document.file_url == response.document.file_url
        assert [t.id for t in saved_tasks] == [t.id for t in response.tasks]

    def test_storage_failure_propagates(self, persisting_service, membership, pdf_bytes):
        with patch(EXTRACT, return_value="text"), \
                patch("core.services.analysis_service.StorageService.upload_document",
                      side_effect=StorageUploadError("bucket missing")), \
                patch("core.services.analysis_service.FamilyService.save_analysis") as save:
            with pytest.raises(StorageUploadError):
                upload(persisting_service, pdf_bytes, uploaded_by="user-1")

        save.assert_not_called()

    def test_database_failure_propagates(self, persisting_service, membership, pdf_bytes):
        with patch(EXTRACT, return_value="text"), \
                patch("core.services.analysis_service.StorageService.upload_document", return_value="path"), \
                patch("core.services.analysis_service.FamilyService.save_analysis",
                      side_effect=PersistenceError("store tasks", "timeout")):
            with pytest.raises(PersistenceError) as exc_info:
                upload(persisting_service, pdf_bytes, uploaded_by="user-1")

        assert exc_info.value.status_code == 500


class TestPersistenceMembership:
    """A persisting upload must come from a member of the target family."""

    def test_non_member_rejected_before_extraction(self, persisting_service, mock_openai_client, pdf_bytes):
        with patch("core.services.family_service.SupabaseClient") as db, \
                patch(EXTRACT) as extract, \
                patch("core.services.analysis_service.StorageService.upload_document") as upload_doc, \
                patch("core.services.analysis_service.FamilyService.save_analysis") as save:
            db.fetch_member_by_user.return_value = None
            with pytest.raises(FamilyNotFoundError) as exc_info:
                upload(persisting_service, pdf_bytes, family_id="victim-family", uploaded_by="stranger")

        assert exc_info.value.status_code == 404
        db.fetch_member_by_user.assert_called_once_with("victim-family", "stranger")
        extract.assert_not_called()
        mock_openai_client.chat.completions.create.assert_not_called()
        upload_doc.assert_not_called()
        save.assert_not_called()

    def test_anonymous_upload_rejected(self, persisting_service, membership, pdf_bytes):
        with patch(EXTRACT) as extract:
            with pytest.raises(AuthenticationRequiredError):
                upload(persisting_service, pdf_bytes)

        extract.assert_not_called()
        membership.assert_not_called()

    def test_membership_not_checked_without_persistence(self, model_backed_service, membership, pdf_bytes):
        with patch(EXTRACT, return_value="text"):
            response = upload(model_backed_service, pdf_bytes, uploaded_by="stranger")

        assert response.persisted is False
        membership.assert_not_called()
