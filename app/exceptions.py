# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class CareSyncException(Exception):
    """
    Base exception for the CareSync API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "CARESYNC_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Input Validation Exceptions
# =============================================================================

class MissingInputError(CareSyncException):
    """Raised when the upload form lacks a file or family id."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message="Missing file or familyId",
            code="MISSING_INPUT",
            status_code=400,
            suggestion="Send a multipart form with both 'file' and 'familyId' fields",
            details={"missing": missing}
        )


class UnsupportedFileTypeError(CareSyncException):
    """Raised when an upload is not a PDF."""

    def __init__(self, filename: str, content_type: str | None):
        super().__init__(
            message="For best results, please upload a PDF document so we can read the text accurately.",
            code="UNSUPPORTED_FILE_TYPE",
            status_code=400,
            suggestion="Convert the document to PDF and upload it again",
            details={"filename": filename, "content_type": content_type}
        )


class FileTooLargeError(CareSyncException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


# =============================================================================
# Extraction Exceptions
# =============================================================================

class DocumentExtractionError(CareSyncException):
    """Raised when the PDF parser fails."""

    def __init__(self, filename: str, error: str):
        super().__init__(
            message="PDF Parse Failed",
            code="PDF_PARSE_FAILED",
            status_code=422,
            suggestion="Check that the file is a valid, unencrypted PDF",
            details={"filename": filename, "error": error}
        )


class EmptyDocumentError(CareSyncException):
    """Raised when a PDF yields no readable text (e.g. scanned images)."""

    def __init__(self, filename: str):
        super().__init__(
            message="No text could be extracted from this document.",
            code="EMPTY_DOCUMENT",
            status_code=422,
            suggestion="Upload a text-based PDF rather than a scanned image",
            details={"filename": filename}
        )


# =============================================================================
# Upstream Model Exceptions
# =============================================================================

class ModelServiceError(CareSyncException):
    """Raised when the model provider fails or returns nothing."""

    def __init__(self, message: str, model: str | None = None):
        super().__init__(
            message=message,
            code="MODEL_SERVICE_ERROR",
            status_code=502,
            suggestion="Check OPENAI_API_KEY / OPENAI_BASE_URL and try again",
            details={"model": model} if model else None
        )


# =============================================================================
# Persistence Exceptions
# =============================================================================

class StorageUploadError(CareSyncException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class PersistenceError(CareSyncException):
    """Raised when a database write or read fails."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Failed to {operation}: {error}",
            code="PERSISTENCE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"operation": operation, "error": error}
        )


class PersistenceDisabledError(CareSyncException):
    """Raised when a stored-data endpoint is called without persistence."""

    def __init__(self):
        super().__init__(
            message="Server-side storage is disabled",
            code="PERSISTENCE_DISABLED",
            status_code=409,
            suggestion="Keep tasks client-side, or set PERSIST_RESULTS=true with Supabase credentials",
        )


class TaskNotFoundError(CareSyncException):
    """Raised when a task ID doesn't exist in the family."""

    def __init__(self, task_id: str, family_id: str):
        super().__init__(
            message=f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            status_code=404,
            suggestion="Check that the task_id is correct and belongs to this family",
            details={"task_id": task_id, "family_id": family_id}
        )


class FamilyNotFoundError(CareSyncException):
    """
    Raised when the caller is not a member of the family.

    Non-members get the same 404 as a missing family so existence
    is not revealed.
    """

    def __init__(self, family_id: str):
        super().__init__(
            message=f"Family not found: {family_id}",
            code="FAMILY_NOT_FOUND",
            status_code=404,
            suggestion="Check the family_id and that your account has joined this family",
            details={"family_id": family_id}
        )


class InvalidAssigneeError(CareSyncException):
    """Raised when assigned_to does not name a member of the family."""

    def __init__(self, member_id: str, family_id: str):
        super().__init__(
            message=f"Assignee is not a member of this family: {member_id}",
            code="INVALID_ASSIGNEE",
            status_code=422,
            suggestion="Pick an assignee from GET /families/{family_id}/members",
            details={"member_id": member_id, "family_id": family_id}
        )


class AuthenticationRequiredError(CareSyncException):
    """Raised when a persistent operation is attempted anonymously."""

    def __init__(self):
        super().__init__(
            message="Authentication required",
            code="AUTH_REQUIRED",
            status_code=401,
            suggestion="Send a Supabase access token as 'Authorization: Bearer <token>'",
        )


class InvalidTokenError(CareSyncException):
    """Raised when a bearer token fails verification."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid token: {reason}",
            code="INVALID_TOKEN",
            status_code=401,
            suggestion="Sign in again to get a fresh access token",
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def caresync_exception_handler(
    request: Request,
    exc: CareSyncException
) -> JSONResponse:
    """
    Convert CareSyncException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )
