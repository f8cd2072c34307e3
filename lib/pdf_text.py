# =============================================================================
# lib/pdf_text.py - PDF Text Extraction
# =============================================================================
# Pulls the raw text layer out of an uploaded PDF using pdfplumber.
# No OCR: scanned documents come back empty and the caller decides what to do.
#
# Usage:
#   from lib.pdf_text import extract_pdf_text
#   text = extract_pdf_text(pdf_bytes)
# =============================================================================

from __future__ import annotations

import io
import logging

import pdfplumber

from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# Content types browsers send when they don't know better
_GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


class PdfTextError(ApplicationError):
    """Raised when pdfplumber cannot open or read the document."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message,
            code="PDF_TEXT_ERROR",
            suggestion="Check that the file is a valid, unencrypted PDF",
            details=details,
        )


def is_pdf(filename: str | None, content_type: str | None) -> bool:
    """
    Decide whether an upload should be treated as a PDF.

    The declared content type wins. Only when it is missing or generic do we
    fall back to the filename extension.
    """
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared == PDF_CONTENT_TYPE:
        return True
    if declared in _GENERIC_CONTENT_TYPES:
        return (filename or "").lower().endswith(".pdf")
    return False


def extract_pdf_text(content: bytes) -> str:
    """
    Extract the text of every page, joined by newlines.

    Args:
        content: Raw PDF bytes

    Returns:
        Extracted text (may be empty for image-only PDFs)

    Raises:
        PdfTextError: If the bytes are not a readable PDF
    """
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise PdfTextError(f"Failed to read PDF: {e}", details={"error": str(e)})

    text = "\n".join(pages)
    logger.info(f"PDF text extraction succeeded: {len(pages)} pages, {len(text)} chars")
    return text
