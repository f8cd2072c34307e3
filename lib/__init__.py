# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - pdf_text.py: PDF text extraction (pdfplumber)
# - supabase_client.py: Typed Supabase wrapper for family-scoped tables
# - utils.py: Shared utilities (ids, time, cancellation, base error)
#
# Import the heavier modules directly (lib.pdf_text, lib.supabase_client);
# only the dependency-free helpers are re-exported here.
# =============================================================================

from lib.utils import (
    ApplicationError,
    CancellationToken,
    format_relative_time,
    generate_avatar_url,
    new_id,
    normalize_uuid,
    utc_now,
)

__all__ = [
    "ApplicationError",
    "CancellationToken",
    "format_relative_time",
    "generate_avatar_url",
    "new_id",
    "normalize_uuid",
    "utc_now",
]
