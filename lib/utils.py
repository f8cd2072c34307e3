# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote
from uuid import UUID, uuid4


# =============================================================================
# Identifier & Time Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        family_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        family_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def new_id() -> str:
    """Generate a fresh record identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


# =============================================================================
# Display Helpers
# =============================================================================

def format_relative_time(target: datetime, now: datetime | None = None) -> str:
    """
    Describe a date relative to now, in whole days.

    Example:
        format_relative_time(tomorrow)   # "Tomorrow"
        format_relative_time(last_week)  # "7 days ago"
    """
    now = now or utc_now()
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    diff_days = (target.astimezone(timezone.utc).date() - now.astimezone(timezone.utc).date()).days

    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Tomorrow"
    if diff_days == -1:
        return "Yesterday"
    if diff_days > 1:
        return f"In {diff_days} days"
    return f"{abs(diff_days)} days ago"


def generate_avatar_url(name: str) -> str:
    """Initials avatar for members who have not uploaded a picture."""
    return (
        "https://api.dicebear.com/7.x/initials/svg"
        f"?seed={quote(name)}&backgroundColor=6366f1&textColor=ffffff"
    )


# =============================================================================
# Cancellation
# =============================================================================

class CancellationToken:
    """
    Caller-held flag that asks a stream consumer to stop.

    Checked between chunks by both the server-side delta iterator and the
    board's chat client. Cancelling is idempotent.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for library-level errors.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }
