# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - analyze.py: Document upload and task extraction
# - chat.py: Streaming care assistant
# - families.py: Stored tasks, members and documents (PERSIST_RESULTS only)
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import analyze
from . import chat
from . import families

__all__ = [
    "health",
    "analyze",
    "chat",
    "families",
]
