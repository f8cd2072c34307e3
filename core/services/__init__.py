# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .analysis_service import AnalysisService, materialize_tasks
from .family_service import FamilyService
from .storage_service import StorageService

__all__ = [
    "AnalysisService",
    "materialize_tasks",
    "FamilyService",
    "StorageService",
]
