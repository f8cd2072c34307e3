# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends(), and tests swap
# them out with app.dependency_overrides.
# =============================================================================

from typing import Annotated

from fastapi import Depends

from app.config import Settings, get_settings
from app.exceptions import PersistenceDisabledError
from agents.chat_assistant import ChatAssistant
from core.services.analysis_service import AnalysisService
from core.services.family_service import FamilyService


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_analysis_service(settings: SettingsDep) -> AnalysisService:
    """A pipeline bound to the current settings."""
    return AnalysisService(settings)


def get_chat_assistant(settings: SettingsDep) -> ChatAssistant:
    """
    A fresh assistant (and model client) for this request.
    """
    return ChatAssistant(settings)


def get_family_service(settings: SettingsDep) -> type[FamilyService]:
    """
    Family data access, only when results are stored server-side.

    Raises:
        PersistenceDisabledError: PERSIST_RESULTS is off
    """
    if not settings.PERSIST_RESULTS:
        raise PersistenceDisabledError()
    return FamilyService


# Type aliases for dependency injection
AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
ChatAssistantDep = Annotated[ChatAssistant, Depends(get_chat_assistant)]
FamilyServiceDep = Annotated[type[FamilyService], Depends(get_family_service)]
