# =============================================================================
# app/routers/analyze.py - Document Analysis Endpoint
# =============================================================================
# Accepts a medical document upload and returns the care tasks found in it.
# The pipeline itself lives in core/services/analysis_service.py; this router
# only reads the multipart form and hands the blocking work to a thread.
# =============================================================================

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user_optional
from app.dependencies import AnalysisServiceDep, SettingsDep
from app.exceptions import AuthenticationRequiredError
from core.models.analysis import AnalyzeResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_document(
    service: AnalysisServiceDep,
    settings: SettingsDep,
    file: Annotated[Optional[UploadFile], File(description="PDF document to analyze")] = None,
    familyId: Annotated[Optional[str], Form(description="Family the tasks belong to")] = None,
    family_id: Annotated[Optional[str], Form(description="Alias of familyId")] = None,
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    Analyze an uploaded document and extract care tasks.

    This endpoint:
    1. Validates the upload (present, PDF, within size limit)
    2. Extracts the text layer with pdfplumber
    3. Asks the model for a structured analysis
    4. Returns one pending task per proposed task

    With DEMO_MODE on, steps 2-3 are skipped and canned data is returned.
    With PERSIST_RESULTS on, the caller must be signed in and the document
    and tasks are stored in Supabase before returning.
    """
    if settings.PERSIST_RESULTS and user is None:
        raise AuthenticationRequiredError()

    content = await file.read() if file is not None else None

    return await run_in_threadpool(
        service.analyze_upload,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        content=content,
        family_id=familyId or family_id,
        uploaded_by=user.id if user else None,
    )
