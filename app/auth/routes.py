# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up and login happen client-side against Supabase Auth. This router
# only lets the frontend check that a stored token is still accepted.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser

router = APIRouter()


@router.get("/verify")
async def verify_token(user: AuthUser = Depends(get_current_user)) -> dict:
    """
    Verify that the current token is valid.

    Returns:
        dict: Confirmation with user_id and email

    Raises:
        401: If the token is missing, invalid or expired
    """
    return {
        "valid": True,
        "user_id": user.id,
        "email": user.email,
    }
