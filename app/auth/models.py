# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    Only what the token itself carries; no database lookup.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    role: Optional[str] = None
