# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Verifies Supabase access tokens. We never issue tokens; sign-in happens in
# the browser against Supabase Auth.
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret)
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/families/{family_id}/tasks")
#   async def list_tasks(user: AuthUser = Depends(get_current_user)):
#       ...
# =============================================================================

import logging
import time
from typing import Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser
from app.exceptions import AuthenticationRequiredError, InvalidTokenError

logger = logging.getLogger(__name__)

# Bearer extractor; a missing header is handled by us, not FastAPI
security_optional = HTTPBearer(auto_error=False)

# JWKS cache
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _fetch_jwks() -> dict:
    """Fetch the project's public signing keys, cached for an hour."""
    global _jwks_cache, _jwks_cache_time

    if not settings.SUPABASE_URL:
        return {"keys": []}

    now = time.time()
    if _jwks_cache and (now - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    jwks_url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS from {jwks_url}: {e}")
        # Stale keys are better than none
        return _jwks_cache or {"keys": []}

    _jwks_cache = response.json()
    _jwks_cache_time = now
    logger.debug(f"Fetched JWKS from {jwks_url}")
    return _jwks_cache


def _signing_key(token: str) -> tuple:
    """
    Pick the key and algorithm for a token from its header.

    Returns:
        (key, algorithm)

    Raises:
        InvalidTokenError: If no usable key exists
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise InvalidTokenError(f"unreadable header ({e})")

    alg = header.get("alg", "HS256")
    kid = header.get("kid")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            raise InvalidTokenError("HS256 tokens are not accepted without SUPABASE_JWT_SECRET")
        return settings.SUPABASE_JWT_SECRET, alg

    for key in _fetch_jwks().get("keys", []):
        if kid and key.get("kid") == kid:
            return key, alg

    logger.warning(f"No signing key found for alg={alg}, kid={kid}")
    raise InvalidTokenError("unknown signing key")


def verify_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and return its user.

    Raises:
        InvalidTokenError: Bad signature, wrong audience, expired, or no `sub`
    """
    key, algorithm = _signing_key(token)

    try:
        payload = jwt.decode(token, key, algorithms=[algorithm], audience="authenticated")
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise InvalidTokenError("token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise InvalidTokenError(str(e))

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise InvalidTokenError("missing user ID")

    logger.debug(f"Authenticated user: {user_id}")
    return AuthUser(id=user_id, email=payload.get("email"), role=payload.get("role"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> AuthUser:
    """
    Require an authenticated Supabase user.

    Raises:
        AuthenticationRequiredError: No bearer token
        InvalidTokenError: Token failed verification
    """
    if credentials is None:
        raise AuthenticationRequiredError()
    return verify_token(credentials.credentials)


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> Optional[AuthUser]:
    """
    The current user, or None when the request is anonymous or the token is bad.

    Chat uses this to personalize the persona; it never rejects a request.
    """
    if credentials is None:
        return None

    try:
        return verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info(f"Ignoring invalid token on optional-auth route: {e.message}")
        return None
