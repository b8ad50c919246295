# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
#
# The websocket endpoint calls authenticate_token() in a worker thread with
# the token from its query string.
# =============================================================================

import logging
import time
from typing import Annotated, Optional

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError

from app.config import settings
from app.auth.models import AuthUser, TokenPayload
from lib.document_store import IDENTIFIER_PATTERN

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    # Format: https://<project-ref>.supabase.co
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    # Return cached if valid
    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except Exception as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Return cached even if expired, as fallback
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple[str | dict, str]:
    """
    Get the appropriate signing key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification
    """
    # Decode header without verification to get algorithm and key ID
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        # Fall back to HS256 if we can't read the header
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = unverified_header.get("alg", "HS256")
    kid = unverified_header.get("kid")

    # If HS256, use the legacy secret
    if alg == "HS256":
        return settings.SUPABASE_JWT_SECRET, "HS256"

    # For ES256 or other algorithms, use JWKS
    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}, falling back to HS256")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def authenticate_token(token: str | None) -> AuthUser:
    """
    Verify a Supabase Auth JWT and return the user it belongs to.

    Steps:
    1. Verify the signature (ES256 via JWKS, or HS256 via the project secret)
    2. Validate expiry and audience ("authenticated")
    3. Check the subject is usable as a document path segment

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        signing_key, algorithm = _get_signing_key(token)
        claims = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated",
        )
        payload = TokenPayload.model_validate(claims)

    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")

    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {str(e)}")

    except ValidationError as e:
        logger.warning(f"JWT payload is incomplete: {e}")
        raise _unauthorized("Invalid token: missing required claims")

    if not IDENTIFIER_PATTERN.match(payload.sub):
        logger.warning(f"Unusable subject in token: {payload.sub!r}")
        raise _unauthorized("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {payload.sub}")
    return payload.to_auth_user()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthUser:
    """
    Extract and validate the user from the Authorization header.

    A plain function, so FastAPI runs it in its threadpool: verification may
    refresh the JWKS over the network.

    Returns:
        AuthUser: The authenticated user

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    return authenticate_token(credentials.credentials)


# Type alias for dependency injection
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
