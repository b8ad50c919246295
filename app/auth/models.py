# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase Auth JWT.

    This is the minimal user info available from the token itself,
    without querying the database. `id` is the uid every document path
    is built from.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    provider: Optional[str] = None
    email_verified: bool = False


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    Supabase tokens include standard JWT claims plus custom claims.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience (should be "authenticated")
    exp: int  # Expiration timestamp
    iat: Optional[int] = None  # Issued at timestamp
    role: Optional[str] = None  # User role
    app_metadata: dict[str, Any] = {}
    user_metadata: dict[str, Any] = {}

    def to_auth_user(self) -> AuthUser:
        return AuthUser(
            id=self.sub,
            email=self.email,
            name=self.user_metadata.get("full_name") or self.user_metadata.get("name"),
            picture=self.user_metadata.get("avatar_url") or self.user_metadata.get("picture"),
            provider=self.app_metadata.get("provider"),
            email_verified=bool(self.user_metadata.get("email_verified", False)),
        )
