# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth.
#
# Usage:
#   from app.auth import CurrentUser
#
#   @router.get("/protected")
#   async def protected(user: CurrentUser):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import CurrentUser, authenticate_token, get_current_user
from app.auth.models import AuthUser

__all__ = [
    "CurrentUser",
    "authenticate_token",
    "get_current_user",
    "AuthUser",
]
