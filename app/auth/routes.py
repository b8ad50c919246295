# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# The client sends the resulting access token here; these routes create
# the account documents on first login and return the caller's data.
# =============================================================================

import logging

from fastapi import APIRouter

from app.auth.dependencies import CurrentUser
from app.dependencies import ContextDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
async def login(user: CurrentUser, context: ContextDep) -> dict:
    """
    Record a login for the token's user.

    The first login creates the user document, a default business and a
    sample product. Every login refreshes lastLoginAt.

    Returns:
        dict: The user with all businesses and products

    Raises:
        401: If the token is invalid or expired
    """
    _, created = await context.users.ensure_user(user)
    snapshot = await context.users.account_snapshot(user.id)
    logger.info(f"User {user.id} logged in{' (new account)' if created else ''}")

    return {
        "success": True,
        "message": "Registration successful" if created else "Login successful",
        "uid": user.id,
        "email": user.email,
        "created": created,
        **snapshot,
    }


@router.get("/verify")
async def verify_token(user: CurrentUser, context: ContextDep) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid on app start.

    Raises:
        401: If token is invalid or expired
        404: If the user never logged in through the API
    """
    snapshot = await context.users.account_snapshot(user.id)
    return {
        "success": True,
        "valid": True,
        "uid": user.id,
        "email": user.email,
        **snapshot,
    }


@router.get("/me")
async def get_current_user_info(user: CurrentUser, context: ContextDep) -> dict:
    """
    Get the current authenticated user's profile.

    Raises:
        401: If not authenticated
        404: If the user never logged in through the API
    """
    return {"success": True, "user": await context.users.get_user(user.id)}


@router.post("/logout")
async def logout(user: CurrentUser) -> dict:
    """
    Acknowledge a logout.

    Tokens are issued by Supabase Auth; the client discards its session.
    """
    logger.info(f"User {user.id} logged out")
    return {"success": True, "message": "Logged out"}
