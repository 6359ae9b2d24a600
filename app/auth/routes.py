# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication and for
# ending the session.
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from app.auth.dependencies import get_current_user, get_current_user_optional
from app.auth.models import AuthUser, TokenVerification, UserResponse
from app.config import settings
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Returns:
        UserResponse: id and email from the token, name and admin flag
        from public.profiles

    Raises:
        401: If not authenticated
    """
    try:
        profile = SupabaseClient.fetch_profile(user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user profile: {e}")
        profile = None

    # User exists in auth but not yet in public.profiles
    # (might happen if trigger hasn't run yet)
    profile = profile or {}
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=profile.get("full_name"),
        is_admin=bool(profile.get("is_admin")),
    )


@router.get("/verify", response_model=TokenVerification)
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> TokenVerification:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.

    Raises:
        401: If token is invalid or expired
    """
    return TokenVerification(user_id=str(user.id), email=user.email)


@router.post("/logout")
async def logout(
    user: Optional[AuthUser] = Depends(get_current_user_optional)
) -> RedirectResponse:
    """
    End the session and send the browser to the login page.

    Revoking the refresh token is best-effort; the cookie is always cleared.
    """
    if user and user.access_token:
        try:
            SupabaseClient.sign_out(user.access_token)
            logger.info(f"Signed out {user.id}")
        except SupabaseClientError as e:
            logger.warning(f"Sign-out of {user.id} failed: {e}")

    response = RedirectResponse(url=settings.login_url, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return response
