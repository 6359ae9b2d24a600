# =============================================================================
# app/routers/theme.py - Theme Preference Endpoints
# =============================================================================

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from app.auth import AuthUser, get_current_user_optional
from app.config import settings
from core.models.notification import ThemeMode, ThemeRequest, ThemeResponse
from core.services.theme_service import THEME_COOKIE, ThemeService

router = APIRouter()


@router.get("", response_model=ThemeResponse)
async def get_theme(
    user: Optional[AuthUser] = Depends(get_current_user_optional),
    orbit: str | None = Cookie(default=None),
):
    """ORBIT or LIGHT for the current browser / account."""
    user_id = str(user.id) if user else None
    return ThemeResponse(theme=ThemeService.resolve(user_id, orbit))


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
async def set_theme(
    request: ThemeRequest,
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """Switch the theme; signed-in users also keep it on their account."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    if request.orbit:
        response.set_cookie(
            THEME_COOKIE,
            "1",
            max_age=settings.THEME_COOKIE_MAX_AGE,
            path="/",
            samesite="lax",
        )
    else:
        response.delete_cookie(THEME_COOKIE, path="/", samesite="lax")

    if user:
        ThemeService.save(str(user.id), ThemeMode.ORBIT if request.orbit else ThemeMode.LIGHT)
    return response
