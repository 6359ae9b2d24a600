# =============================================================================
# app/routers/debug.py - Debug Endpoints
# =============================================================================
# Mounted only when DEBUG is on.
# =============================================================================

from fastapi import APIRouter

from app.dependencies import CurrentUser

router = APIRouter()


@router.get("/whoami")
async def whoami(user: CurrentUser):
    """Identity carried by the caller's token."""
    return {"user_id": str(user.id), "email": user.email}
