# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends

from app.auth import AuthUser, get_current_user
from core.models.requester import RequesterContext
from core.services.requester_service import RequesterService


async def get_requester(
    user: AuthUser = Depends(get_current_user),
) -> RequesterContext:
    """
    Build the authorization context of the caller.

    Resolves the effective level with the caller's own token, then the
    company scope and managed homes.
    """
    return RequesterService.build_context(
        user_id=str(user.id),
        access_token=user.access_token,
        email=user.email,
    )


# Type aliases for dependency injection
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
RequesterDep = Annotated[RequesterContext, Depends(get_requester)]
