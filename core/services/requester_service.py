# =============================================================================
# core/services/requester_service.py - Requester Context and Scope Guards
# =============================================================================
# Builds the per-request authorization context:
#
#   1. effective level  <- get_effective_level() run with the caller's token
#   2. company scope    <- first company membership (non-admins)
#   3. managed homes    <- home_ids_managed_by() (managers only)
#
# and provides the guards every mutating route calls before touching data.
# Guards raise ForbiddenError; they never return False.
# =============================================================================

import logging

from app.exceptions import ForbiddenError, LevelResolutionError
from core.models.levels import AppLevel
from core.models.requester import RequesterContext
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)


class RequesterService:
    """
    Resolves who the caller is and what they may touch.
    """

    @staticmethod
    def build_context(
        user_id: str,
        access_token: str,
        email: str | None = None,
    ) -> RequesterContext:
        """
        Build the request-scoped context.

        Args:
            user_id: Verified auth user id
            access_token: The caller's JWT (RLS-bound calls)
            email: Caller email from the token

        Returns:
            RequesterContext with level, company scope and managed homes

        Raises:
            LevelResolutionError: If get_effective_level() fails
        """
        try:
            raw_level = SupabaseClient.fetch_effective_level(access_token)
        except SupabaseClientError as e:
            logger.error(f"Could not resolve level for {user_id}: {e}")
            raise LevelResolutionError(e.message)

        level = AppLevel.parse(raw_level)
        if level is None:
            # Users with no memberships at all get the lowest level
            logger.debug(f"Unknown level {raw_level!r} for {user_id}, treating as staff")
            level = AppLevel.STAFF

        company_scope = None
        if level != AppLevel.ADMIN:
            memberships = SupabaseClient.fetch_company_memberships(user_id=user_id)
            if memberships:
                company_scope = memberships[0].get("company_id")

        managed_home_ids: list[str] = []
        if level == AppLevel.MANAGER:
            managed_home_ids = SupabaseClient.fetch_managed_home_ids(access_token, user_id)

        logger.debug(
            f"Requester {user_id}: level={level.value} company={company_scope} "
            f"managed_homes={len(managed_home_ids)}"
        )
        return RequesterContext(
            user_id=str(user_id),
            email=email,
            access_token=access_token,
            level=level,
            company_scope=company_scope,
            managed_home_ids=tuple(managed_home_ids),
        )

    @staticmethod
    def home_company_id(ctx: RequesterContext, home_id: str) -> str | None:
        """
        Company of a home, looked up only when a company-level check needs it.
        """
        if ctx.level != AppLevel.COMPANY or not ctx.company_scope:
            return None
        home = SupabaseClient.fetch_home(home_id)
        return home.get("company_id") if home else None


# =============================================================================
# Guards
# =============================================================================

def _deny(ctx: RequesterContext, message: str, **details) -> ForbiddenError:
    logger.warning(f"Denied {ctx.user_id} ({ctx.level.value}): {message} {details or ''}")
    return ForbiddenError(message, details=details or None)


def require_level(ctx: RequesterContext, *levels: AppLevel, message: str = "Forbidden.") -> None:
    """Exact-level gate: the caller's level must be one of `levels`."""
    if ctx.level not in levels:
        raise _deny(ctx, message)


def require_admin(ctx: RequesterContext, message: str = "Admin only") -> None:
    if not ctx.is_admin:
        raise _deny(ctx, message)


def require_company_or_manager(ctx: RequesterContext) -> None:
    """Admin, company and manager levels; staff are refused."""
    if not ctx.can_manager:
        raise _deny(ctx, "Forbidden")


def restrict_company_positions(ctx: RequesterContext, position: str) -> None:
    """Only admins and company-level callers may set company positions."""
    if ctx.is_admin or ctx.can_company:
        return
    raise _deny(ctx, "Forbidden", position=position)


def require_company_scope(ctx: RequesterContext, company_id: str | None) -> None:
    """Admins pass; everyone else must be acting in their own company."""
    if ctx.is_admin:
        return
    if ctx.company_scope and ctx.company_scope == company_id:
        return
    raise _deny(ctx, "Forbidden", company_id=company_id)


def require_manager_scope(
    ctx: RequesterContext,
    home_id: str | None,
    home_company_id: str | None = None,
) -> None:
    """
    Check that a home is within the caller's delegated scope.

    - Admins pass.
    - Company callers pass unless the home is known to belong to another
      company than their scope.
    - Managers pass only for homes they manage.
    """
    if ctx.is_admin:
        return
    if ctx.can_company:
        if home_company_id and ctx.company_scope and home_company_id != ctx.company_scope:
            raise _deny(ctx, "Forbidden", home_id=home_id)
        return
    if ctx.level == AppLevel.MANAGER and ctx.manages(home_id):
        return
    raise _deny(ctx, "Forbidden", home_id=home_id)
