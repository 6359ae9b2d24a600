# =============================================================================
# core/services/scope_service.py - Self-Service Scope Resolution
# =============================================================================
# Company and manager callers act inside a "scope":
#
# - Company level: one company (a caller may belong to several; the company
#   is picked explicitly, by elimination, or from the target user's
#   footprint) and every home of that company.
# - Manager level: the homes where the caller holds a MANAGER membership.
#
# The routes use the scope to decide which users and homes they may touch.
# =============================================================================

import logging

from app.exceptions import BadRequestError, ForbiddenError
from core.models.levels import AppLevel, HomeRole
from core.models.requester import RequesterContext, Scope
from lib.supabase_client import SupabaseClient
from lib.utils import column, unique

logger = logging.getLogger(__name__)

AMBIGUOUS_COMPANY = "Ambiguous company. Pass company_id."


class ScopeService:
    """
    Resolves and checks self-service scopes.
    """

    # -------------------------------------------------------------------------
    # Company selection
    # -------------------------------------------------------------------------

    @staticmethod
    def caller_company_ids(user_id: str) -> list[str]:
        """Every company the caller has a membership row in."""
        rows = SupabaseClient.fetch_company_memberships(user_id=user_id)
        return column(rows, "company_id")

    @staticmethod
    def user_company_footprint(user_id: str) -> set[str]:
        """
        Companies a user touches through homes, bank rows or company rows.
        """
        home_ids = column(SupabaseClient.fetch_home_memberships(user_id=user_id), "home_id")
        via_homes = column(SupabaseClient.fetch_homes(home_ids=home_ids), "company_id") if home_ids else []
        via_bank = column(SupabaseClient.fetch_bank_memberships(user_id=user_id), "company_id")
        via_company = column(SupabaseClient.fetch_company_memberships(user_id=user_id), "company_id")
        return set(unique([*via_homes, *via_bank, *via_company]))

    @staticmethod
    def resolve_company_scope(
        ctx: RequesterContext,
        company_id: str | None = None,
        target_user_id: str | None = None,
        allow_first: bool = False,
    ) -> str:
        """
        Pick the single company a company-level caller is acting in.

        Args:
            ctx: Requester context
            company_id: Explicit choice from the request, if any
            target_user_id: User being changed; used to disambiguate
            allow_first: Fall back to the first company instead of failing

        Returns:
            The company id

        Raises:
            ForbiddenError: No company membership, or not the caller's company
            BadRequestError: Several candidates remain
        """
        companies = ScopeService.caller_company_ids(ctx.user_id)
        if not companies:
            raise ForbiddenError("No company scope.")

        if company_id:
            if company_id not in companies:
                logger.warning(f"{ctx.user_id} asked for foreign company {company_id}")
                raise ForbiddenError("Not your company.", details={"company_id": company_id})
            return company_id

        if len(companies) == 1:
            return companies[0]

        if target_user_id:
            footprint = ScopeService.user_company_footprint(target_user_id)
            overlap = [c for c in companies if c in footprint]
            if len(overlap) == 1:
                return overlap[0]
            if not overlap:
                raise ForbiddenError("Target user not in any of your companies.")
            raise BadRequestError(AMBIGUOUS_COMPANY, suggestion="Send company_id with the request")

        if allow_first:
            return companies[0]
        raise BadRequestError(AMBIGUOUS_COMPANY, suggestion="Send company_id with the request")

    # -------------------------------------------------------------------------
    # Scope
    # -------------------------------------------------------------------------

    @staticmethod
    def managed_home_ids(user_id: str) -> list[str]:
        """Homes where the user holds a MANAGER membership."""
        rows = SupabaseClient.fetch_home_memberships(user_id=user_id, role=HomeRole.MANAGER.value)
        return column(rows, "home_id")

    @staticmethod
    def resolve_scope(
        ctx: RequesterContext,
        company_id: str | None = None,
        target_user_id: str | None = None,
        allow_first: bool = False,
    ) -> Scope:
        """
        Resolve the scope of a company or manager caller.

        Raises:
            ForbiddenError: Other levels, no company, or no managed homes
            BadRequestError: Ambiguous company
        """
        if ctx.level == AppLevel.COMPANY:
            chosen = ScopeService.resolve_company_scope(
                ctx,
                company_id=company_id,
                target_user_id=target_user_id,
                allow_first=allow_first,
            )
            homes = SupabaseClient.fetch_homes(company_id=chosen)
            return Scope(level=AppLevel.COMPANY, company_id=chosen, allowed_home_ids=column(homes, "id"))

        if ctx.level == AppLevel.MANAGER:
            homes = ScopeService.managed_home_ids(ctx.user_id)
            if not homes:
                raise ForbiddenError("No managed homes.")
            return Scope(level=AppLevel.MANAGER, allowed_home_ids=homes)

        raise ForbiddenError("Forbidden.")

    # -------------------------------------------------------------------------
    # Membership checks
    # -------------------------------------------------------------------------

    @staticmethod
    def user_in_scope(scope: Scope, user_id: str, staff_only: bool = False) -> bool:
        """
        True when the user belongs to the scope.

        Company scope: any home row in the company, a bank row or a company
        row. Manager scope: a home row in a managed home (STAFF rows only
        when `staff_only`).
        """
        role = HomeRole.STAFF.value if staff_only else None
        if SupabaseClient.fetch_home_memberships(
            user_id=user_id, home_ids=scope.allowed_home_ids, role=role
        ):
            return True
        if not scope.is_company or not scope.company_id:
            return False
        if SupabaseClient.fetch_bank_memberships(user_id=user_id, company_id=scope.company_id):
            return True
        return bool(SupabaseClient.fetch_company_memberships(user_id=user_id, company_id=scope.company_id))

    @staticmethod
    def scoped_user_ids(scope: Scope, staff_only: bool = False) -> list[str]:
        """Every user id inside the scope, first-seen order."""
        role = HomeRole.STAFF.value if staff_only else None
        ids = column(
            SupabaseClient.fetch_home_memberships(home_ids=scope.allowed_home_ids, role=role),
            "user_id",
        )
        if scope.is_company and scope.company_id:
            ids += column(SupabaseClient.fetch_bank_memberships(company_id=scope.company_id), "user_id")
            ids += column(SupabaseClient.fetch_company_memberships(company_id=scope.company_id), "user_id")
        return unique(ids)

    @staticmethod
    def require_user_in_scope(scope: Scope, user_id: str, staff_only: bool = False) -> None:
        if not ScopeService.user_in_scope(scope, user_id, staff_only=staff_only):
            logger.warning(f"User {user_id} outside scope {scope.company_id or scope.allowed_home_ids}")
            raise ForbiddenError("Target user not in your scope.")
