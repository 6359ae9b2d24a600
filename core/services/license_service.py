# =============================================================================
# core/services/license_service.py - Licence Gate and Licence Admin
# =============================================================================
# The licence gate answers "may this user use the app right now?".
#
# Flow:
#   admin                -> ACTIVE (admin_bypass)
#   candidate companies  -> explicit companyId, else every membership with
#                           company access (null counts as granted)
#   per company, in order:
#       no licence row                        -> ACTIVE (no_row)
#       ACTIVE/PAST_DUE without valid_until   -> ACTIVE
#       now <= valid_until + grace days       -> ACTIVE
#   nothing qualifies    -> SUSPENDED (all_companies_blocked)
#
# Missing data fails open so a half-migrated database never locks users out.
# =============================================================================

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any

from app.exceptions import DatabaseError, NotFoundError
from core.models.license import (
    LicenseDecision,
    LicenseReason,
    LicenseStatus,
    LicenseUpdateRequest,
)
from core.models.requester import RequesterContext
from core.services.requester_service import require_admin
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import parse_iso_date, unique, utc_now

logger = logging.getLogger(__name__)


def _expiry(valid_until: Any, grace_period_days: int | None) -> datetime | None:
    """UTC midnight of valid_until plus the grace days, or None."""
    until = parse_iso_date(valid_until)
    if until is None:
        return None
    start = datetime.combine(until, time.min, tzinfo=timezone.utc)
    return start + timedelta(days=grace_period_days or 0)


def evaluate_license_status(
    company_ids: list[str],
    licenses: list[dict[str, Any]],
    now: datetime,
) -> LicenseDecision:
    """
    Decide the licence status for a set of candidate companies.

    Args:
        company_ids: Candidate companies in priority order
        licenses: company_licenses rows for those companies
        now: Current UTC time

    Returns:
        ACTIVE for the first company that qualifies, else SUSPENDED
    """
    by_company = {row.get("company_id"): row for row in licenses}

    for company_id in company_ids:
        row = by_company.get(company_id)
        if row is None:
            return LicenseDecision(
                status=LicenseStatus.ACTIVE,
                reason=LicenseReason.NO_ROW,
                companyId=company_id,
            )

        try:
            status = LicenseStatus(row.get("status") or LicenseStatus.ACTIVE.value)
        except ValueError:
            logger.warning(f"Unknown licence status {row.get('status')!r} for {company_id}")
            continue
        if not status.allows_access:
            continue

        expiry = _expiry(row.get("valid_until"), row.get("grace_period_days"))
        if expiry is None:
            return LicenseDecision(
                status=LicenseStatus.ACTIVE,
                reason=LicenseReason.STATUS_ALLOWS_NO_EXPIRY,
                companyId=company_id,
            )
        if now <= expiry:
            return LicenseDecision(
                status=LicenseStatus.ACTIVE,
                reason=LicenseReason.IN_GRACE_OR_ACTIVE,
                companyId=company_id,
            )

    return LicenseDecision(status=LicenseStatus.SUSPENDED, reason=LicenseReason.ALL_COMPANIES_BLOCKED)


class LicenseService:
    """
    Licence gate plus the admin licence table.
    """

    @staticmethod
    def candidate_company_ids(user_id: str, company_id: str | None = None) -> list[str]:
        """
        Companies whose licence can grant this user access.

        A membership with has_company_access = null counts as granted.
        """
        try:
            rows = SupabaseClient.fetch_company_memberships(user_id=user_id)
        except SupabaseClientError as e:
            logger.warning(f"Company memberships of {user_id} unavailable: {e.message}")
            return []

        granted = [r for r in rows if r.get("has_company_access") is not False]
        if company_id:
            explicit = [r["company_id"] for r in granted if r.get("company_id") == company_id]
            if explicit:
                return explicit
        return unique(r.get("company_id") for r in granted)

    @staticmethod
    def status_for(ctx: RequesterContext, company_id: str | None = None) -> LicenseDecision:
        """Licence decision for the caller."""
        if ctx.is_admin:
            return LicenseDecision(status=LicenseStatus.ACTIVE, reason=LicenseReason.ADMIN_BYPASS)

        company_ids = LicenseService.candidate_company_ids(ctx.user_id, company_id)
        if not company_ids:
            return LicenseDecision(status=LicenseStatus.ACTIVE, reason=LicenseReason.NO_COMPANY_RESOLVED)

        try:
            licenses = SupabaseClient.fetch_licenses(company_ids)
        except SupabaseClientError as e:
            logger.error(f"Licence query failed for {ctx.user_id}: {e.message}")
            return LicenseDecision(status=LicenseStatus.ACTIVE, reason=LicenseReason.LICENSE_QUERY_ERROR)

        decision = evaluate_license_status(company_ids, licenses, utc_now())
        if decision.status == LicenseStatus.SUSPENDED.value:
            logger.info(f"Licence gate blocked {ctx.user_id} ({len(company_ids)} companies)")
        return decision

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    @staticmethod
    def list_licenses(ctx: RequesterContext) -> list[dict[str, Any]]:
        """Every licence, ordered by company name."""
        require_admin(ctx)
        try:
            rows = SupabaseClient.fetch_licenses()
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="fetch_licenses")
        return sorted(rows, key=lambda r: (r.get("company_name") or "").lower())

    @staticmethod
    def update_license(ctx: RequesterContext, request: LicenseUpdateRequest) -> dict[str, Any]:
        """
        Apply a partial licence update.

        Raises:
            ForbiddenError: Caller is not an admin
            NotFoundError: The company has no licence row
        """
        require_admin(ctx)
        company_id = str(request.company_id)
        patch = request.to_patch()
        patch["updated_at"] = utc_now().isoformat()

        try:
            row = SupabaseClient.update_license(company_id, patch)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="update_license")
        if row is None:
            raise NotFoundError("License", company_id)

        logger.info(f"{ctx.user_id} updated licence of {company_id}: {sorted(patch)}")
        return row
