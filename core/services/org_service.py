# =============================================================================
# core/services/org_service.py - Companies and Homes
# =============================================================================
# Creating and renaming companies (admin) and homes (admin or company).
# =============================================================================

import logging
from typing import Any

from app.exceptions import DatabaseError, ForbiddenError
from core.models.levels import AppLevel
from core.models.requester import RequesterContext
from core.services.requester_service import require_admin, require_level
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)


class OrgService:
    """
    Organisation structure: companies and the homes inside them.
    """

    # -------------------------------------------------------------------------
    # Companies (admin only)
    # -------------------------------------------------------------------------

    @staticmethod
    def create_company(ctx: RequesterContext, name: str) -> dict[str, Any] | None:
        require_admin(ctx)
        try:
            company = SupabaseClient.insert_company(name)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="insert_company")
        logger.info(f"{ctx.user_id} created company {name!r}")
        return company

    @staticmethod
    def rename_company(ctx: RequesterContext, company_id: str, name: str) -> None:
        require_admin(ctx)
        try:
            SupabaseClient.update_company(company_id, name)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="update_company")
        logger.info(f"{ctx.user_id} renamed company {company_id}")

    # -------------------------------------------------------------------------
    # Homes (admin console)
    # -------------------------------------------------------------------------

    @staticmethod
    def create_home(ctx: RequesterContext, company_id: str, name: str) -> dict[str, Any] | None:
        """
        Create a home. Company callers may only create in their own company.
        """
        if not ctx.can_company:
            raise ForbiddenError("Forbidden")
        if ctx.level == AppLevel.COMPANY and ctx.company_scope and ctx.company_scope != company_id:
            raise ForbiddenError("Cannot create a home for another company")

        try:
            home = SupabaseClient.insert_home(company_id, name)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="insert_home")
        logger.info(f"{ctx.user_id} created home {name!r} in {company_id}")
        return home

    @staticmethod
    def rename_home(ctx: RequesterContext, home_id: str, name: str) -> None:
        """
        Rename a home. Company callers may only rename homes of their company.
        """
        if not ctx.can_company:
            raise ForbiddenError("Forbidden")
        if ctx.level == AppLevel.COMPANY and ctx.company_scope:
            home = SupabaseClient.fetch_home(home_id)
            if home and home.get("company_id") and home["company_id"] != ctx.company_scope:
                raise ForbiddenError("Cannot rename a home in another company")

        try:
            SupabaseClient.update_home(home_id, name)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="update_home")
        logger.info(f"{ctx.user_id} renamed home {home_id}")

    # -------------------------------------------------------------------------
    # Homes (company console)
    # -------------------------------------------------------------------------

    @staticmethod
    def create_own_home(ctx: RequesterContext, name: str) -> dict[str, Any]:
        """
        Company-level callers create a home in their own company.

        Admins are deliberately not allowed here; they use the admin console.
        """
        require_level(ctx, AppLevel.COMPANY)
        if not ctx.company_scope:
            raise ForbiddenError("No company scope.")

        try:
            home = SupabaseClient.insert_home(ctx.company_scope, name)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="insert_home")
        if not home:
            raise DatabaseError("Insert returned no data", operation="insert_home")

        logger.info(f"{ctx.user_id} created home {home.get('id')} in {ctx.company_scope}")
        return {"id": home["id"], "name": home.get("name", name), "company_id": home.get("company_id")}

    @staticmethod
    def rename_own_home(ctx: RequesterContext, home_id: str, name: str) -> None:
        """Company-level callers rename a home of their own company."""
        require_level(ctx, AppLevel.COMPANY)
        if not ctx.company_scope:
            raise ForbiddenError("No company scope.")

        home = SupabaseClient.fetch_home(home_id)
        if not home or home.get("company_id") != ctx.company_scope:
            raise ForbiddenError("Home not in your company.")

        try:
            SupabaseClient.update_home(home_id, name)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="update_home")
        logger.info(f"{ctx.user_id} renamed home {home_id}")
