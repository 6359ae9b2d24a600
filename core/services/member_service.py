# =============================================================================
# core/services/member_service.py - Self-Service Member Management
# =============================================================================
# Company-level (2_COMPANY) and manager-level (3_MANAGER) callers manage the
# people inside their own scope:
#
#   create        -> new login + home / bank / company rows
#   update_role   -> move a member between COMPANY, MANAGER and STAFF
#   update_profile-> name and login email
#   list_members  -> people page rows with their roles
#
# Admins use the admin console instead and are refused here.
# =============================================================================

import logging
from typing import Any

from app.exceptions import BadRequestError, ForbiddenError
from core.models.levels import AppLevel, HomeRole
from core.models.people import (
    CreatedMember,
    HomeRef,
    MemberCreateRequest,
    MemberProfileUpdateRequest,
    MemberRole,
    MemberRoles,
    MemberRoleUpdateRequest,
    MemberView,
    TargetRole,
)
from core.models.requester import RequesterContext, Scope
from core.services.people_service import create_login, db_write
from core.services.requester_service import require_level
from core.services.scope_service import ScopeService
from lib.supabase_client import SupabaseClient
from lib.utils import unique

logger = logging.getLogger(__name__)


def _keep_company_row(
    scope: Scope,
    user_id: str,
    access: bool | None = None,
    dsl: bool | None = None,
) -> None:
    """
    Upsert the member's company_memberships row of the scoped company.

    The row carries the DSL flag and company access; only company-level
    scopes write it.
    """
    if not scope.is_company or not scope.company_id:
        return
    row: dict[str, Any] = {"user_id": user_id, "company_id": scope.company_id}
    if access is not None:
        row["has_company_access"] = access
    if dsl is not None:
        row["is_dsl"] = dsl
    db_write("upsert_company_membership", SupabaseClient.upsert_company_membership, row)


class MemberService:
    """
    People management for company and manager callers.
    """

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    @staticmethod
    def create_member(ctx: RequesterContext, request: MemberCreateRequest) -> CreatedMember:
        """
        Create a manager or staff member inside the caller's scope.

        Raises:
            ForbiddenError: Level, company or home outside the caller's scope
            BadRequestError: Missing home choice or ambiguous company
            ConflictError: Email already registered
        """
        require_level(ctx, AppLevel.COMPANY, AppLevel.MANAGER)
        scope = ScopeService.resolve_scope(ctx, company_id=request.company_id)

        home_ids = unique(request.home_ids)

        if scope.is_company:
            if request.role == MemberRole.MANAGER:
                if not home_ids:
                    raise BadRequestError("Pick at least one home for Manager.")
                if scope.disallowed(home_ids):
                    raise ForbiddenError("One or more homes not in your company.")
            elif not request.bank_staff:
                if not request.home_id:
                    raise BadRequestError("Pick one home for Staff.")
                if not scope.allows_home(request.home_id):
                    raise ForbiddenError("Home not in your company.")
        else:
            if request.role != MemberRole.STAFF:
                raise ForbiddenError("Managers can only create Staff.")
            if request.bank_staff:
                raise ForbiddenError("Managers cannot create bank staff.")
            if not request.home_id:
                raise BadRequestError("Pick one home for Staff.")
            if not scope.allows_home(request.home_id):
                raise ForbiddenError("Not one of your homes.")

        full_name = request.full_name or ""
        user_id = create_login(request.email, request.password, {"full_name": full_name})
        db_write(
            "upsert_profile",
            SupabaseClient.upsert_profile,
            {"user_id": user_id, "full_name": full_name, "is_admin": False},
        )

        if request.role == MemberRole.MANAGER:
            db_write(
                "insert_home_memberships",
                SupabaseClient.insert_home_memberships,
                [{"user_id": user_id, "home_id": h, "role": HomeRole.MANAGER.value} for h in home_ids],
            )
        elif request.bank_staff:
            db_write(
                "upsert_bank_membership",
                SupabaseClient.upsert_bank_membership,
                user_id,
                scope.company_id,
            )
        else:
            db_write(
                "insert_home_memberships",
                SupabaseClient.insert_home_memberships,
                [{"user_id": user_id, "home_id": request.home_id, "role": HomeRole.STAFF.value}],
            )

        # Managers cannot set DSL; the helper is a no-op for their scope
        _keep_company_row(scope, user_id, access=False, dsl=request.is_dsl)

        logger.info(f"{ctx.user_id} created {request.role.value} {user_id}")
        return CreatedMember(id=user_id, email=request.email, full_name=full_name, role=request.role)

    # -------------------------------------------------------------------------
    # Update role
    # -------------------------------------------------------------------------

    @staticmethod
    def update_role(ctx: RequesterContext, request: MemberRoleUpdateRequest) -> None:
        """
        Move a member to COMPANY, STAFF (home or bank) or MANAGER.

        Raises:
            ForbiddenError: Admin target, or anything outside the scope
            BadRequestError: Missing homes, bank-to-manager, ambiguous company
        """
        require_level(ctx, AppLevel.COMPANY, AppLevel.MANAGER)
        user_id = request.user_id

        profile = SupabaseClient.fetch_profile(user_id)
        if profile and profile.get("is_admin"):
            raise ForbiddenError("Cannot modify an Admin.")

        scope = ScopeService.resolve_scope(ctx, company_id=request.company_id, target_user_id=user_id)
        ScopeService.require_user_in_scope(scope, user_id)

        if request.role == TargetRole.COMPANY:
            MemberService._make_company(scope, user_id, request.is_dsl)
        elif request.role == TargetRole.STAFF and request.bank:
            MemberService._make_bank_staff(scope, user_id, request.is_dsl)
        elif request.role == TargetRole.STAFF:
            MemberService._make_home_staff(scope, user_id, request.home_id, request.is_dsl)
        else:
            MemberService._make_manager(scope, user_id, unique(request.home_ids), request.is_dsl)

        logger.info(f"{ctx.user_id} moved {user_id} to {request.role.value}")

    @staticmethod
    def _clear_scoped_homes(scope: Scope, user_id: str) -> None:
        db_write(
            "delete_home_memberships",
            SupabaseClient.delete_home_memberships,
            user_id,
            scope.allowed_home_ids,
        )

    @staticmethod
    def _make_company(scope: Scope, user_id: str, is_dsl: bool | None) -> None:
        if not scope.is_company:
            raise ForbiddenError("Only Company can set COMPANY access.")
        MemberService._clear_scoped_homes(scope, user_id)
        db_write("delete_bank_membership", SupabaseClient.delete_bank_membership, user_id, scope.company_id)
        _keep_company_row(scope, user_id, access=True, dsl=is_dsl)

    @staticmethod
    def _make_bank_staff(scope: Scope, user_id: str, is_dsl: bool | None) -> None:
        if not scope.is_company:
            raise ForbiddenError("Only Company can set Bank staff.")
        MemberService._clear_scoped_homes(scope, user_id)
        db_write("upsert_bank_membership", SupabaseClient.upsert_bank_membership, user_id, scope.company_id)
        _keep_company_row(scope, user_id, access=False, dsl=is_dsl)

    @staticmethod
    def _make_home_staff(scope: Scope, user_id: str, home_id: str | None, is_dsl: bool | None) -> None:
        if not home_id:
            raise BadRequestError("home_id required for Staff.")
        if not scope.allows_home(home_id):
            raise ForbiddenError("Home not in your scope.")

        MemberService._clear_scoped_homes(scope, user_id)
        if scope.is_company:
            db_write(
                "delete_bank_membership",
                SupabaseClient.delete_bank_membership,
                user_id,
                scope.company_id,
            )
            _keep_company_row(scope, user_id, access=False, dsl=is_dsl)

        db_write(
            "insert_home_memberships",
            SupabaseClient.insert_home_memberships,
            [{"user_id": user_id, "home_id": home_id, "role": HomeRole.STAFF.value}],
        )

    @staticmethod
    def _make_manager(scope: Scope, user_id: str, home_ids: list[str], is_dsl: bool | None) -> None:
        if not home_ids:
            raise BadRequestError("Select at least one home.")
        if scope.disallowed(home_ids):
            raise ForbiddenError("One or more homes are outside your scope.")

        if scope.is_company:
            if SupabaseClient.fetch_bank_memberships(user_id=user_id, company_id=scope.company_id):
                raise BadRequestError("User is bank staff. Assign them to a home as STAFF first.")
            MemberService._clear_scoped_homes(scope, user_id)
            _keep_company_row(scope, user_id, access=False, dsl=is_dsl)
            db_write(
                "insert_home_memberships",
                SupabaseClient.insert_home_memberships,
                [{"user_id": user_id, "home_id": h, "role": HomeRole.MANAGER.value} for h in home_ids],
            )
            return

        # Manager callers upgrade existing rows and add the missing ones
        db_write(
            "update_home_memberships",
            SupabaseClient.update_home_memberships,
            user_id,
            home_ids,
            {"role": HomeRole.MANAGER.value},
        )
        existing = {
            row["home_id"]
            for row in SupabaseClient.fetch_home_memberships(
                user_id=user_id, home_ids=home_ids, role=HomeRole.MANAGER.value
            )
        }
        missing = [h for h in home_ids if h not in existing]
        db_write(
            "insert_home_memberships",
            SupabaseClient.insert_home_memberships,
            [{"user_id": user_id, "home_id": h, "role": HomeRole.MANAGER.value} for h in missing],
        )

    # -------------------------------------------------------------------------
    # Update profile
    # -------------------------------------------------------------------------

    @staticmethod
    def update_profile(ctx: RequesterContext, request: MemberProfileUpdateRequest) -> None:
        """
        Change a member's name and login email.

        Company callers reach anyone in their company; managers reach the
        STAFF of their homes.
        """
        require_level(ctx, AppLevel.COMPANY, AppLevel.MANAGER)
        user_id = request.user_id

        scope = ScopeService.resolve_scope(ctx, company_id=request.company_id, target_user_id=user_id)
        ScopeService.require_user_in_scope(scope, user_id, staff_only=not scope.is_company)

        if request.full_name is not None:
            db_write(
                "upsert_profile",
                SupabaseClient.upsert_profile,
                {"user_id": user_id, "full_name": request.full_name},
            )

        email = (request.email or "").strip()
        if email:
            db_write("update_auth_user", SupabaseClient.update_auth_user, user_id, {"email": email})

        logger.info(f"{ctx.user_id} updated profile of {user_id}")

    # -------------------------------------------------------------------------
    # List
    # -------------------------------------------------------------------------

    @staticmethod
    def list_members(ctx: RequesterContext, company_id: str | None = None) -> list[MemberView]:
        """
        Everyone in the caller's scope with their roles.

        Company callers without `company_id` see their first company.
        """
        require_level(ctx, AppLevel.COMPANY, AppLevel.MANAGER)
        scope = ScopeService.resolve_scope(ctx, company_id=company_id, allow_first=True)

        user_ids = ScopeService.scoped_user_ids(scope)
        if not user_ids:
            return []

        profiles = {p["user_id"]: p for p in SupabaseClient.fetch_profiles(user_ids)}
        auth_users = {
            u["id"]: u
            for u in SupabaseClient.list_auth_users(per_page=max(1000, len(user_ids)))
        }

        home_rows = SupabaseClient.fetch_home_memberships(home_ids=scope.allowed_home_ids, user_ids=user_ids)
        home_ids = unique(r["home_id"] for r in home_rows)
        home_names = {h["id"]: h.get("name") or "" for h in SupabaseClient.fetch_homes(home_ids=home_ids)}

        bank_users: set[str] = set()
        company_rows: dict[str, dict[str, Any]] = {}
        if scope.is_company:
            bank_users = {r["user_id"] for r in SupabaseClient.fetch_bank_memberships(company_id=scope.company_id)}
            company_rows = {
                r["user_id"]: r for r in SupabaseClient.fetch_company_memberships(company_id=scope.company_id)
            }

        members = []
        for user_id in user_ids:
            profile = profiles.get(user_id) or {}
            auth_user = auth_users.get(user_id) or {}
            rows = [r for r in home_rows if r["user_id"] == user_id]
            manager_homes = [
                HomeRef(id=r["home_id"], name=home_names.get(r["home_id"], ""))
                for r in rows if r.get("role") == HomeRole.MANAGER.value
            ]
            staff_homes = [
                HomeRef(id=r["home_id"], name=home_names.get(r["home_id"], ""))
                for r in rows if r.get("role") == HomeRole.STAFF.value
            ]
            company_row = company_rows.get(user_id) or {}

            members.append(MemberView(
                id=user_id,
                full_name=profile.get("full_name") or "",
                is_admin=bool(profile.get("is_admin")),
                email=auth_user.get("email") or "",
                created_at=auth_user.get("created_at"),
                last_sign_in_at=auth_user.get("last_sign_in_at"),
                roles=MemberRoles(
                    company=bool(company_row.get("has_company_access")),
                    bank=user_id in bank_users,
                    manager_homes=manager_homes,
                    staff_home=staff_homes[0] if staff_homes else None,
                    dsl=bool(company_row.get("is_dsl")),
                ),
            ))

        logger.debug(f"Listed {len(members)} members for {ctx.user_id}")
        return members
