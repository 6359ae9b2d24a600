# =============================================================================
# core/services/people_service.py - Admin People Management
# =============================================================================
# Creating people and patching their memberships from the admin console.
# Callers are admins, company users and managers; every write is checked
# against the caller's level and scope before the service-role client
# (which bypasses RLS) is used.
# =============================================================================

import logging
import secrets
from typing import Any

from app.config import settings
from app.exceptions import (
    BadRequestError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    UpstreamAuthError,
)
from core.models.levels import BANK_POSITION, AppLevel, HomePosition, HomeRole, StaffSubrole
from core.models.people import CreateUserRequest, PersonUpdateRequest
from core.models.requester import RequesterContext, Scope
from core.services.requester_service import require_company_or_manager
from core.services.scope_service import ScopeService
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)


def db_write(operation: str, func, *args, **kwargs) -> Any:
    """Run a data-access write, turning database errors into 400s."""
    try:
        return func(*args, **kwargs)
    except SupabaseClientError as e:
        logger.warning(f"{operation} failed: {e.message}")
        raise DatabaseError(e.message, operation=operation)


def create_login(email: str, password: str, user_metadata: dict[str, Any]) -> str:
    """
    Create a confirmed auth user and return its id.

    Raises:
        ConflictError: The email is already registered
        UpstreamAuthError: Any other refusal from the auth API
    """
    try:
        return SupabaseClient.create_auth_user(
            email=email,
            password=password,
            user_metadata=user_metadata,
        )
    except SupabaseClientError as e:
        if "already" in e.message.lower():
            raise ConflictError(e.message, suggestion="Use a different email address")
        raise UpstreamAuthError(e.message)


def _random_password() -> str:
    return secrets.token_urlsafe(9)[:12]


class PeopleService:
    """
    Admin-console people operations.
    """

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    @staticmethod
    def create_user(ctx: RequesterContext, request: CreateUserRequest) -> str:
        """
        Create an auth user plus profile and memberships.

        Returns:
            The new user's id

        Raises:
            ForbiddenError: Level or scope does not allow the new user
            BadRequestError: Company scope unknown
            UpstreamAuthError: Auth API refused the user
            DatabaseError: A membership write failed
        """
        require_company_or_manager(ctx)

        creating_admin = request.is_admin or request.role == AppLevel.ADMIN
        if creating_admin and not ctx.is_admin:
            raise ForbiddenError("Only admins can create admins")

        target_company_id = request.company_id

        if ctx.level == AppLevel.COMPANY:
            if not ctx.company_scope:
                raise BadRequestError("Your company scope is unknown")
            if target_company_id and target_company_id != ctx.company_scope:
                raise ForbiddenError("Cannot create users in another company")
            target_company_id = ctx.company_scope

        if ctx.level == AppLevel.MANAGER:
            if request.role in (AppLevel.ADMIN, AppLevel.COMPANY):
                raise ForbiddenError("Managers cannot create admin/company users")
            if request.home_id and not ctx.manages(request.home_id):
                raise ForbiddenError("Managers can only create people for their managed homes")
            if not target_company_id and request.home_id:
                home = SupabaseClient.fetch_home(request.home_id)
                target_company_id = home.get("company_id") if home else None

        password = request.password
        if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
            password = _random_password()

        user_id = create_login(
            request.email,
            password,
            {
                "full_name": request.full_name,
                "name": request.full_name,
                "display_name": request.full_name,
            },
        )

        # A trigger may already have inserted the profile, hence upsert
        profile: dict[str, Any] = {"user_id": user_id, "full_name": request.full_name}
        if creating_admin:
            profile["is_admin"] = True
        db_write("upsert_profile", SupabaseClient.upsert_profile, profile)

        if target_company_id and request.role != AppLevel.ADMIN:
            db_write(
                "upsert_company_membership",
                SupabaseClient.upsert_company_membership,
                {"user_id": user_id, "company_id": target_company_id},
            )

        if request.home_id and request.role != AppLevel.COMPANY:
            home_role = HomeRole.MANAGER if request.role == AppLevel.MANAGER else HomeRole.STAFF
            db_write(
                "insert_home_membership",
                SupabaseClient.insert_home_memberships,
                [{"user_id": user_id, "home_id": request.home_id, "role": home_role.value}],
            )
        elif (request.position or "").upper() == BANK_POSITION and target_company_id:
            db_write(
                "upsert_bank_membership",
                SupabaseClient.upsert_bank_membership,
                user_id,
                target_company_id,
            )

        if request.company_positions and target_company_id:
            rows = [
                {"user_id": user_id, "company_id": target_company_id, "position": p.upper()}
                for p in request.company_positions
                if p
            ]
            try:
                SupabaseClient.upsert_company_positions(rows)
            except SupabaseClientError as e:
                # Positions are optional extras; the user already exists
                logger.warning(f"Company positions for {user_id} not stored: {e.message}")

        logger.info(f"{ctx.user_id} created user {user_id} as {request.role.value}")
        return user_id

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    @staticmethod
    def update_person(ctx: RequesterContext, request: PersonUpdateRequest) -> None:
        """
        Apply the requested blocks in order. Earlier blocks stay applied
        when a later one is refused.
        """
        require_company_or_manager(ctx)
        user_id = request.user_id

        touches_account = bool((request.full_name or "").strip() or request.email or request.password)
        PeopleService._require_editable_target(ctx, user_id, check_scope=touches_account)

        PeopleService._update_profile_name(user_id, request.full_name)
        PeopleService._update_credentials(user_id, request.email, request.password)

        if request.set_company:
            PeopleService._set_company(ctx, user_id, request.set_company.company_id)
        if request.set_bank:
            PeopleService._set_bank(ctx, user_id, request.set_bank.company_id, request.set_bank.home_id)
        if request.clear_home:
            PeopleService._clear_home(ctx, user_id, request.clear_home.home_id)
        if request.set_home:
            PeopleService._set_home(
                ctx, user_id, request.set_home.home_id, request.set_home.clear_bank_for_company
            )
        if request.set_home_role:
            PeopleService._set_home_role(
                ctx, user_id, request.set_home_role.home_id, request.set_home_role.role
            )
        if request.set_level:
            PeopleService._set_level(ctx, user_id, request.set_level.level)

        logger.info(f"{ctx.user_id} updated person {user_id}")

    @staticmethod
    def _caller_scope(ctx: RequesterContext) -> Scope:
        """Company (all its homes) or managed homes of a non-admin caller."""
        if ctx.level == AppLevel.COMPANY:
            if not ctx.company_scope:
                raise ForbiddenError("No company scope.")
            homes = db_write("fetch_homes", SupabaseClient.fetch_homes, company_id=ctx.company_scope)
            return Scope(
                level=AppLevel.COMPANY,
                company_id=ctx.company_scope,
                allowed_home_ids=[h["id"] for h in homes],
            )
        return Scope(level=AppLevel.MANAGER, allowed_home_ids=list(ctx.managed_home_ids))

    @staticmethod
    def _require_editable_target(ctx: RequesterContext, user_id: str, check_scope: bool) -> None:
        """
        Non-admins never touch an Admin, and only touch the name, email or
        password of people inside their company or managed homes.

        Raises:
            ForbiddenError: Admin target, or target outside the caller's scope
        """
        if ctx.is_admin:
            return

        profile = db_write("fetch_profile", SupabaseClient.fetch_profile, user_id)
        if profile and profile.get("is_admin"):
            logger.warning(f"{ctx.user_id} tried to modify admin {user_id}")
            raise ForbiddenError("Cannot modify an Admin.")

        if not check_scope:
            return
        scope = PeopleService._caller_scope(ctx)
        if not ScopeService.user_in_scope(scope, user_id, staff_only=not scope.is_company):
            logger.warning(f"{ctx.user_id} tried to edit account of {user_id} outside their scope")
            raise ForbiddenError("Target user not in your scope.")

    @staticmethod
    def _update_profile_name(user_id: str, full_name: str | None) -> None:
        name = (full_name or "").strip()
        if not name:
            return
        db_write("update_profile", SupabaseClient.update_profile, user_id, {"full_name": name})
        # Mirror into auth metadata so the Supabase dashboard shows it
        db_write(
            "update_auth_user",
            SupabaseClient.update_auth_user,
            user_id,
            {"user_metadata": {"full_name": name}},
        )

    @staticmethod
    def _update_credentials(user_id: str, email: str | None, password: str | None) -> None:
        patch: dict[str, Any] = {}
        if email:
            patch["email"] = email.strip()
        if password:
            patch["password"] = password
        if patch:
            db_write("update_auth_user", SupabaseClient.update_auth_user, user_id, patch)

    @staticmethod
    def _set_company(ctx: RequesterContext, user_id: str, company_id: str) -> None:
        if not ctx.is_admin:
            raise ForbiddenError("Only admins can change company")
        db_write(
            "upsert_company_membership",
            SupabaseClient.upsert_company_membership,
            {"user_id": user_id, "company_id": company_id},
        )

    @staticmethod
    def _set_bank(ctx: RequesterContext, user_id: str, company_id: str, home_id: str | None) -> None:
        if ctx.level == AppLevel.MANAGER:
            raise ForbiddenError("Managers cannot assign bank staff")
        if ctx.level == AppLevel.COMPANY and ctx.company_scope and ctx.company_scope != company_id:
            raise ForbiddenError("Cannot assign bank in another company")
        if home_id:
            db_write("delete_home_membership", SupabaseClient.delete_home_memberships, user_id, [home_id])
        db_write("upsert_bank_membership", SupabaseClient.upsert_bank_membership, user_id, company_id)

    @staticmethod
    def _clear_home(ctx: RequesterContext, user_id: str, home_id: str) -> None:
        if ctx.level == AppLevel.MANAGER and not ctx.manages(home_id):
            raise ForbiddenError("Cannot remove from a home you don't manage")
        db_write("delete_home_membership", SupabaseClient.delete_home_memberships, user_id, [home_id])

    @staticmethod
    def _check_home_in_company(ctx: RequesterContext, home_id: str, message: str) -> None:
        """Company callers may only act on homes of their own company."""
        if ctx.level != AppLevel.COMPANY or not ctx.company_scope:
            return
        home = db_write("fetch_home", SupabaseClient.fetch_home, home_id)
        if home and home.get("company_id") and home["company_id"] != ctx.company_scope:
            raise ForbiddenError(message)

    @staticmethod
    def _set_home(
        ctx: RequesterContext,
        user_id: str,
        home_id: str,
        clear_bank_for_company: str | None,
    ) -> None:
        """
        Place a user in a home.

        - Already a member there: nothing to do.
        - A STAFF row elsewhere: move it here (reset to RESIDENTIAL).
        - Otherwise: insert a STAFF / RESIDENTIAL row.
        """
        if ctx.level == AppLevel.MANAGER and not ctx.manages(home_id):
            raise ForbiddenError("Managers can only assign to their managed homes")
        PeopleService._check_home_in_company(ctx, home_id, "Cannot assign to a home in another company")

        if clear_bank_for_company:
            db_write(
                "delete_bank_membership",
                SupabaseClient.delete_bank_membership,
                user_id,
                clear_bank_for_company,
            )

        existing = db_write(
            "fetch_home_memberships",
            SupabaseClient.fetch_home_memberships,
            user_id=user_id,
            home_ids=[home_id],
        )
        if existing:
            return

        staff_rows = db_write(
            "fetch_home_memberships",
            SupabaseClient.fetch_home_memberships,
            user_id=user_id,
            role=HomeRole.STAFF.value,
        )
        elsewhere = [r["home_id"] for r in staff_rows if r.get("home_id") != home_id]

        if elsewhere:
            from_home_id = elsewhere[0]
            db_write(
                "move_home_membership",
                SupabaseClient.update_home_memberships,
                user_id,
                [from_home_id],
                {
                    "home_id": home_id,
                    "role": HomeRole.STAFF.value,
                    "staff_subrole": StaffSubrole.RESIDENTIAL.value,
                    "manager_subrole": None,
                },
            )
            logger.info(f"Moved {user_id} from home {from_home_id} to {home_id}")
        else:
            db_write(
                "insert_home_membership",
                SupabaseClient.insert_home_memberships,
                [{
                    "user_id": user_id,
                    "home_id": home_id,
                    "role": HomeRole.STAFF.value,
                    "staff_subrole": StaffSubrole.RESIDENTIAL.value,
                    "manager_subrole": None,
                }],
            )

    @staticmethod
    def _set_home_role(ctx: RequesterContext, user_id: str, home_id: str, role: str) -> None:
        if ctx.level == AppLevel.MANAGER and not ctx.manages(home_id):
            raise ForbiddenError("Managers can only change positions in their homes")
        PeopleService._check_home_in_company(ctx, home_id, "Cannot change position in another company")

        try:
            position = HomePosition(str(role).strip().upper())
        except ValueError:
            raise BadRequestError(
                "Invalid home role",
                suggestion="Use one of STAFF, TEAM_LEADER, DEPUTY_MANAGER, MANAGER",
            )

        db_write(
            "update_home_membership",
            SupabaseClient.update_home_memberships,
            user_id,
            [home_id],
            position.membership_patch(),
        )

    # -------------------------------------------------------------------------
    # App level
    # -------------------------------------------------------------------------

    @staticmethod
    def derive_company_id(ctx: RequesterContext, user_id: str) -> str | None:
        """
        Company a user belongs to: via a home, then bank, then company row,
        then the caller's own scope.
        """
        homes = SupabaseClient.fetch_home_memberships(user_id=user_id)
        if homes:
            home = SupabaseClient.fetch_home(homes[0]["home_id"])
            if home and home.get("company_id"):
                return home["company_id"]

        bank = SupabaseClient.fetch_bank_memberships(user_id=user_id)
        if bank and bank[0].get("company_id"):
            return bank[0]["company_id"]

        companies = SupabaseClient.fetch_company_memberships(user_id=user_id)
        if companies and companies[0].get("company_id"):
            return companies[0]["company_id"]

        return ctx.company_scope

    @staticmethod
    def _set_level(ctx: RequesterContext, user_id: str, level: str) -> None:
        """
        Change a user's app level within the caller's caps.

        Nobody changes their own level, and nobody grants a level above
        their own.
        """
        if ctx.is_self(user_id):
            raise ForbiddenError("You cannot change your own app role")

        target = AppLevel.parse(level)
        if target is None:
            raise BadRequestError("Invalid app level")
        if target.outranks(ctx.viewer_level):
            raise ForbiddenError("You are not allowed to assign that app role")

        if target == AppLevel.ADMIN:
            if not ctx.is_admin:
                raise ForbiddenError("Only admins can assign Admin role")
            db_write("update_profile", SupabaseClient.update_profile, user_id, {"is_admin": True})

        elif target == AppLevel.COMPANY:
            db_write("update_profile", SupabaseClient.update_profile, user_id, {"is_admin": False})
            company_id = PeopleService.derive_company_id(ctx, user_id)
            if not company_id:
                raise BadRequestError("Cannot determine company to grant access")
            if not ctx.is_admin and ctx.company_scope and ctx.company_scope != company_id:
                raise ForbiddenError("Cannot grant company access in another company")
            db_write(
                "upsert_company_membership",
                SupabaseClient.upsert_company_membership,
                {"user_id": user_id, "company_id": company_id, "has_company_access": True},
            )

        elif target == AppLevel.MANAGER:
            db_write("update_profile", SupabaseClient.update_profile, user_id, {"is_admin": False})

        else:
            db_write("update_profile", SupabaseClient.update_profile, user_id, {"is_admin": False})
            if ctx.is_admin:
                db_write(
                    "revoke_company_access",
                    SupabaseClient.update_company_memberships,
                    user_id,
                    {"has_company_access": False},
                )
            elif ctx.can_company and ctx.company_scope:
                db_write(
                    "revoke_company_access",
                    SupabaseClient.update_company_memberships,
                    user_id,
                    {"has_company_access": False},
                    company_id=ctx.company_scope,
                )

        logger.info(f"{ctx.user_id} set level of {user_id} to {target.value}")
