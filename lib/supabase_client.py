# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern for the privileged (service-role)
# client and builds short-lived user-scoped clients that forward the caller's
# access token so Row Level Security still applies.
#
# Tables touched:
# - profiles, companies, homes
# - company_memberships, home_memberships, bank_memberships
# - user_company_positions, company_licenses
# - notifications, user_preferences
#
# Business rules live in the database (stored procedures and RLS policies);
# this module only moves rows in and out.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   companies = SupabaseClient.fetch_company_memberships(user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import Client, create_client

from app.config import settings
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries the database message so route handlers can surface it.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def _error_message(exc: Exception) -> str:
    """PostgREST errors carry a `message` attribute; fall back to str()."""
    return getattr(exc, "message", None) or str(exc)


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    All methods are class methods for easy access without instantiation.
    Reads return plain dicts / lists of dicts; writes raise
    SupabaseClientError when the database rejects them.

    Example:
        rows = SupabaseClient.fetch_home_memberships(user_id=uid, role="MANAGER")
        managed = [r["home_id"] for r in rows]
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton service-role client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Never hand this client's key to a browser.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def get_user_client(cls, access_token: str) -> Client:
        """
        Create a client bound to the caller's access token.

        Queries run with the anon key plus the caller's JWT, so RLS policies
        and auth.uid() inside stored procedures see the real user.
        """
        try:
            client = create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
            client.postgrest.auth(access_token)
            return client
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create user-scoped client: {e}",
                code="USER_CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
            )

    @classmethod
    def _run(cls, query: Any, code: str, details: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a query builder and return its rows."""
        try:
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code=code,
                details=details,
            )
        data = response.data if response is not None else None
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    # -------------------------------------------------------------------------
    # Stored Procedures
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_effective_level(cls, access_token: str) -> str | None:
        """
        Resolve the caller's app level via get_effective_level().

        Runs with the caller's token; the function reads auth.uid().

        Returns:
            One of "1_ADMIN" | "2_COMPANY" | "3_MANAGER" | "4_STAFF", or None

        Raises:
            SupabaseClientError: If the RPC fails
        """
        client = cls.get_user_client(access_token)
        try:
            response = client.rpc("get_effective_level", {}).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code="EFFECTIVE_LEVEL_FAILED",
                suggestion="Check that get_effective_level() exists and is executable by authenticated users"
            )

        data = response.data
        # Scalar functions come back bare; table-returning ones as [{...}]
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = data.get("get_effective_level")
        return data

    @classmethod
    def fetch_managed_home_ids(cls, access_token: str, user_id: str | UUID) -> list[str]:
        """Homes managed by a user, via home_ids_managed_by(p_user)."""
        client = cls.get_user_client(access_token)
        user_id_str = normalize_uuid(user_id)
        try:
            response = client.rpc("home_ids_managed_by", {"p_user": user_id_str}).execute()
        except Exception as e:
            logger.warning(f"home_ids_managed_by failed for {user_id_str}: {_error_message(e)}")
            return []

        data = response.data or []
        ids: list[str] = []
        for item in data if isinstance(data, list) else [data]:
            if isinstance(item, dict):
                item = item.get("home_ids_managed_by") or item.get("home_id")
            if item:
                ids.append(str(item))
        return ids

    @classmethod
    def call_rpc(cls, function: str, params: dict[str, Any] | None = None) -> Any:
        """
        Call a stored procedure with the service-role client.

        Returns:
            The RPC payload (scalar, dict or list)

        Raises:
            SupabaseClientError: If the RPC returns an error
        """
        client = cls.get_client()
        try:
            response = client.rpc(function, params or {}).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code="RPC_FAILED",
                details={"function": function},
            )
        logger.debug(f"RPC {function} succeeded")
        return response.data

    # -------------------------------------------------------------------------
    # Auth Admin API
    # -------------------------------------------------------------------------

    @classmethod
    def create_auth_user(
        cls,
        email: str,
        password: str,
        user_metadata: dict[str, Any] | None = None,
    ) -> str:
        """
        Create a confirmed auth user.

        Returns:
            The new user's id

        Raises:
            SupabaseClientError: If the auth API refuses
        """
        client = cls.get_client()
        try:
            response = client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": user_metadata or {},
            })
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code="CREATE_AUTH_USER_FAILED",
                details={"email": email},
            )

        user = getattr(response, "user", None)
        if user is None:
            raise SupabaseClientError(
                message="Failed to create auth user",
                code="CREATE_AUTH_USER_FAILED",
                details={"email": email},
            )
        logger.info(f"Created auth user {user.id}")
        return str(user.id)

    @classmethod
    def update_auth_user(cls, user_id: str | UUID, attributes: dict[str, Any]) -> None:
        """Update email / password / metadata of an auth user."""
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)
        try:
            client.auth.admin.update_user_by_id(user_id_str, attributes)
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code="UPDATE_AUTH_USER_FAILED",
                details={"user_id": user_id_str, "fields": sorted(attributes)},
            )

    @classmethod
    def list_auth_users(cls, per_page: int = 1000) -> list[dict[str, Any]]:
        """
        List auth users as dicts with id, email, created_at, last_sign_in_at.
        """
        client = cls.get_client()
        try:
            users = client.auth.admin.list_users(page=1, per_page=per_page)
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code="LIST_AUTH_USERS_FAILED",
            )

        return [
            {
                "id": str(u.id),
                "email": getattr(u, "email", None),
                "created_at": _isoformat(getattr(u, "created_at", None)),
                "last_sign_in_at": _isoformat(getattr(u, "last_sign_in_at", None)),
            }
            for u in users or []
        ]

    @classmethod
    def sign_out(cls, access_token: str) -> None:
        """Revoke the session behind an access token."""
        client = cls.get_client()
        try:
            client.auth.admin.sign_out(access_token)
        except Exception as e:
            raise SupabaseClientError(
                message=_error_message(e),
                code="SIGN_OUT_FAILED",
            )

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """Fetch one profile row (user_id, full_name, is_admin)."""
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)
        rows = cls._run(
            client.table("profiles")
            .select("user_id, full_name, is_admin")
            .eq("user_id", user_id_str)
            .limit(1),
            code="FETCH_PROFILE_FAILED",
            details={"user_id": user_id_str},
        )
        return rows[0] if rows else None

    @classmethod
    def fetch_profiles(cls, user_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch profile rows for many users."""
        if not user_ids:
            return []
        client = cls.get_client()
        return cls._run(
            client.table("profiles")
            .select("user_id, full_name, is_admin")
            .in_("user_id", user_ids),
            code="FETCH_PROFILES_FAILED",
        )

    @classmethod
    def upsert_profile(cls, row: dict[str, Any]) -> None:
        """Insert or update a profile keyed by user_id."""
        client = cls.get_client()
        cls._run(
            client.table("profiles").upsert(row, on_conflict="user_id"),
            code="UPSERT_PROFILE_FAILED",
            details={"user_id": row.get("user_id")},
        )

    @classmethod
    def update_profile(cls, user_id: str | UUID, patch: dict[str, Any]) -> None:
        """Patch an existing profile."""
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)
        cls._run(
            client.table("profiles").update(patch).eq("user_id", user_id_str),
            code="UPDATE_PROFILE_FAILED",
            details={"user_id": user_id_str},
        )

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    @classmethod
    def insert_company(cls, name: str) -> dict[str, Any] | None:
        """Create a company and return the inserted row."""
        client = cls.get_client()
        rows = cls._run(
            client.table("companies").insert({"name": name}),
            code="INSERT_COMPANY_FAILED",
        )
        return rows[0] if rows else None

    @classmethod
    def update_company(cls, company_id: str, name: str) -> list[dict[str, Any]]:
        """Rename a company; returns the updated rows."""
        client = cls.get_client()
        return cls._run(
            client.table("companies").update({"name": name}).eq("id", company_id),
            code="UPDATE_COMPANY_FAILED",
            details={"company_id": company_id},
        )

    # -------------------------------------------------------------------------
    # Company Memberships
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_company_memberships(
        cls,
        user_id: str | UUID | None = None,
        company_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch company_memberships rows filtered by user and/or company.

        Returns:
            Rows with user_id, company_id, has_company_access, is_dsl
        """
        client = cls.get_client()
        query = client.table("company_memberships").select(
            "user_id, company_id, has_company_access, is_dsl"
        )
        if user_id is not None:
            query = query.eq("user_id", normalize_uuid(user_id))
        if company_id is not None:
            query = query.eq("company_id", company_id)
        return cls._run(query, code="FETCH_COMPANY_MEMBERSHIPS_FAILED")

    @classmethod
    def upsert_company_membership(cls, row: dict[str, Any]) -> None:
        """Insert or update a company membership keyed by (user_id, company_id)."""
        client = cls.get_client()
        cls._run(
            client.table("company_memberships").upsert(row, on_conflict="user_id,company_id"),
            code="UPSERT_COMPANY_MEMBERSHIP_FAILED",
            details={"user_id": row.get("user_id"), "company_id": row.get("company_id")},
        )

    @classmethod
    def update_company_memberships(
        cls,
        user_id: str | UUID,
        patch: dict[str, Any],
        company_id: str | None = None,
    ) -> None:
        """Patch a user's company memberships (optionally one company only)."""
        client = cls.get_client()
        query = (
            client.table("company_memberships")
            .update(patch)
            .eq("user_id", normalize_uuid(user_id))
        )
        if company_id is not None:
            query = query.eq("company_id", company_id)
        cls._run(query, code="UPDATE_COMPANY_MEMBERSHIPS_FAILED")

    @classmethod
    def upsert_company_positions(cls, rows: list[dict[str, Any]]) -> None:
        """Insert user_company_positions rows, ignoring existing ones."""
        if not rows:
            return
        client = cls.get_client()
        cls._run(
            client.table("user_company_positions").upsert(
                rows, on_conflict="user_id,company_id,position"
            ),
            code="UPSERT_COMPANY_POSITIONS_FAILED",
        )

    # -------------------------------------------------------------------------
    # Homes
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_home(cls, home_id: str) -> dict[str, Any] | None:
        """Fetch one home (id, name, company_id) or None."""
        client = cls.get_client()
        rows = cls._run(
            client.table("homes").select("id, name, company_id").eq("id", home_id).limit(1),
            code="FETCH_HOME_FAILED",
            details={"home_id": home_id},
        )
        return rows[0] if rows else None

    @classmethod
    def fetch_homes(
        cls,
        company_id: str | None = None,
        home_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch homes of a company and/or by id."""
        if home_ids is not None and not home_ids:
            return []
        client = cls.get_client()
        query = client.table("homes").select("id, name, company_id")
        if company_id is not None:
            query = query.eq("company_id", company_id)
        if home_ids is not None:
            query = query.in_("id", home_ids)
        return cls._run(query, code="FETCH_HOMES_FAILED")

    @classmethod
    def insert_home(cls, company_id: str, name: str) -> dict[str, Any] | None:
        """Create a home under a company and return it."""
        client = cls.get_client()
        rows = cls._run(
            client.table("homes").insert({"company_id": company_id, "name": name}),
            code="INSERT_HOME_FAILED",
            details={"company_id": company_id},
        )
        return rows[0] if rows else None

    @classmethod
    def update_home(cls, home_id: str, name: str) -> list[dict[str, Any]]:
        """Rename a home."""
        client = cls.get_client()
        return cls._run(
            client.table("homes").update({"name": name}).eq("id", home_id),
            code="UPDATE_HOME_FAILED",
            details={"home_id": home_id},
        )

    # -------------------------------------------------------------------------
    # Home Memberships
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_home_memberships(
        cls,
        user_id: str | UUID | None = None,
        home_ids: list[str] | None = None,
        role: str | None = None,
        user_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch home_memberships rows.

        Args:
            user_id: Only rows of this user
            home_ids: Only rows in these homes (empty list -> no rows)
            role: "MANAGER" or "STAFF"
            user_ids: Only rows of these users (empty list -> no rows)

        Returns:
            Rows with user_id, home_id, role, staff_subrole, manager_subrole
        """
        if (home_ids is not None and not home_ids) or (user_ids is not None and not user_ids):
            return []
        client = cls.get_client()
        query = client.table("home_memberships").select(
            "user_id, home_id, role, staff_subrole, manager_subrole"
        )
        if user_id is not None:
            query = query.eq("user_id", normalize_uuid(user_id))
        if home_ids is not None:
            query = query.in_("home_id", home_ids)
        if role is not None:
            query = query.eq("role", role)
        if user_ids is not None:
            query = query.in_("user_id", user_ids)
        return cls._run(query, code="FETCH_HOME_MEMBERSHIPS_FAILED")

    @classmethod
    def insert_home_memberships(cls, rows: list[dict[str, Any]]) -> None:
        """Insert one or more home_memberships rows."""
        if not rows:
            return
        client = cls.get_client()
        cls._run(
            client.table("home_memberships").insert(rows),
            code="INSERT_HOME_MEMBERSHIPS_FAILED",
        )

    @classmethod
    def update_home_memberships(
        cls,
        user_id: str | UUID,
        home_ids: list[str],
        patch: dict[str, Any],
    ) -> None:
        """Patch a user's rows in the given homes."""
        if not home_ids:
            return
        client = cls.get_client()
        cls._run(
            client.table("home_memberships")
            .update(patch)
            .eq("user_id", normalize_uuid(user_id))
            .in_("home_id", home_ids),
            code="UPDATE_HOME_MEMBERSHIPS_FAILED",
        )

    @classmethod
    def delete_home_memberships(cls, user_id: str | UUID, home_ids: list[str]) -> None:
        """Remove a user's rows in the given homes."""
        if not home_ids:
            return
        client = cls.get_client()
        cls._run(
            client.table("home_memberships")
            .delete()
            .eq("user_id", normalize_uuid(user_id))
            .in_("home_id", home_ids),
            code="DELETE_HOME_MEMBERSHIPS_FAILED",
        )

    # -------------------------------------------------------------------------
    # Bank Memberships
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_bank_memberships(
        cls,
        user_id: str | UUID | None = None,
        company_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch bank_memberships rows (user_id, company_id)."""
        client = cls.get_client()
        query = client.table("bank_memberships").select("user_id, company_id")
        if user_id is not None:
            query = query.eq("user_id", normalize_uuid(user_id))
        if company_id is not None:
            query = query.eq("company_id", company_id)
        return cls._run(query, code="FETCH_BANK_MEMBERSHIPS_FAILED")

    @classmethod
    def upsert_bank_membership(cls, user_id: str | UUID, company_id: str) -> None:
        """Make a user bank staff of a company."""
        client = cls.get_client()
        cls._run(
            client.table("bank_memberships").upsert(
                {"user_id": normalize_uuid(user_id), "company_id": company_id},
                on_conflict="user_id,company_id",
            ),
            code="UPSERT_BANK_MEMBERSHIP_FAILED",
        )

    @classmethod
    def delete_bank_membership(cls, user_id: str | UUID, company_id: str) -> None:
        """Remove a user's bank row for a company."""
        client = cls.get_client()
        cls._run(
            client.table("bank_memberships")
            .delete()
            .eq("user_id", normalize_uuid(user_id))
            .eq("company_id", company_id),
            code="DELETE_BANK_MEMBERSHIP_FAILED",
        )

    # -------------------------------------------------------------------------
    # Licenses
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_licenses(cls, company_ids: list[str] | None = None) -> list[dict[str, Any]]:
        """
        Fetch company_licenses rows joined with the company name.

        Returns:
            Rows with company_id, status, plan_code, seats, valid_until,
            grace_period_days, billing_customer_id, updated_at, company_name
        """
        if company_ids is not None and not company_ids:
            return []
        client = cls.get_client()
        query = client.table("company_licenses").select(
            "company_id, status, plan_code, seats, valid_until, grace_period_days, "
            "billing_customer_id, updated_at, companies!inner(id, name)"
        )
        if company_ids is not None:
            query = query.in_("company_id", company_ids)
        rows = cls._run(query, code="FETCH_LICENSES_FAILED")

        for row in rows:
            company = row.pop("companies", None) or {}
            row["company_name"] = company.get("name")
        return rows

    @classmethod
    def update_license(cls, company_id: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        """Patch a company's licence; returns the updated row or None."""
        client = cls.get_client()
        rows = cls._run(
            client.table("company_licenses").update(patch).eq("company_id", company_id),
            code="UPDATE_LICENSE_FAILED",
            details={"company_id": company_id},
        )
        return rows[0] if rows else None

    @classmethod
    def update_license_status_by_billing_customer(
        cls,
        billing_customer_id: str,
        patch: dict[str, Any],
    ) -> int:
        """Patch every licence linked to a billing customer; returns row count."""
        client = cls.get_client()
        rows = cls._run(
            client.table("company_licenses")
            .update(patch)
            .eq("billing_customer_id", billing_customer_id),
            code="UPDATE_LICENSE_STATUS_FAILED",
            details={"billing_customer_id": billing_customer_id},
        )
        return len(rows)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_notifications(cls, recipient_id: str | UUID, limit: int = 50) -> list[dict[str, Any]]:
        """Newest-first notifications of a recipient."""
        client = cls.get_client()
        return cls._run(
            client.table("notifications")
            .select("id, message, link, kind, is_read, created_at, payload")
            .eq("recipient_id", normalize_uuid(recipient_id))
            .order("created_at", desc=True)
            .limit(limit),
            code="FETCH_NOTIFICATIONS_FAILED",
        )

    @classmethod
    def update_notifications(
        cls,
        recipient_id: str | UUID,
        patch: dict[str, Any],
        notification_id: str | None = None,
        only_unread: bool = False,
    ) -> int:
        """Patch a recipient's notifications; returns row count."""
        client = cls.get_client()
        query = (
            client.table("notifications")
            .update(patch)
            .eq("recipient_id", normalize_uuid(recipient_id))
        )
        if notification_id is not None:
            query = query.eq("id", notification_id)
        if only_unread:
            query = query.eq("is_read", False)
        return len(cls._run(query, code="UPDATE_NOTIFICATIONS_FAILED"))

    @classmethod
    def delete_notification(cls, recipient_id: str | UUID, notification_id: str) -> int:
        """Delete one of a recipient's notifications; returns row count."""
        client = cls.get_client()
        rows = cls._run(
            client.table("notifications")
            .delete()
            .eq("recipient_id", normalize_uuid(recipient_id))
            .eq("id", notification_id),
            code="DELETE_NOTIFICATION_FAILED",
        )
        return len(rows)

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_theme_mode(cls, user_id: str | UUID) -> str | None:
        """Account-level theme preference, if stored."""
        client = cls.get_client()
        rows = cls._run(
            client.table("user_preferences")
            .select("theme_mode")
            .eq("user_id", normalize_uuid(user_id))
            .limit(1),
            code="FETCH_PREFERENCES_FAILED",
        )
        return rows[0].get("theme_mode") if rows else None

    @classmethod
    def upsert_theme_mode(cls, user_id: str | UUID, theme_mode: str) -> None:
        """Store the account-level theme preference."""
        client = cls.get_client()
        cls._run(
            client.table("user_preferences").upsert(
                {"user_id": normalize_uuid(user_id), "theme_mode": theme_mode},
                on_conflict="user_id",
            ),
            code="UPSERT_PREFERENCES_FAILED",
        )


def _isoformat(value: Any) -> str | None:
    """Auth API timestamps arrive as datetimes or strings."""
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)
