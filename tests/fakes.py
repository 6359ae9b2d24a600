# =============================================================================
# tests/fakes.py - In-Memory Supabase Stand-In
# =============================================================================
# FakeSupabase implements the SupabaseClient class-method surface on plain
# lists of dicts so the services can be exercised without a database.
#
# Usage:
#   fake = FakeSupabase()
#   company = fake.add_company("Acme Care")
#   with patch("core.services.org_service.SupabaseClient", fake):
#       ...
#
# fake.failures["fetch_licenses"] = "boom" makes that method raise
# SupabaseClientError("boom").
# =============================================================================

from copy import deepcopy
from typing import Any
from uuid import uuid4

from lib.supabase_client import SupabaseClientError


def _new_id() -> str:
    return str(uuid4())


def _matches(row: dict[str, Any], **filters: Any) -> bool:
    return all(row.get(key) == value for key, value in filters.items() if value is not None)


class FakeSupabase:
    """In-memory tables plus recorded RPC and auth calls."""

    def __init__(self):
        self.failures: dict[str, str] = {}
        self.levels: dict[str, str] = {}
        self.rpc_results: dict[str, Any] = {}
        self.rpc_calls: list[tuple[str, dict[str, Any]]] = []
        self.signed_out: list[str] = []

        self.auth_users: list[dict[str, Any]] = []
        self.profiles: list[dict[str, Any]] = []
        self.companies: list[dict[str, Any]] = []
        self.homes: list[dict[str, Any]] = []
        self.company_memberships: list[dict[str, Any]] = []
        self.home_memberships: list[dict[str, Any]] = []
        self.bank_memberships: list[dict[str, Any]] = []
        self.company_positions: list[dict[str, Any]] = []
        self.licenses: list[dict[str, Any]] = []
        self.notifications: list[dict[str, Any]] = []
        self.preferences: dict[str, str] = {}

    def __getattribute__(self, name: str):
        failures = object.__getattribute__(self, "failures")
        if name in failures:
            message = failures[name]

            def _fail(*args, **kwargs):
                raise SupabaseClientError(message)

            return _fail
        return object.__getattribute__(self, name)

    # -------------------------------------------------------------------------
    # Seeding helpers
    # -------------------------------------------------------------------------

    def add_company(self, name: str = "Acme Care") -> str:
        company_id = _new_id()
        self.companies.append({"id": company_id, "name": name})
        return company_id

    def add_home(self, company_id: str, name: str = "Rose House") -> str:
        home_id = _new_id()
        self.homes.append({"id": home_id, "name": name, "company_id": company_id})
        return home_id

    def add_user(
        self,
        email: str | None = None,
        full_name: str = "Test User",
        is_admin: bool = False,
        level: str | None = None,
    ) -> str:
        user_id = _new_id()
        self.auth_users.append({
            "id": user_id,
            "email": email or f"{user_id[:8]}@example.com",
            "created_at": "2024-01-15T10:00:00+00:00",
            "last_sign_in_at": None,
            "user_metadata": {"full_name": full_name},
        })
        self.profiles.append({"user_id": user_id, "full_name": full_name, "is_admin": is_admin})
        if level:
            self.levels[f"token-{user_id}"] = level
        return user_id

    def add_company_member(
        self,
        user_id: str,
        company_id: str,
        has_company_access: bool | None = None,
        is_dsl: bool | None = None,
    ) -> None:
        self.company_memberships.append({
            "user_id": user_id,
            "company_id": company_id,
            "has_company_access": has_company_access,
            "is_dsl": is_dsl,
        })

    def add_home_member(self, user_id: str, home_id: str, role: str = "STAFF", **extra: Any) -> None:
        row = {"user_id": user_id, "home_id": home_id, "role": role,
               "staff_subrole": None, "manager_subrole": None}
        row.update(extra)
        self.home_memberships.append(row)

    def add_bank_member(self, user_id: str, company_id: str) -> None:
        self.bank_memberships.append({"user_id": user_id, "company_id": company_id})

    def profile(self, user_id: str) -> dict[str, Any] | None:
        return next((p for p in self.profiles if p["user_id"] == user_id), None)

    def auth_user(self, user_id: str) -> dict[str, Any] | None:
        return next((u for u in self.auth_users if u["id"] == user_id), None)

    def homes_of(self, user_id: str, role: str | None = None) -> set[str]:
        return {
            r["home_id"] for r in self.home_memberships
            if r["user_id"] == user_id and (role is None or r["role"] == role)
        }

    def company_row(self, user_id: str, company_id: str) -> dict[str, Any] | None:
        return next(
            (r for r in self.company_memberships
             if r["user_id"] == user_id and r["company_id"] == company_id),
            None,
        )

    def is_bank(self, user_id: str, company_id: str) -> bool:
        return any(_matches(r, user_id=user_id, company_id=company_id) for r in self.bank_memberships)

    # -------------------------------------------------------------------------
    # Stored procedures
    # -------------------------------------------------------------------------

    def fetch_effective_level(self, access_token: str) -> str | None:
        return self.levels.get(access_token)

    def fetch_managed_home_ids(self, access_token: str, user_id: str) -> list[str]:
        return sorted(self.homes_of(str(user_id), role="MANAGER"))

    def call_rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        self.rpc_calls.append((function, dict(params or {})))
        return deepcopy(self.rpc_results.get(function))

    # -------------------------------------------------------------------------
    # Auth admin
    # -------------------------------------------------------------------------

    def create_auth_user(self, email: str, password: str, user_metadata: dict[str, Any] | None = None) -> str:
        if any(u["email"] == email for u in self.auth_users):
            raise SupabaseClientError("A user with this email address has already been registered")
        user_id = _new_id()
        self.auth_users.append({
            "id": user_id,
            "email": email,
            "password": password,
            "created_at": "2024-01-15T10:00:00+00:00",
            "last_sign_in_at": None,
            "user_metadata": dict(user_metadata or {}),
        })
        return user_id

    def update_auth_user(self, user_id: str, attributes: dict[str, Any]) -> None:
        user = self.auth_user(str(user_id))
        if user is None:
            raise SupabaseClientError("User not found")
        for key, value in attributes.items():
            if key == "user_metadata":
                user["user_metadata"].update(value)
            else:
                user[key] = value

    def list_auth_users(self, per_page: int = 1000) -> list[dict[str, Any]]:
        return [
            {k: u.get(k) for k in ("id", "email", "created_at", "last_sign_in_at")}
            for u in self.auth_users[:per_page]
        ]

    def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        row = self.profile(str(user_id))
        return dict(row) if row else None

    def fetch_profiles(self, user_ids: list[str]) -> list[dict[str, Any]]:
        return [dict(p) for p in self.profiles if p["user_id"] in user_ids]

    def upsert_profile(self, row: dict[str, Any]) -> None:
        existing = self.profile(row["user_id"])
        if existing:
            existing.update(row)
        else:
            self.profiles.append({"is_admin": False, **row})

    def update_profile(self, user_id: str, patch: dict[str, Any]) -> None:
        existing = self.profile(str(user_id))
        if existing:
            existing.update(patch)

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    def insert_company(self, name: str) -> dict[str, Any]:
        company_id = self.add_company(name)
        return {"id": company_id, "name": name}

    def update_company(self, company_id: str, name: str) -> list[dict[str, Any]]:
        rows = [c for c in self.companies if c["id"] == company_id]
        for row in rows:
            row["name"] = name
        return [dict(r) for r in rows]

    def fetch_company_memberships(self, user_id: str | None = None, company_id: str | None = None) -> list[dict[str, Any]]:
        uid = str(user_id) if user_id is not None else None
        return [dict(r) for r in self.company_memberships if _matches(r, user_id=uid, company_id=company_id)]

    def upsert_company_membership(self, row: dict[str, Any]) -> None:
        existing = self.company_row(row["user_id"], row["company_id"])
        if existing:
            existing.update(row)
        else:
            self.company_memberships.append({"has_company_access": None, "is_dsl": None, **row})

    def update_company_memberships(self, user_id: str, patch: dict[str, Any], company_id: str | None = None) -> None:
        for row in self.company_memberships:
            if _matches(row, user_id=str(user_id), company_id=company_id):
                row.update(patch)

    def upsert_company_positions(self, rows: list[dict[str, Any]]) -> None:
        for row in rows:
            if row not in self.company_positions:
                self.company_positions.append(dict(row))

    # -------------------------------------------------------------------------
    # Homes
    # -------------------------------------------------------------------------

    def fetch_home(self, home_id: str) -> dict[str, Any] | None:
        return next((dict(h) for h in self.homes if h["id"] == home_id), None)

    def fetch_homes(self, company_id: str | None = None, home_ids: list[str] | None = None) -> list[dict[str, Any]]:
        if home_ids is not None and not home_ids:
            return []
        return [
            dict(h) for h in self.homes
            if _matches(h, company_id=company_id) and (home_ids is None or h["id"] in home_ids)
        ]

    def insert_home(self, company_id: str, name: str) -> dict[str, Any]:
        home_id = self.add_home(company_id, name)
        return {"id": home_id, "name": name, "company_id": company_id}

    def update_home(self, home_id: str, name: str) -> list[dict[str, Any]]:
        rows = [h for h in self.homes if h["id"] == home_id]
        for row in rows:
            row["name"] = name
        return [dict(r) for r in rows]

    # -------------------------------------------------------------------------
    # Home memberships
    # -------------------------------------------------------------------------

    def fetch_home_memberships(
        self,
        user_id: str | None = None,
        home_ids: list[str] | None = None,
        role: str | None = None,
        user_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        if (home_ids is not None and not home_ids) or (user_ids is not None and not user_ids):
            return []
        uid = str(user_id) if user_id is not None else None
        return [
            dict(r) for r in self.home_memberships
            if _matches(r, user_id=uid, role=role)
            and (home_ids is None or r["home_id"] in home_ids)
            and (user_ids is None or r["user_id"] in user_ids)
        ]

    def insert_home_memberships(self, rows: list[dict[str, Any]]) -> None:
        for row in rows:
            if any(_matches(r, user_id=row["user_id"], home_id=row["home_id"]) for r in self.home_memberships):
                raise SupabaseClientError("duplicate key value violates unique constraint")
            self.home_memberships.append({"staff_subrole": None, "manager_subrole": None, **row})

    def update_home_memberships(self, user_id: str, home_ids: list[str], patch: dict[str, Any]) -> None:
        for row in self.home_memberships:
            if row["user_id"] == str(user_id) and row["home_id"] in home_ids:
                row.update(patch)

    def delete_home_memberships(self, user_id: str, home_ids: list[str]) -> None:
        self.home_memberships = [
            r for r in self.home_memberships
            if not (r["user_id"] == str(user_id) and r["home_id"] in home_ids)
        ]

    # -------------------------------------------------------------------------
    # Bank memberships
    # -------------------------------------------------------------------------

    def fetch_bank_memberships(self, user_id: str | None = None, company_id: str | None = None) -> list[dict[str, Any]]:
        uid = str(user_id) if user_id is not None else None
        return [dict(r) for r in self.bank_memberships if _matches(r, user_id=uid, company_id=company_id)]

    def upsert_bank_membership(self, user_id: str, company_id: str) -> None:
        if not self.is_bank(str(user_id), company_id):
            self.add_bank_member(str(user_id), company_id)

    def delete_bank_membership(self, user_id: str, company_id: str) -> None:
        self.bank_memberships = [
            r for r in self.bank_memberships
            if not _matches(r, user_id=str(user_id), company_id=company_id)
        ]

    # -------------------------------------------------------------------------
    # Licences
    # -------------------------------------------------------------------------

    def fetch_licenses(self, company_ids: list[str] | None = None) -> list[dict[str, Any]]:
        names = {c["id"]: c["name"] for c in self.companies}
        return [
            {**row, "company_name": names.get(row["company_id"])}
            for row in self.licenses
            if company_ids is None or row["company_id"] in company_ids
        ]

    def update_license(self, company_id: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        for row in self.licenses:
            if row["company_id"] == company_id:
                row.update(patch)
                return dict(row)
        return None

    def update_license_status_by_billing_customer(self, billing_customer_id: str, patch: dict[str, Any]) -> int:
        count = 0
        for row in self.licenses:
            if row.get("billing_customer_id") == billing_customer_id:
                row.update(patch)
                count += 1
        return count

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def fetch_notifications(self, recipient_id: str, limit: int = 50) -> list[dict[str, Any]]:
        rows = [n for n in self.notifications if n["recipient_id"] == str(recipient_id)]
        rows.sort(key=lambda n: n["created_at"], reverse=True)
        return [{k: v for k, v in n.items() if k != "recipient_id"} for n in rows[:limit]]

    def update_notifications(
        self,
        recipient_id: str,
        patch: dict[str, Any],
        notification_id: str | None = None,
        only_unread: bool = False,
    ) -> int:
        count = 0
        for row in self.notifications:
            if row["recipient_id"] != str(recipient_id):
                continue
            if notification_id is not None and row["id"] != notification_id:
                continue
            if only_unread and row["is_read"]:
                continue
            row.update(patch)
            count += 1
        return count

    def delete_notification(self, recipient_id: str, notification_id: str) -> int:
        before = len(self.notifications)
        self.notifications = [
            n for n in self.notifications
            if not (n["recipient_id"] == str(recipient_id) and n["id"] == notification_id)
        ]
        return before - len(self.notifications)

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def fetch_theme_mode(self, user_id: str) -> str | None:
        return self.preferences.get(str(user_id))

    def upsert_theme_mode(self, user_id: str, theme_mode: str) -> None:
        self.preferences[str(user_id)] = theme_mode
