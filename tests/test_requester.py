# =============================================================================
# tests/test_requester.py - Requester Context and Guard Tests
# =============================================================================
# Tests for building the per-request context and for the scope guards.
#
# Run with: pytest tests/test_requester.py -v
# =============================================================================

import pytest

from app.exceptions import ForbiddenError, LevelResolutionError
from core.models.levels import AppLevel
from core.services.requester_service import (
    RequesterService,
    require_admin,
    require_company_or_manager,
    require_company_scope,
    require_level,
    require_manager_scope,
    restrict_company_positions,
)


# =============================================================================
# build_context
# =============================================================================

class TestBuildContext:
    """Tests for RequesterService.build_context."""

    def test_admin_has_no_company_scope(self, fake_db, org):
        user = fake_db.add_user(level="1_ADMIN", is_admin=True)
        fake_db.add_company_member(user, org["acme"])

        ctx = RequesterService.build_context(user, f"token-{user}", "a@example.com")

        assert ctx.level == AppLevel.ADMIN
        assert ctx.company_scope is None
        assert ctx.managed_home_ids == ()
        assert ctx.email == "a@example.com"

    def test_company_scope_is_first_membership(self, fake_db, org):
        user = fake_db.add_user(level="2_COMPANY")
        fake_db.add_company_member(user, org["birch"])
        fake_db.add_company_member(user, org["acme"])

        ctx = RequesterService.build_context(user, f"token-{user}")

        assert ctx.level == AppLevel.COMPANY
        assert ctx.company_scope == org["birch"]

    def test_manager_gets_managed_homes(self, fake_db, org):
        user = fake_db.add_user(level="3_MANAGER")
        fake_db.add_home_member(user, org["rose"], role="MANAGER")
        fake_db.add_home_member(user, org["oak"], role="STAFF")

        ctx = RequesterService.build_context(user, f"token-{user}")

        assert ctx.managed_home_ids == (org["rose"],)

    def test_unknown_level_is_staff(self, fake_db):
        user = fake_db.add_user()

        ctx = RequesterService.build_context(user, "token-without-level")

        assert ctx.level == AppLevel.STAFF
        assert ctx.company_scope is None

    def test_level_rpc_failure(self, fake_db):
        fake_db.failures["fetch_effective_level"] = "function get_effective_level() does not exist"

        with pytest.raises(LevelResolutionError) as exc_info:
            RequesterService.build_context("u1", "token")

        assert exc_info.value.status_code == 500
        assert "does not exist" in exc_info.value.details["error"]


class TestHomeCompanyId:

    def test_only_looked_up_for_company_callers(self, fake_db, org, make_ctx):
        company = make_ctx(AppLevel.COMPANY, company_scope=org["acme"])
        manager = make_ctx(AppLevel.MANAGER, company_scope=org["acme"])

        assert RequesterService.home_company_id(company, org["elm"]) == org["birch"]
        assert RequesterService.home_company_id(manager, org["elm"]) is None


# =============================================================================
# Guards
# =============================================================================

class TestGuards:
    """Tests for the guard functions; each raises ForbiddenError."""

    def test_require_level(self, make_ctx):
        require_level(make_ctx(AppLevel.MANAGER), AppLevel.COMPANY, AppLevel.MANAGER)
        with pytest.raises(ForbiddenError):
            require_level(make_ctx(AppLevel.ADMIN), AppLevel.COMPANY, AppLevel.MANAGER)

    def test_require_admin(self, make_ctx):
        require_admin(make_ctx(AppLevel.ADMIN))
        with pytest.raises(ForbiddenError, match="Admin only"):
            require_admin(make_ctx(AppLevel.COMPANY))

    def test_require_company_or_manager(self, make_ctx):
        for level in (AppLevel.ADMIN, AppLevel.COMPANY, AppLevel.MANAGER):
            require_company_or_manager(make_ctx(level))
        with pytest.raises(ForbiddenError):
            require_company_or_manager(make_ctx(AppLevel.STAFF))

    def test_restrict_company_positions(self, make_ctx):
        restrict_company_positions(make_ctx(AppLevel.COMPANY), "BANK")
        with pytest.raises(ForbiddenError) as exc_info:
            restrict_company_positions(make_ctx(AppLevel.MANAGER), "BANK")
        assert exc_info.value.details == {"position": "BANK"}

    def test_require_company_scope(self, make_ctx):
        require_company_scope(make_ctx(AppLevel.ADMIN), "any")
        require_company_scope(make_ctx(AppLevel.COMPANY, company_scope="c1"), "c1")
        with pytest.raises(ForbiddenError):
            require_company_scope(make_ctx(AppLevel.COMPANY, company_scope="c1"), "c2")
        with pytest.raises(ForbiddenError):
            require_company_scope(make_ctx(AppLevel.COMPANY), "c1")

    def test_manager_scope_for_company_caller(self, make_ctx):
        ctx = make_ctx(AppLevel.COMPANY, company_scope="c1")
        require_manager_scope(ctx, "h1", home_company_id="c1")
        require_manager_scope(ctx, "h1")
        with pytest.raises(ForbiddenError):
            require_manager_scope(ctx, "h1", home_company_id="c2")

    def test_manager_scope_for_manager(self, make_ctx):
        ctx = make_ctx(AppLevel.MANAGER, managed=["h1"])
        require_manager_scope(ctx, "h1")
        with pytest.raises(ForbiddenError):
            require_manager_scope(ctx, "h2")

    def test_manager_scope_refuses_staff(self, make_ctx):
        with pytest.raises(ForbiddenError):
            require_manager_scope(make_ctx(AppLevel.STAFF, managed=["h1"]), "h1")
