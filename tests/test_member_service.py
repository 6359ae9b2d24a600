# =============================================================================
# tests/test_member_service.py - Self-Service Member Tests
# =============================================================================
# Tests for the company and manager consoles: creating members, moving them
# between roles, editing profiles and listing the people page.
#
# Run with: pytest tests/test_member_service.py -v
# =============================================================================

import pytest

from app.exceptions import BadRequestError, ConflictError, ForbiddenError
from core.models.levels import AppLevel
from core.models.people import (
    MemberCreateRequest,
    MemberProfileUpdateRequest,
    MemberRole,
    MemberRoleUpdateRequest,
)
from core.services.member_service import MemberService


@pytest.fixture
def company_ctx(fake_db, org, make_ctx):
    """Company-level caller of Acme."""
    caller = fake_db.add_user(level="2_COMPANY")
    fake_db.add_company_member(caller, org["acme"], has_company_access=True)
    return make_ctx(AppLevel.COMPANY, user_id=caller, company_scope=org["acme"])


@pytest.fixture
def manager_ctx(fake_db, org, make_ctx):
    """Manager of Rose House."""
    caller = fake_db.add_user(level="3_MANAGER")
    fake_db.add_home_member(caller, org["rose"], role="MANAGER")
    return make_ctx(AppLevel.MANAGER, user_id=caller, managed=[org["rose"]])


def _member(**overrides) -> MemberCreateRequest:
    data = {"email": "new@example.com", "password": "pw-123456", "full_name": "New Person", "role": "STAFF"}
    data.update(overrides)
    return MemberCreateRequest(**data)


# =============================================================================
# create_member
# =============================================================================

class TestCreateMember:
    """Tests for MemberService.create_member."""

    def test_company_creates_manager(self, fake_db, org, company_ctx):
        created = MemberService.create_member(
            company_ctx, _member(role="MANAGER", home_ids=[org["rose"], org["oak"], org["rose"]])
        )

        assert created.role == MemberRole.MANAGER
        assert created.email == "new@example.com"
        assert fake_db.homes_of(created.id, role="MANAGER") == {org["rose"], org["oak"]}
        row = fake_db.company_row(created.id, org["acme"])
        assert row["has_company_access"] is False
        assert fake_db.profile(created.id)["is_admin"] is False

    def test_company_creates_bank_staff_with_dsl(self, fake_db, org, company_ctx):
        created = MemberService.create_member(company_ctx, _member(bank_staff=True, is_dsl=True))

        assert fake_db.is_bank(created.id, org["acme"])
        assert fake_db.homes_of(created.id) == set()
        assert fake_db.company_row(created.id, org["acme"])["is_dsl"] is True

    def test_company_manager_needs_homes(self, fake_db, company_ctx):
        with pytest.raises(BadRequestError, match="Pick at least one home for Manager"):
            MemberService.create_member(company_ctx, _member(role="MANAGER"))

    def test_company_manager_foreign_home(self, fake_db, org, company_ctx):
        with pytest.raises(ForbiddenError, match="One or more homes not in your company"):
            MemberService.create_member(company_ctx, _member(role="MANAGER", home_ids=[org["rose"], org["elm"]]))
        assert len(fake_db.auth_users) == 1

    def test_company_staff_needs_home(self, fake_db, company_ctx):
        with pytest.raises(BadRequestError, match="Pick one home for Staff"):
            MemberService.create_member(company_ctx, _member())

    def test_company_staff_foreign_home(self, fake_db, org, company_ctx):
        with pytest.raises(ForbiddenError, match="Home not in your company"):
            MemberService.create_member(company_ctx, _member(home_id=org["elm"]))

    def test_manager_creates_staff(self, fake_db, org, manager_ctx):
        created = MemberService.create_member(manager_ctx, _member(home_id=org["rose"], is_dsl=True))

        assert fake_db.homes_of(created.id, role="STAFF") == {org["rose"]}
        # Manager scope writes no company row, so DSL is not set
        assert fake_db.fetch_company_memberships(user_id=created.id) == []

    def test_manager_cannot_create_manager(self, fake_db, org, manager_ctx):
        with pytest.raises(ForbiddenError, match="Managers can only create Staff"):
            MemberService.create_member(manager_ctx, _member(role="MANAGER", home_ids=[org["rose"]]))

    def test_manager_cannot_create_bank(self, fake_db, manager_ctx):
        with pytest.raises(ForbiddenError, match="Managers cannot create bank staff"):
            MemberService.create_member(manager_ctx, _member(bank_staff=True))

    def test_manager_other_home(self, fake_db, org, manager_ctx):
        with pytest.raises(ForbiddenError, match="Not one of your homes"):
            MemberService.create_member(manager_ctx, _member(home_id=org["oak"]))

    def test_admin_refused(self, fake_db, org, make_ctx):
        with pytest.raises(ForbiddenError):
            MemberService.create_member(make_ctx(AppLevel.ADMIN), _member(home_id=org["rose"]))

    def test_duplicate_email(self, fake_db, org, company_ctx):
        fake_db.add_user(email="new@example.com")
        with pytest.raises(ConflictError):
            MemberService.create_member(company_ctx, _member(home_id=org["rose"]))


# =============================================================================
# update_role
# =============================================================================

class TestUpdateRole:
    """Tests for MemberService.update_role."""

    def test_admin_target_refused(self, fake_db, org, company_ctx):
        admin = fake_db.add_user(is_admin=True)
        fake_db.add_home_member(admin, org["rose"])

        with pytest.raises(ForbiddenError, match="Cannot modify an Admin"):
            MemberService.update_role(company_ctx, MemberRoleUpdateRequest(user_id=admin, role="STAFF"))

    def test_target_outside_scope(self, fake_db, org, company_ctx):
        stranger = fake_db.add_user()
        fake_db.add_home_member(stranger, org["elm"])

        with pytest.raises(ForbiddenError, match="Target user not in your scope"):
            MemberService.update_role(
                company_ctx, MemberRoleUpdateRequest(user_id=stranger, role="STAFF", home_id=org["rose"])
            )

    def test_make_company(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"], role="MANAGER")
        fake_db.add_bank_member(user, org["acme"])

        MemberService.update_role(company_ctx, MemberRoleUpdateRequest(user_id=user, role="COMPANY", is_dsl=True))

        assert fake_db.homes_of(user) == set()
        assert not fake_db.is_bank(user, org["acme"])
        row = fake_db.company_row(user, org["acme"])
        assert row["has_company_access"] is True
        assert row["is_dsl"] is True

    def test_make_bank_staff(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["oak"])

        MemberService.update_role(company_ctx, MemberRoleUpdateRequest(user_id=user, role="STAFF", bank=True))

        assert fake_db.homes_of(user) == set()
        assert fake_db.is_bank(user, org["acme"])
        assert fake_db.company_row(user, org["acme"])["has_company_access"] is False

    def test_make_home_staff_from_bank(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_bank_member(user, org["acme"])

        MemberService.update_role(
            company_ctx, MemberRoleUpdateRequest(user_id=user, role="STAFF", home_id=org["oak"])
        )

        assert fake_db.homes_of(user, role="STAFF") == {org["oak"]}
        assert not fake_db.is_bank(user, org["acme"])

    def test_make_home_staff_needs_home(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"])
        with pytest.raises(BadRequestError, match="home_id required for Staff"):
            MemberService.update_role(company_ctx, MemberRoleUpdateRequest(user_id=user, role="STAFF"))

    def test_make_manager_from_staff(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"])

        MemberService.update_role(
            company_ctx, MemberRoleUpdateRequest(user_id=user, role="MANAGER", home_ids=[org["rose"], org["oak"]])
        )

        assert fake_db.homes_of(user, role="MANAGER") == {org["rose"], org["oak"]}
        assert fake_db.homes_of(user, role="STAFF") == set()

    def test_bank_staff_cannot_become_manager(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_bank_member(user, org["acme"])

        with pytest.raises(BadRequestError, match="User is bank staff"):
            MemberService.update_role(
                company_ctx, MemberRoleUpdateRequest(user_id=user, role="MANAGER", home_ids=[org["rose"]])
            )

    def test_manager_homes_outside_scope(self, fake_db, org, company_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"])
        with pytest.raises(ForbiddenError, match="outside your scope"):
            MemberService.update_role(
                company_ctx, MemberRoleUpdateRequest(user_id=user, role="MANAGER", home_ids=[org["elm"]])
            )

    def test_manager_promotes_own_staff(self, fake_db, org, manager_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"])

        MemberService.update_role(
            manager_ctx, MemberRoleUpdateRequest(user_id=user, role="MANAGER", home_ids=[org["rose"]])
        )

        assert fake_db.homes_of(user, role="MANAGER") == {org["rose"]}

    @pytest.mark.parametrize("body,message", [
        ({"role": "COMPANY"}, "Only Company can set COMPANY access"),
        ({"role": "STAFF", "bank": True}, "Only Company can set Bank staff"),
    ])
    def test_manager_company_only_moves(self, fake_db, org, manager_ctx, body, message):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"])
        with pytest.raises(ForbiddenError, match=message):
            MemberService.update_role(manager_ctx, MemberRoleUpdateRequest(user_id=user, **body))


# =============================================================================
# update_profile
# =============================================================================

class TestUpdateProfile:

    def test_company_updates_anyone_in_company(self, fake_db, org, company_ctx):
        user = fake_db.add_user(full_name="Old")
        fake_db.add_bank_member(user, org["acme"])

        MemberService.update_profile(company_ctx, MemberProfileUpdateRequest(
            user_id=user, full_name="New", email="  moved@example.com "
        ))

        assert fake_db.profile(user)["full_name"] == "New"
        assert fake_db.auth_user(user)["email"] == "moved@example.com"

    def test_manager_updates_own_staff(self, fake_db, org, manager_ctx):
        user = fake_db.add_user(full_name="Old")
        fake_db.add_home_member(user, org["rose"])

        MemberService.update_profile(manager_ctx, MemberProfileUpdateRequest(user_id=user, full_name=""))

        assert fake_db.profile(user)["full_name"] == ""

    def test_manager_cannot_edit_co_manager(self, fake_db, org, manager_ctx):
        user = fake_db.add_user()
        fake_db.add_home_member(user, org["rose"], role="MANAGER")

        with pytest.raises(ForbiddenError):
            MemberService.update_profile(manager_ctx, MemberProfileUpdateRequest(user_id=user, full_name="X"))


# =============================================================================
# list_members
# =============================================================================

class TestListMembers:

    def test_company_people_page(self, fake_db, org, company_ctx):
        manager = fake_db.add_user(email="m@example.com", full_name="Mia Manager")
        fake_db.add_home_member(manager, org["rose"], role="MANAGER")
        fake_db.add_home_member(manager, org["oak"], role="MANAGER")
        staff = fake_db.add_user(email="s@example.com", full_name="Sam Staff")
        fake_db.add_home_member(staff, org["oak"], role="STAFF")
        fake_db.add_company_member(staff, org["acme"], is_dsl=True)
        bank = fake_db.add_user(email="b@example.com", full_name="Bo Bank")
        fake_db.add_bank_member(bank, org["acme"])
        outsider = fake_db.add_user()
        fake_db.add_home_member(outsider, org["elm"])

        members = {m.id: m for m in MemberService.list_members(company_ctx)}

        assert outsider not in members
        assert company_ctx.user_id in members
        assert members[company_ctx.user_id].roles.company is True

        mia = members[manager]
        assert mia.email == "m@example.com"
        assert sorted(h.name for h in mia.roles.manager_homes) == ["Oak Lodge", "Rose House"]
        assert mia.roles.staff_home is None

        sam = members[staff]
        assert sam.roles.staff_home.name == "Oak Lodge"
        assert sam.roles.dsl is True
        assert sam.roles.company is False

        assert members[bank].roles.bank is True

    def test_manager_sees_only_flags_of_homes(self, fake_db, org, manager_ctx):
        staff = fake_db.add_user()
        fake_db.add_home_member(staff, org["rose"])
        fake_db.add_company_member(staff, org["acme"], is_dsl=True)

        members = {m.id: m for m in MemberService.list_members(manager_ctx)}

        assert set(members) == {manager_ctx.user_id, staff}
        assert members[staff].roles.dsl is False
        assert members[staff].roles.staff_home.id == org["rose"]

    def test_company_without_homes(self, fake_db, make_ctx):
        company = fake_db.add_company("Empty Ltd")
        caller = fake_db.add_user()
        fake_db.add_company_member(caller, company, has_company_access=True)
        ctx = make_ctx(AppLevel.COMPANY, user_id=caller, company_scope=company)

        members = MemberService.list_members(ctx)

        assert [m.id for m in members] == [caller]
        assert members[0].roles.manager_homes == []
