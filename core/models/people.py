# =============================================================================
# core/models/people.py - People and Membership Schemas
# =============================================================================
# Request bodies for the admin people routes (create-user, people/update)
# and the self-service member routes (create, update-role, update-profile,
# list), plus the member view returned by the list route.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field

from .levels import AppLevel


class MemberRole(str, Enum):
    """Roles a company/manager caller may create."""
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class TargetRole(str, Enum):
    """Roles a company/manager caller may move an existing member to."""
    MANAGER = "MANAGER"
    COMPANY = "COMPANY"
    STAFF = "STAFF"


# =============================================================================
# Admin: Create User
# =============================================================================

class CreateUserRequest(BaseModel):
    """
    Create a person from the admin console.

    Example:
        {
            "full_name": "Ada Lovelace",
            "email": "ada@example.com",
            "role": "4_STAFF",
            "home_id": "8a1c..."
        }
    """
    full_name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=3, description="Login email")
    password: str | None = Field(
        default=None,
        description="Initial password; short or missing passwords are randomised"
    )
    role: AppLevel = Field(default=AppLevel.STAFF, description="App level of the new user")
    is_admin: bool = Field(default=False)
    company_id: str | None = None
    home_id: str | None = None
    position: str | None = Field(
        default=None,
        description="e.g. BANK / RESIDENTIAL / TEAM_LEADER"
    )
    company_positions: list[str] = Field(default_factory=list)


class CreateUserResponse(BaseModel):
    ok: bool = True
    user_id: str


# =============================================================================
# Admin: Update Person
# =============================================================================

class SetHome(BaseModel):
    home_id: str = Field(..., min_length=1)
    clear_bank_for_company: str | None = None


class ClearHome(BaseModel):
    home_id: str = Field(..., min_length=1)


class SetBank(BaseModel):
    company_id: str = Field(..., min_length=1)
    home_id: str | None = None


class SetHomeRole(BaseModel):
    home_id: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1, description="STAFF | TEAM_LEADER | DEPUTY_MANAGER | MANAGER")


class SetCompany(BaseModel):
    company_id: str = Field(..., min_length=1)


class SetLevel(BaseModel):
    level: str = Field(..., min_length=1, description="1_ADMIN | 2_COMPANY | 3_MANAGER | 4_STAFF")


class PersonUpdateRequest(BaseModel):
    """
    Patch a person. Every block is optional and applied in order:
    name, credentials, company, bank, clear home, set home, home role, level.
    """
    user_id: str = Field(..., min_length=1)
    full_name: str | None = None
    email: str | None = None
    password: str | None = None
    set_company: SetCompany | None = None
    set_bank: SetBank | None = None
    clear_home: ClearHome | None = None
    set_home: SetHome | None = None
    set_home_role: SetHomeRole | None = None
    set_level: SetLevel | None = None


# =============================================================================
# Self-Service: Members
# =============================================================================

class MemberCreateRequest(BaseModel):
    """
    Create a member inside the caller's company or managed homes.

    Managers get `home_ids`; staff get `home_id` or `bank_staff=true`.
    """
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    full_name: str | None = None
    role: MemberRole
    company_id: str | None = None
    home_id: str | None = None
    home_ids: list[str] = Field(default_factory=list)
    bank_staff: bool = False
    is_dsl: bool | None = Field(default=None, description="Designated safeguarding lead flag")


class CreatedMember(BaseModel):
    id: str
    email: str
    full_name: str
    role: MemberRole


class MemberCreateResponse(BaseModel):
    ok: bool = True
    user: CreatedMember


class MemberRoleUpdateRequest(BaseModel):
    """Move an existing member to MANAGER, COMPANY or STAFF."""
    user_id: str = Field(..., min_length=1)
    role: TargetRole
    home_ids: list[str] = Field(default_factory=list)
    home_id: str | None = None
    bank: bool = False
    is_dsl: bool | None = None
    company_id: str | None = Field(
        default=None,
        description="Disambiguates which company the change applies to"
    )


class MemberProfileUpdateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    full_name: str | None = None
    email: str | None = None
    company_id: str | None = None


class HomeRef(BaseModel):
    id: str
    name: str = ""


class MemberRoles(BaseModel):
    company: bool = False
    bank: bool = False
    manager_homes: list[HomeRef] = Field(default_factory=list)
    staff_home: HomeRef | None = None
    dsl: bool = False


class MemberView(BaseModel):
    """One row of the people page."""
    id: str
    full_name: str = ""
    is_admin: bool = False
    email: str = ""
    created_at: str | None = None
    last_sign_in_at: str | None = None
    roles: MemberRoles = Field(default_factory=MemberRoles)


class MemberList(BaseModel):
    members: list[MemberView] = Field(default_factory=list)
