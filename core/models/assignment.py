# =============================================================================
# core/models/assignment.py - Role Assignment Schemas
# =============================================================================
# Bodies for POST /admin/assign and POST /validate. Both are discriminated
# unions: `action` (assign) or `type` (validate) selects the variant.
# =============================================================================

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# =============================================================================
# Assign
# =============================================================================

class CompanyPositionAssignment(BaseModel):
    """Toggle a company-level position for a user."""
    action: Literal["company_position"]
    user_id: str = Field(..., min_length=1)
    company_id: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    enable: bool = True


class StaffSubroleAssignment(BaseModel):
    """Set (or clear) a staff subrole in one home."""
    action: Literal["staff_subrole"]
    user_id: str = Field(..., min_length=1)
    home_id: str = Field(..., min_length=1)
    subrole: str | None = None


class ManagerSubroleAssignment(BaseModel):
    """Set (or clear) a manager subrole in one home; DEPUTY or MANAGER."""
    action: Literal["manager_subrole"]
    user_id: str = Field(..., min_length=1)
    home_id: str = Field(..., min_length=1)
    subrole: str | None = None


AssignRequest = Annotated[
    Union[CompanyPositionAssignment, StaffSubroleAssignment, ManagerSubroleAssignment],
    Field(discriminator="action"),
]


# =============================================================================
# Validate
# =============================================================================

class CompanyPositionCheck(BaseModel):
    type: Literal["company_position"]
    user_id: str | None = None
    company_id: str | None = None
    position: str | None = None


class StaffSubroleCheck(BaseModel):
    type: Literal["staff_subrole"]
    user_id: str | None = None
    home_id: str | None = None
    subrole: str | None = None


class ManagerSubroleCheck(BaseModel):
    type: Literal["manager_subrole"]
    user_id: str | None = None
    home_id: str | None = None
    subrole: str | None = None


class ValidationResult(BaseModel):
    """Outcome of a pre-assignment validation."""
    ok: bool
    reason: str | None = None


class EnumsResponse(BaseModel):
    company_positions: list = Field(default_factory=list)
    staff_subroles: list = Field(default_factory=list)
    manager_subroles: list = Field(default_factory=list)
