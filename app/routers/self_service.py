# =============================================================================
# app/routers/self_service.py - Company and Manager Console Endpoints
# =============================================================================
# Company-level callers manage the homes and people of their company;
# managers manage the staff of the homes they run.
# =============================================================================

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from app.dependencies import RequesterDep
from core.models.org import Home, HomeCreateResponse, HomeRenameRequest, SelfHomeCreateRequest
from core.models.people import (
    MemberCreateRequest,
    MemberCreateResponse,
    MemberList,
    MemberProfileUpdateRequest,
    MemberRoleUpdateRequest,
)
from core.services.member_service import MemberService
from core.services.org_service import OrgService

router = APIRouter()


class OkResponse(BaseModel):
    ok: bool = True


# =============================================================================
# Homes
# =============================================================================

@router.post("/homes/create", response_model=HomeCreateResponse)
async def create_home(requester: RequesterDep, request: SelfHomeCreateRequest):
    """Create a home in the caller's company. Company level only."""
    home = OrgService.create_own_home(requester, request.name)
    return HomeCreateResponse(home=Home(**home))


@router.post("/homes/update", response_model=OkResponse)
async def rename_home(requester: RequesterDep, request: HomeRenameRequest):
    """Rename a home of the caller's company. Company level only."""
    OrgService.rename_own_home(requester, request.home_id, request.name)
    return OkResponse()


# =============================================================================
# Members
# =============================================================================

@router.post(
    "/members/create",
    response_model=MemberCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_member(requester: RequesterDep, request: MemberCreateRequest):
    """
    Create a manager or staff member.

    - Company callers: managers need `home_ids`; staff need `home_id`
      unless `bank_staff` is set.
    - Managers: staff only, in one of their homes.
    """
    user = MemberService.create_member(requester, request)
    return MemberCreateResponse(user=user)


@router.post("/members/update-role", response_model=OkResponse)
async def update_member_role(requester: RequesterDep, request: MemberRoleUpdateRequest):
    """Move a member to COMPANY, MANAGER or STAFF (home or bank)."""
    MemberService.update_role(requester, request)
    return OkResponse()


@router.post("/members/update-profile", response_model=OkResponse)
async def update_member_profile(requester: RequesterDep, request: MemberProfileUpdateRequest):
    """Change a member's display name and login email."""
    MemberService.update_profile(requester, request)
    return OkResponse()


@router.get("/members/list", response_model=MemberList)
async def list_members(
    requester: RequesterDep,
    company_id: str | None = Query(default=None, description="Company to list; defaults to the first"),
):
    """People in the caller's scope with their roles."""
    return MemberList(members=MemberService.list_members(requester, company_id=company_id))
