# =============================================================================
# app/routers/admin.py - Admin Console Endpoints
# =============================================================================
# Org structure, people and licences, as used by the admin console.
# Admins see everything; company and manager callers are narrowed to their
# company / managed homes by the service guards.
# =============================================================================

import logging

from fastapi import APIRouter, Body
from pydantic import BaseModel

from app.dependencies import RequesterDep
from core.models.assignment import AssignRequest
from core.models.license import License, LicenseList, LicenseUpdateRequest, LicenseUpdateResponse
from core.models.org import (
    CompanyCreateRequest,
    CompanyRenameRequest,
    HomeCreateRequest,
    HomeRenameRequest,
)
from core.models.people import CreateUserRequest, CreateUserResponse, PersonUpdateRequest
from core.services.assignment_service import AssignmentService
from core.services.license_service import LicenseService
from core.services.org_service import OrgService
from core.services.people_service import PeopleService

logger = logging.getLogger(__name__)

router = APIRouter()


class OkResponse(BaseModel):
    ok: bool = True


# =============================================================================
# Assignment
# =============================================================================

@router.post("/assign", response_model=OkResponse)
async def assign(
    requester: RequesterDep,
    request: AssignRequest = Body(...),
):
    """
    Apply a company position, staff subrole or manager subrole.

    The `action` field selects the variant; the database procedures decide
    whether the combination is legal.
    """
    AssignmentService.assign(requester, request)
    return OkResponse()


# =============================================================================
# Companies and Homes
# =============================================================================

@router.post("/companies", response_model=OkResponse)
async def create_company(requester: RequesterDep, request: CompanyCreateRequest):
    """Create a company. Admin only."""
    OrgService.create_company(requester, request.name)
    return OkResponse()


@router.patch("/companies", response_model=OkResponse)
async def rename_company(requester: RequesterDep, request: CompanyRenameRequest):
    """Rename a company. Admin only."""
    OrgService.rename_company(requester, request.company_id, request.name)
    return OkResponse()


@router.post("/homes", response_model=OkResponse)
async def create_home(requester: RequesterDep, request: HomeCreateRequest):
    """Create a home; company callers only inside their own company."""
    OrgService.create_home(requester, request.company_id, request.name)
    return OkResponse()


@router.patch("/homes", response_model=OkResponse)
async def rename_home(requester: RequesterDep, request: HomeRenameRequest):
    """Rename a home; company callers only inside their own company."""
    OrgService.rename_home(requester, request.home_id, request.name)
    return OkResponse()


# =============================================================================
# People
# =============================================================================

@router.post("/create-user", response_model=CreateUserResponse)
async def create_user(requester: RequesterDep, request: CreateUserRequest):
    """
    Create a login plus profile and memberships.

    Short or missing passwords are replaced with a random one; the person
    then signs in through a password reset.
    """
    user_id = PeopleService.create_user(requester, request)
    return CreateUserResponse(user_id=user_id)


@router.patch("/people/update", response_model=OkResponse)
async def update_person(requester: RequesterDep, request: PersonUpdateRequest):
    """
    Patch a person's name, login, company, bank, home and level.

    Blocks are applied in order; a refused block stops the request but
    earlier blocks stay applied.
    """
    PeopleService.update_person(requester, request)
    return OkResponse()


# =============================================================================
# Licences
# =============================================================================

@router.get("/licenses/list", response_model=LicenseList)
async def list_licenses(requester: RequesterDep):
    """Every company licence, ordered by company name. Admin only."""
    rows = LicenseService.list_licenses(requester)
    return LicenseList(items=[License(**row) for row in rows])


@router.post("/licenses/update", response_model=LicenseUpdateResponse)
async def update_license(requester: RequesterDep, request: LicenseUpdateRequest):
    """Partial licence update. Admin only."""
    row = LicenseService.update_license(requester, request)
    return LicenseUpdateResponse(license=row)
