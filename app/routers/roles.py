# =============================================================================
# app/routers/roles.py - Role Enumerations and Pre-Validation
# =============================================================================
# Read-only helpers for the assignment UI: the enum values defined in the
# database and a dry run of an assignment before it is applied.
# =============================================================================

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.dependencies import RequesterDep
from app.exceptions import BadRequestError, DatabaseError
from core.models.assignment import EnumsResponse, ValidationResult
from core.services.assignment_service import AssignmentService

router = APIRouter()


@router.get("/enums", response_model=EnumsResponse)
async def list_enums(requester: RequesterDep):
    """Company positions, staff subroles and manager subroles."""
    return EnumsResponse(**AssignmentService.list_enums())


@router.post("/validate")
async def validate_assignment(request: Request, requester: RequesterDep):
    """
    Ask the database whether an assignment would be accepted.

    The body is read raw so that every refusal, including an unknown or
    missing "type", answers with the same {ok, reason} shape.

    Returns:
        The validation procedure's verdict, e.g. {"ok": false, "reason": "..."}
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        check = AssignmentService.parse_check(payload)
        return AssignmentService.validate(check)
    except (BadRequestError, DatabaseError) as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ValidationResult(ok=False, reason=e.message).model_dump(),
        )
