# =============================================================================
# core/services/assignment_service.py - Position and Subrole Assignment
# =============================================================================
# Admin-console assignment of company positions and home subroles.
# Scope is checked here; the actual write (and the business rules about
# which combinations are legal) is done by the admin_set_* procedures.
# =============================================================================

import logging
from typing import Any

from pydantic import ValidationError

from app.exceptions import BadRequestError, DatabaseError
from core.models.assignment import (
    CompanyPositionAssignment,
    CompanyPositionCheck,
    ManagerSubroleAssignment,
    ManagerSubroleCheck,
    StaffSubroleAssignment,
    StaffSubroleCheck,
)
from core.models.levels import map_manager_subrole, normalize_code
from core.models.requester import RequesterContext
from core.services.requester_service import (
    RequesterService,
    require_company_scope,
    require_manager_scope,
    restrict_company_positions,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

# /validate body "type" -> check model
VALIDATION_CHECKS = {
    "company_position": CompanyPositionCheck,
    "staff_subrole": StaffSubroleCheck,
    "manager_subrole": ManagerSubroleCheck,
}


def _rpc(function: str, params: dict[str, Any]) -> Any:
    """Call a procedure, surfacing its error message as a 400."""
    try:
        return SupabaseClient.call_rpc(function, params)
    except SupabaseClientError as e:
        logger.warning(f"{function} rejected {params}: {e.message}")
        raise DatabaseError(e.message, operation=function)


class AssignmentService:
    """
    Company position / staff subrole / manager subrole assignment.
    """

    @staticmethod
    def assign(
        ctx: RequesterContext,
        request: CompanyPositionAssignment | StaffSubroleAssignment | ManagerSubroleAssignment,
    ) -> None:
        """
        Apply one assignment action after checking the caller's scope.

        Raises:
            ForbiddenError: Outside the caller's scope
            DatabaseError: The procedure refused the change
        """
        if isinstance(request, CompanyPositionAssignment):
            restrict_company_positions(ctx, request.position)
            require_company_scope(ctx, request.company_id)
            _rpc("admin_set_company_position", {
                "p_user_id": request.user_id,
                "p_company_id": request.company_id,
                "p_position": normalize_code(request.position),
                "p_enable": request.enable,
            })
            logger.info(
                f"{ctx.user_id} set position {request.position} "
                f"enable={request.enable} for {request.user_id}"
            )
            return

        home_company_id = RequesterService.home_company_id(ctx, request.home_id)
        require_manager_scope(ctx, request.home_id, home_company_id)

        if isinstance(request, StaffSubroleAssignment):
            _rpc("admin_set_staff_subrole", {
                "p_user_id": request.user_id,
                "p_home_id": request.home_id,
                "p_staff_subrole": normalize_code(request.subrole),
            })
        else:
            _rpc("admin_set_manager_subrole", {
                "p_user_id": request.user_id,
                "p_home_id": request.home_id,
                "p_manager_subrole": map_manager_subrole(request.subrole),
            })
        logger.info(f"{ctx.user_id} applied {request.action} for {request.user_id} in {request.home_id}")

    @staticmethod
    def parse_check(payload: Any) -> CompanyPositionCheck | StaffSubroleCheck | ManagerSubroleCheck:
        """
        Turn a raw /validate body into a typed check.

        Raises:
            BadRequestError: Not an object, unknown "type", or mistyped fields
        """
        check_type = payload.get("type") if isinstance(payload, dict) else None
        model = VALIDATION_CHECKS.get(check_type) if isinstance(check_type, str) else None
        if model is None:
            raise BadRequestError("Unknown validation type")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.debug(f"Rejected {check_type} check: {e.errors()}")
            raise BadRequestError("Invalid validation request")

    @staticmethod
    def validate(
        request: CompanyPositionCheck | StaffSubroleCheck | ManagerSubroleCheck,
    ) -> dict[str, Any]:
        """
        Dry-run an assignment through the validate_* procedures.

        Returns:
            The procedure's first row, or {"ok": True} when it returns nothing

        Raises:
            BadRequestError: Required fields missing
            DatabaseError: The procedure itself failed
        """
        if isinstance(request, CompanyPositionCheck):
            if not (request.user_id and request.company_id and request.position):
                raise BadRequestError("Missing user/company/position")
            data = _rpc("validate_company_position_assignment", {
                "p_user_id": request.user_id,
                "p_company_id": request.company_id,
                "p_position": normalize_code(request.position),
            })
        elif isinstance(request, StaffSubroleCheck):
            if not (request.user_id and request.home_id and request.subrole):
                raise BadRequestError("Missing user/home/subrole")
            data = _rpc("validate_staff_subrole_assignment", {
                "p_user_id": request.user_id,
                "p_home_id": request.home_id,
                "p_staff_subrole": normalize_code(request.subrole),
            })
        else:
            if not (request.user_id and request.home_id and request.subrole):
                raise BadRequestError("Missing user/home/subrole")
            data = _rpc("validate_manager_subrole_assignment", {
                "p_user_id": request.user_id,
                "p_home_id": request.home_id,
                "p_manager_subrole": map_manager_subrole(request.subrole),
            })

        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else {"ok": True}

    @staticmethod
    def list_enums() -> dict[str, list]:
        """Company positions and home subroles defined in the database."""
        return {
            "company_positions": _rpc("list_company_positions", {}) or [],
            "staff_subroles": _rpc("list_staff_subroles", {}) or [],
            "manager_subroles": _rpc("list_manager_subroles", {}) or [],
        }
