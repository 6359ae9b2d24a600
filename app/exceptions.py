# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors tell the caller HOW to fix the request, not just WHAT failed.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class HomeCareException(Exception):
    """
    Base exception for the HomeCare Hub API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "HOMECARE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Authentication / Authorization
# =============================================================================

class UnauthorizedError(HomeCareException):
    """Raised when the caller is not signed in or the token is invalid."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Sign in again and send the access token as a Bearer header",
        )


class ForbiddenError(HomeCareException):
    """Raised when the caller's level or scope does not cover the request."""

    def __init__(self, message: str = "Forbidden.", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            details=details,
        )


class LevelResolutionError(HomeCareException):
    """Raised when the caller's effective level cannot be resolved."""

    def __init__(self, error: str):
        super().__init__(
            message="Failed to resolve level",
            code="LEVEL_RESOLUTION_FAILED",
            status_code=500,
            suggestion="Check that the get_effective_level function is deployed",
            details={"error": error},
        )


# =============================================================================
# Request Exceptions
# =============================================================================

class BadRequestError(HomeCareException):
    """Raised when the request is well-formed but cannot be applied."""

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


class NotFoundError(HomeCareException):
    """Raised when a referenced row does not exist (or is not visible)."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            code=f"{resource.upper()}_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {resource.lower()} id is correct",
            details={"id": resource_id},
        )


class ConflictError(HomeCareException):
    """Raised when the row being created already exists."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            suggestion=suggestion,
        )


class DatabaseError(HomeCareException):
    """
    Raised when a database call returns an error.

    The database message is surfaced to the caller; constraint and RLS
    failures are the usual cause, so this maps to 400.
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=400,
            details={"operation": operation} if operation else None,
        )


class UpstreamAuthError(HomeCareException):
    """Raised when the auth admin API refuses to create a user."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="AUTH_ADMIN_ERROR",
            status_code=500,
            suggestion="Check that the email is not already registered",
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def homecare_exception_handler(
    request: Request,
    exc: HomeCareException
) -> JSONResponse:
    """
    Convert HomeCareException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Missing or malformed body fields are reported as 400, matching the
    hand-written checks of the route handlers.
    """
    errors = [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )
