# =============================================================================
# app/routers/licenses.py - Licence Gate and Billing Webhook
# =============================================================================
# GET  /license/status   -> may the caller use the app?
# POST /billing/webhook  -> payment processor events
# =============================================================================

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from app.auth import AuthUser, get_current_user_optional
from core.models.license import LicenseDecision, LicenseStatus
from core.services.billing_service import SIGNATURE_HEADER, BillingService, verify_signature
from core.services.license_service import LicenseService
from core.services.requester_service import RequesterService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/license/status", response_model=LicenseDecision, response_model_exclude_none=True)
async def license_status(
    companyId: str | None = Query(default=None, description="Check one company only"),
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    Licence decision for the signed-in user.

    Signed-out callers get 401 with status SUSPENDED so the UI gate stays
    closed.
    """
    if user is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"status": LicenseStatus.SUSPENDED.value},
        )

    requester = RequesterService.build_context(
        user_id=str(user.id),
        access_token=user.access_token,
        email=user.email,
    )
    return LicenseService.status_for(requester, company_id=companyId)


@router.post("/billing/webhook")
async def billing_webhook(request: Request):
    """
    Receive a billing event.

    The body is checked against X-Billing-Signature when a webhook secret
    is configured. Events that change nothing are still acknowledged.
    """
    body = await request.body()
    verify_signature(body, request.headers.get(SIGNATURE_HEADER))

    try:
        event = json.loads(body or b"null")
    except ValueError:
        event = None
    if not isinstance(event, dict):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": "invalid JSON"},
        )

    BillingService.handle_event(event)
    return {"ok": True}
