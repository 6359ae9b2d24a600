# =============================================================================
# core/services/billing_service.py - Billing Webhook Handling
# =============================================================================
# The payment processor posts events; a few of them move the licences of
# the billing customer between states. Unknown events are acknowledged and
# ignored so the processor stops retrying them.
# =============================================================================

import hashlib
import hmac
import logging
from typing import Any

from app.config import settings
from app.exceptions import UnauthorizedError
from core.models.license import BILLING_EVENT_STATUS, LicenseStatus
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Billing-Signature"


def verify_signature(body: bytes, signature: str | None, secret: str | None = None) -> None:
    """
    Check the hex HMAC-SHA256 of the raw body.

    No secret configured means signatures are not enforced.

    Raises:
        UnauthorizedError: Signature missing or wrong
    """
    secret = settings.BILLING_WEBHOOK_SECRET if secret is None else secret
    if not secret:
        return
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    if not signature or not hmac.compare_digest(expected, signature.strip().lower()):
        logger.warning("Billing webhook rejected: bad signature")
        raise UnauthorizedError("Invalid webhook signature")


def _event_object(event: dict[str, Any]) -> dict[str, Any]:
    """The event's data.object, or {} when the payload has another shape."""
    data = event.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def billing_customer_id(event: dict[str, Any]) -> str | None:
    """Customer reference of an event: customer, client_reference_id or account."""
    obj = _event_object(event)
    return obj.get("customer") or obj.get("client_reference_id") or obj.get("account")


def status_for_event(event: dict[str, Any]) -> LicenseStatus | None:
    """Licence status an event moves to, or None when it is not actionable."""
    event_type = event.get("type")
    if not event_type or not isinstance(event_type, str):
        return None
    if event_type == "customer.subscription.updated":
        obj = _event_object(event)
        return LicenseStatus.ACTIVE if obj.get("status") == "active" else None
    return BILLING_EVENT_STATUS.get(event_type)


class BillingService:

    @staticmethod
    def handle_event(event: dict[str, Any]) -> int:
        """
        Apply one billing event.

        Returns:
            Number of licences updated
        """
        customer = billing_customer_id(event)
        status = status_for_event(event)
        if not customer or status is None:
            logger.debug(f"Ignoring billing event {event.get('type')!r}")
            return 0

        try:
            updated = SupabaseClient.update_license_status_by_billing_customer(
                customer,
                {"status": status.value, "updated_at": utc_now().isoformat()},
            )
        except SupabaseClientError as e:
            # Acknowledged anyway; the processor's retries would fail the same way
            logger.error(f"Billing event {event.get('type')} for {customer} not applied: {e.message}")
            return 0

        logger.info(f"Billing event {event.get('type')} set {updated} licence(s) of {customer} to {status.value}")
        return updated
