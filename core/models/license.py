# =============================================================================
# core/models/license.py - Licensing and Billing Schemas
# =============================================================================
# A company licence gates access to the app:
# - ACTIVE / PAST_DUE: allowed until valid_until + grace_period_days
# - SUSPENDED / CANCELLED: blocked
#
# Billing events from the payment processor move licences between states.
# =============================================================================

from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class LicenseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"

    @property
    def allows_access(self) -> bool:
        """Statuses that keep the app usable until expiry + grace."""
        return self in (LicenseStatus.ACTIVE, LicenseStatus.PAST_DUE)


class LicenseReason(str, Enum):
    """Why the licence gate reached its decision."""
    ADMIN_BYPASS = "admin_bypass"
    NO_COMPANY_RESOLVED = "no_company_resolved"
    LICENSE_QUERY_ERROR = "license_query_error"
    NO_ROW = "no_row"
    STATUS_ALLOWS_NO_EXPIRY = "status_allows_no_expiry"
    IN_GRACE_OR_ACTIVE = "in_grace_or_active"
    ALL_COMPANIES_BLOCKED = "all_companies_blocked"


class LicenseDecision(BaseModel):
    """Response of GET /license/status."""
    status: LicenseStatus
    reason: LicenseReason | None = None
    companyId: str | None = None

    model_config = {"use_enum_values": True}


class License(BaseModel):
    """One row of the admin licence table."""
    company_id: str
    company_name: str | None = None
    status: LicenseStatus | None = None
    plan_code: str | None = None
    seats: int | None = None
    valid_until: str | None = None
    grace_period_days: int | None = None
    billing_customer_id: str | None = None
    updated_at: str | None = None


class LicenseList(BaseModel):
    items: list[License] = Field(default_factory=list)


class LicenseUpdateRequest(BaseModel):
    """
    Partial licence update. Fields absent from the body are left untouched;
    `valid_until` and `billing_customer_id` may be set to null explicitly.
    """
    company_id: UUID
    status: LicenseStatus | None = None
    plan_code: str | None = Field(default=None, min_length=1, max_length=128)
    seats: int | None = Field(default=None, ge=1, le=100000)
    valid_until: date | None = None
    grace_period_days: int | None = Field(default=None, ge=0, le=3650)
    billing_customer_id: str | None = Field(default=None, min_length=1, max_length=255)

    def to_patch(self) -> dict[str, Any]:
        """Columns to write, honouring explicit nulls for the nullable ones."""
        sent = self.model_fields_set
        patch: dict[str, Any] = {}
        if self.status is not None:
            patch["status"] = self.status.value
        if self.plan_code:
            patch["plan_code"] = self.plan_code
        if self.seats is not None:
            patch["seats"] = self.seats
        if "valid_until" in sent:
            patch["valid_until"] = self.valid_until.isoformat() if self.valid_until else None
        if self.grace_period_days is not None:
            patch["grace_period_days"] = self.grace_period_days
        if "billing_customer_id" in sent:
            patch["billing_customer_id"] = self.billing_customer_id
        return patch


class LicenseUpdateResponse(BaseModel):
    ok: bool = True
    license: dict[str, Any]


# Billing processor events that change a licence
BILLING_EVENT_STATUS: dict[str, LicenseStatus] = {
    "invoice.payment_failed": LicenseStatus.PAST_DUE,
    "customer.subscription.deleted": LicenseStatus.CANCELLED,
    "charge.dispute.funds_withdrawn": LicenseStatus.SUSPENDED,
}
