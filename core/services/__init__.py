# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .assignment_service import AssignmentService
from .billing_service import BillingService
from .license_service import LicenseService, evaluate_license_status
from .member_service import MemberService
from .notification_service import NotificationService
from .org_service import OrgService
from .people_service import PeopleService
from .requester_service import RequesterService
from .scope_service import ScopeService
from .theme_service import ThemeService

__all__ = [
    "AssignmentService",
    "BillingService",
    "LicenseService",
    "evaluate_license_status",
    "MemberService",
    "NotificationService",
    "OrgService",
    "PeopleService",
    "RequesterService",
    "ScopeService",
    "ThemeService",
]
