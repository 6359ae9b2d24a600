# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas and enums:
# - levels.py: App levels, home roles, subroles and positions
# - requester.py: Per-request authorization context and scope
# - assignment.py: Position/subrole assignment and validation bodies
# - org.py: Company and home bodies
# - people.py: People administration and self-service member bodies
# - license.py: Licence gate, licence admin and billing statuses
# - notification.py: Notifications, reminders and theme preference
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Levels and roles
# -----------------------------------------------------------------------------
from .levels import (
    BANK_POSITION,
    AppLevel,
    HomePosition,
    HomeRole,
    ManagerSubrole,
    StaffSubrole,
    map_manager_subrole,
    normalize_code,
)

# -----------------------------------------------------------------------------
# Requester context
# -----------------------------------------------------------------------------
from .requester import RequesterContext, Scope

# -----------------------------------------------------------------------------
# Assignment
# -----------------------------------------------------------------------------
from .assignment import (
    AssignRequest,
    CompanyPositionAssignment,
    CompanyPositionCheck,
    EnumsResponse,
    ManagerSubroleAssignment,
    ManagerSubroleCheck,
    StaffSubroleAssignment,
    StaffSubroleCheck,
    ValidationResult,
)

# -----------------------------------------------------------------------------
# Organisation
# -----------------------------------------------------------------------------
from .org import (
    CompanyCreateRequest,
    CompanyRenameRequest,
    Home,
    HomeCreateRequest,
    HomeCreateResponse,
    HomeRenameRequest,
    SelfHomeCreateRequest,
)

# -----------------------------------------------------------------------------
# People
# -----------------------------------------------------------------------------
from .people import (
    CreatedMember,
    CreateUserRequest,
    CreateUserResponse,
    MemberCreateRequest,
    MemberCreateResponse,
    MemberList,
    MemberProfileUpdateRequest,
    MemberRole,
    MemberRoleUpdateRequest,
    MemberView,
    PersonUpdateRequest,
    TargetRole,
)

# -----------------------------------------------------------------------------
# Licensing
# -----------------------------------------------------------------------------
from .license import (
    License,
    LicenseDecision,
    LicenseList,
    LicenseReason,
    LicenseStatus,
    LicenseUpdateRequest,
    LicenseUpdateResponse,
)

# -----------------------------------------------------------------------------
# Notifications and preferences
# -----------------------------------------------------------------------------
from .notification import (
    Notification,
    NotificationList,
    NotificationUpdate,
    ReminderRequest,
    ReminderResponse,
    ThemeMode,
    ThemeRequest,
    ThemeResponse,
)

__all__ = [
    # Levels
    "BANK_POSITION",
    "AppLevel",
    "HomePosition",
    "HomeRole",
    "ManagerSubrole",
    "StaffSubrole",
    "map_manager_subrole",
    "normalize_code",
    # Requester
    "RequesterContext",
    "Scope",
    # Assignment
    "AssignRequest",
    "CompanyPositionAssignment",
    "CompanyPositionCheck",
    "EnumsResponse",
    "ManagerSubroleAssignment",
    "ManagerSubroleCheck",
    "StaffSubroleAssignment",
    "StaffSubroleCheck",
    "ValidationResult",
    # Organisation
    "CompanyCreateRequest",
    "CompanyRenameRequest",
    "Home",
    "HomeCreateRequest",
    "HomeCreateResponse",
    "HomeRenameRequest",
    "SelfHomeCreateRequest",
    # People
    "CreatedMember",
    "CreateUserRequest",
    "CreateUserResponse",
    "MemberCreateRequest",
    "MemberCreateResponse",
    "MemberList",
    "MemberProfileUpdateRequest",
    "MemberRole",
    "MemberRoleUpdateRequest",
    "MemberView",
    "PersonUpdateRequest",
    "TargetRole",
    # Licensing
    "License",
    "LicenseDecision",
    "LicenseList",
    "LicenseReason",
    "LicenseStatus",
    "LicenseUpdateRequest",
    "LicenseUpdateResponse",
    # Notifications
    "Notification",
    "NotificationList",
    "NotificationUpdate",
    "ReminderRequest",
    "ReminderResponse",
    "ThemeMode",
    "ThemeRequest",
    "ThemeResponse",
]
