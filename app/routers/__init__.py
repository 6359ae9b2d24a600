# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - admin.py: Admin console (assign, companies, homes, people, licences)
# - roles.py: Role enumerations and assignment pre-validation
# - self_service.py: Company and manager consoles (homes, members)
# - licenses.py: Licence gate and billing webhook
# - notifications.py: Notification bell and reminders
# - theme.py: Theme preference
# - debug.py: whoami (mounted only in DEBUG)
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import admin
from . import roles
from . import self_service
from . import licenses
from . import notifications
from . import theme
from . import debug

__all__ = [
    "health",
    "admin",
    "roles",
    "self_service",
    "licenses",
    "notifications",
    "theme",
    "debug",
]
