# =============================================================================
# core/models/requester.py - Request-Scoped Authorization Context
# =============================================================================
# RequesterContext is built once per request from the verified token and the
# effective level; Scope is the narrower view used by the self-service
# routes once a single company (or the manager's homes) has been selected.
# =============================================================================

from dataclasses import dataclass, field

from .levels import AppLevel


@dataclass(frozen=True)
class RequesterContext:
    """
    Who is calling and what they may touch.

    Attributes:
        user_id: Caller's auth user id
        email: Caller's email (from the token)
        access_token: The caller's JWT, forwarded for RLS-bound calls
        level: Effective app level
        company_scope: First company membership (None for admins)
        managed_home_ids: Homes the caller manages (managers only)
    """
    user_id: str
    level: AppLevel
    email: str | None = None
    access_token: str | None = field(default=None, repr=False)
    company_scope: str | None = None
    managed_home_ids: tuple[str, ...] = ()

    @property
    def is_admin(self) -> bool:
        return self.level == AppLevel.ADMIN

    @property
    def can_company(self) -> bool:
        return self.is_admin or self.level == AppLevel.COMPANY

    @property
    def can_manager(self) -> bool:
        return self.can_company or self.level == AppLevel.MANAGER

    @property
    def viewer_level(self) -> AppLevel:
        """Capped level used when comparing ranks."""
        if self.is_admin:
            return AppLevel.ADMIN
        if self.can_company:
            return AppLevel.COMPANY
        if self.level == AppLevel.MANAGER:
            return AppLevel.MANAGER
        return AppLevel.STAFF

    def manages(self, home_id: str | None) -> bool:
        """True when the caller is a manager of this home."""
        return bool(home_id) and home_id in self.managed_home_ids

    def is_self(self, user_id: str | None) -> bool:
        return bool(user_id) and str(user_id) == str(self.user_id)


@dataclass
class Scope:
    """
    Resolved self-service scope.

    Company callers get every home of one company; managers get the homes
    they hold a MANAGER membership in.
    """
    level: AppLevel
    allowed_home_ids: list[str] = field(default_factory=list)
    company_id: str | None = None

    @property
    def is_company(self) -> bool:
        return self.level == AppLevel.COMPANY

    def allows_home(self, home_id: str | None) -> bool:
        return bool(home_id) and home_id in self.allowed_home_ids

    def disallowed(self, home_ids: list[str]) -> list[str]:
        """Homes from `home_ids` that fall outside this scope."""
        return [h for h in home_ids if h not in self.allowed_home_ids]
