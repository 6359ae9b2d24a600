# =============================================================================
# core/models/levels.py - Levels, Roles and Positions
# =============================================================================
# The permission hierarchy is Admin -> Company -> Manager -> Staff.
#
# - AppLevel: effective app-wide level resolved by get_effective_level()
# - HomeRole: role column of home_memberships
# - StaffSubrole / ManagerSubrole: sub-positions inside a home
# - HomePosition: the single "position" value the UI sends, mapped onto
#   (role, staff_subrole, manager_subrole)
# =============================================================================

from enum import Enum


class AppLevel(str, Enum):
    """
    Effective app level of a user.

    The numeric prefix is the rank: lower means more privileged.
    """
    ADMIN = "1_ADMIN"
    COMPANY = "2_COMPANY"
    MANAGER = "3_MANAGER"
    STAFF = "4_STAFF"

    @property
    def rank(self) -> int:
        """1 for admins up to 4 for staff."""
        return int(self.value.split("_", 1)[0])

    def outranks(self, other: "AppLevel") -> bool:
        """True when this level is strictly more privileged than `other`."""
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: str | None) -> "AppLevel | None":
        """Case-insensitive lookup; None for unknown values."""
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class HomeRole(str, Enum):
    """Role stored on a home membership row."""
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class StaffSubrole(str, Enum):
    RESIDENTIAL = "RESIDENTIAL"
    TEAM_LEADER = "TEAM_LEADER"


class ManagerSubrole(str, Enum):
    DEPUTY_MANAGER = "DEPUTY_MANAGER"
    MANAGER = "MANAGER"


class HomePosition(str, Enum):
    """
    Position inside a home as chosen in the UI.

    Flow: STAFF <-> TEAM_LEADER <-> DEPUTY_MANAGER <-> MANAGER
    """
    STAFF = "STAFF"
    TEAM_LEADER = "TEAM_LEADER"
    DEPUTY_MANAGER = "DEPUTY_MANAGER"
    MANAGER = "MANAGER"

    def membership_patch(self) -> dict[str, str | None]:
        """Columns to write on home_memberships for this position."""
        return _POSITION_PATCHES[self]


_POSITION_PATCHES: dict[HomePosition, dict[str, str | None]] = {
    HomePosition.STAFF: {
        "role": HomeRole.STAFF.value,
        "staff_subrole": StaffSubrole.RESIDENTIAL.value,
        "manager_subrole": None,
    },
    HomePosition.TEAM_LEADER: {
        "role": HomeRole.STAFF.value,
        "staff_subrole": StaffSubrole.TEAM_LEADER.value,
        "manager_subrole": None,
    },
    HomePosition.DEPUTY_MANAGER: {
        "role": HomeRole.MANAGER.value,
        "staff_subrole": None,
        "manager_subrole": ManagerSubrole.DEPUTY_MANAGER.value,
    },
    HomePosition.MANAGER: {
        "role": HomeRole.MANAGER.value,
        "staff_subrole": None,
        "manager_subrole": ManagerSubrole.MANAGER.value,
    },
}


# Company-level position that places a user in the bank pool instead of a home
BANK_POSITION = "BANK"


def map_manager_subrole(subrole: str | None) -> str | None:
    """
    Map a UI manager subrole onto the stored value.

    "DEPUTY" -> DEPUTY_MANAGER, any other value -> MANAGER, empty -> None.
    """
    if not subrole:
        return None
    if str(subrole).strip().upper() == "DEPUTY":
        return ManagerSubrole.DEPUTY_MANAGER.value
    return ManagerSubrole.MANAGER.value


def normalize_code(value: str | None) -> str | None:
    """Upper-case an enum-like code, keeping empty values as None."""
    if value is None:
        return None
    value = str(value).strip()
    return value.upper() if value else None
