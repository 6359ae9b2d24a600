# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Small helpers used across services.
# =============================================================================

from datetime import date, datetime, timezone
from typing import Any, Iterable
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        user_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        user_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Collection Utilities
# =============================================================================

def unique(values: Iterable[Any]) -> list[Any]:
    """
    De-duplicate while keeping first-seen order, dropping falsy values.

    Example:
        unique(["a", None, "b", "a", ""])  # ["a", "b"]
    """
    seen: set[Any] = set()
    result = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def column(rows: Iterable[dict[str, Any]], key: str) -> list[Any]:
    """Pluck one key from a list of rows, de-duplicated."""
    return unique(row.get(key) for row in rows)


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def parse_iso_date(value: str | date | None) -> date | None:
    """
    Parse a 'YYYY-MM-DD' date (DATE columns), tolerating timestamps.

    Returns None for empty or malformed input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
