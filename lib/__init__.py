# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - utils.py: Shared utilities (UUID normalization, de-duplication, dates)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import column, normalize_uuid, parse_iso_date, unique, utc_now

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "column",
    "normalize_uuid",
    "parse_iso_date",
    "unique",
    "utc_now",
]
