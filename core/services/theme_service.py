# =============================================================================
# core/services/theme_service.py - Theme Preference
# =============================================================================
# ORBIT (dark) or LIGHT. Signed-in users keep an account-level preference in
# user_preferences; the "orbit" cookie is the fallback for everyone else.
# =============================================================================

import logging

from core.models.notification import ThemeMode
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

THEME_COOKIE = "orbit"


class ThemeService:

    @staticmethod
    def resolve(user_id: str | None, orbit_cookie: str | None) -> ThemeMode:
        """Account preference when valid, else the cookie, else LIGHT."""
        if user_id:
            try:
                stored = SupabaseClient.fetch_theme_mode(user_id)
            except SupabaseClientError as e:
                logger.warning(f"Theme preference of {user_id} unavailable: {e.message}")
                stored = None
            if stored in (ThemeMode.ORBIT.value, ThemeMode.LIGHT.value):
                return ThemeMode(stored)

        return ThemeMode.ORBIT if orbit_cookie == "1" else ThemeMode.LIGHT

    @staticmethod
    def save(user_id: str, theme: ThemeMode) -> None:
        """Persist the account-level preference; the cookie still applies on failure."""
        try:
            SupabaseClient.upsert_theme_mode(user_id, theme.value)
        except SupabaseClientError as e:
            logger.warning(f"Theme preference of {user_id} not stored: {e.message}")
