# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key (requests keep RLS intact)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret; empty means HS256 tokens are refused"
    )

    AUTH_COOKIE_NAME: str = Field(
        default="sb-access-token",
        description="Cookie holding the access token when no bearer header is sent"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, debug routes)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    SITE_URL: str = Field(
        default="http://localhost:3000",
        description="Public site URL, used for the logout redirect"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # People Administration
    # -------------------------------------------------------------------------

    MIN_PASSWORD_LENGTH: int = Field(
        default=6,
        ge=1,
        le=128,
        description="Shorter admin-supplied passwords are replaced by a random one"
    )

    # -------------------------------------------------------------------------
    # Billing
    # -------------------------------------------------------------------------

    BILLING_WEBHOOK_SECRET: str = Field(
        default="",
        description="HMAC secret for billing webhooks (empty disables the check)"
    )

    # -------------------------------------------------------------------------
    # Notifications / Reminders
    # -------------------------------------------------------------------------

    REMINDER_TIMEZONE: str = Field(
        default="Europe/London",
        description="Timezone used to compute the reminder run date"
    )

    REMINDER_HOUR: int = Field(
        default=7,
        ge=0,
        le=23,
        description="Hour of day (in REMINDER_TIMEZONE) the reminder job runs"
    )

    # -------------------------------------------------------------------------
    # Theme
    # -------------------------------------------------------------------------

    THEME_COOKIE_MAX_AGE: int = Field(
        default=60 * 60 * 24 * 365,
        ge=0,
        description="Lifetime of the theme cookie in seconds"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist (production sets env vars directly)
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://hub.example.com"
            -> ["http://localhost:3000", "https://hub.example.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def login_url(self) -> str:
        """Where the browser lands after logging out."""
        return f"{self.SITE_URL.rstrip('/')}/auth/login"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
