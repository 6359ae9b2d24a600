# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Swaps SupabaseClient for the in-memory FakeSupabase in every module
#   that talks to the database
# - Builds requester contexts for each app level
# =============================================================================

import os
from contextlib import ExitStack
from unittest.mock import patch

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("REMINDER_TIMEZONE", "Europe/London")

import pytest

from core.models.levels import AppLevel
from core.models.requester import RequesterContext
from tests.fakes import FakeSupabase


# Modules that import SupabaseClient by name
PATCHED_MODULES = (
    "app.auth.routes",
    "app.routers.health",
    "core.services.requester_service",
    "core.services.scope_service",
    "core.services.assignment_service",
    "core.services.org_service",
    "core.services.people_service",
    "core.services.member_service",
    "core.services.license_service",
    "core.services.billing_service",
    "core.services.notification_service",
    "core.services.theme_service",
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """In-memory database patched into every data-access module."""
    fake = FakeSupabase()
    with ExitStack() as stack:
        for module in PATCHED_MODULES:
            stack.enter_context(patch(f"{module}.SupabaseClient", fake))
        yield fake


@pytest.fixture
def make_ctx():
    """
    Factory for requester contexts.

    Usage:
        ctx = make_ctx(AppLevel.MANAGER, managed=[home_id])
    """
    def _make(
        level: AppLevel,
        user_id: str = "caller-1",
        company_scope: str | None = None,
        managed: list[str] | tuple[str, ...] = (),
    ) -> RequesterContext:
        return RequesterContext(
            user_id=user_id,
            level=level,
            email=f"{user_id}@example.com",
            access_token=f"token-{user_id}",
            company_scope=company_scope,
            managed_home_ids=tuple(managed),
        )

    return _make


@pytest.fixture
def org(fake_db):
    """
    A small organisation:

    - company "Acme Care" with homes Rose House and Oak Lodge
    - company "Birch Group" with home Elm Court
    """
    acme = fake_db.add_company("Acme Care")
    birch = fake_db.add_company("Birch Group")
    return {
        "acme": acme,
        "birch": birch,
        "rose": fake_db.add_home(acme, "Rose House"),
        "oak": fake_db.add_home(acme, "Oak Lodge"),
        "elm": fake_db.add_home(birch, "Elm Court"),
    }
