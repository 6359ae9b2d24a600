# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the HomeCare Hub API:
# - fakes.py: In-memory stand-in for the Supabase facade
# - test_models.py: Pydantic model validation
# - test_requester.py / test_scope_service.py: Levels and management scope
# - test_*_service.py: Service-layer rules (assignments, people, members, licences)
# - test_notifications.py: Notifications, reminders and theme
# - test_auth.py: Token extraction and JWT verification
# - test_api.py: Endpoint tests through the FastAPI TestClient
# - test_workers.py: Celery reminder task and beat schedule
#
# Run tests with: pytest
# =============================================================================
