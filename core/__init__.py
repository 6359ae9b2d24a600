# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas and the level/role enums
# - services/: Scope resolution, guards and the operations behind each route
#
# Services raise HomeCareException subclasses; the FastAPI layer only maps
# them to responses. Celery tasks call the same services.
# =============================================================================
