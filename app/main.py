# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the HomeCare Hub API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    HomeCareException,
    homecare_exception_handler,
    validation_exception_handler,
)
from app.routers import admin, debug, health, licenses, notifications, roles, self_service, theme
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown:
    - Startup: Log the effective configuration
    - Shutdown: Log the shutdown
    """
    # Startup
    logger.info(f"Starting HomeCare Hub API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    yield

    # Shutdown
    logger.info("Shutting down HomeCare Hub API")


# Create FastAPI application
app = FastAPI(
    title="HomeCare Hub API",
    description="""
## Staff and Home Management API

HomeCare Hub manages the companies, homes and people of residential care
providers. Every request runs as the signed-in user; permission checks
follow the level hierarchy below.

### Levels

| Level | Scope |
|-------|-------|
| **1_ADMIN** | Everything |
| **2_COMPANY** | One company and all of its homes |
| **3_MANAGER** | The homes the user manages |
| **4_STAFF** | Their own data |

### Quick Start

```bash
# Who am I?
curl http://localhost:8000/api/v1/auth/me \\
  -H "Authorization: Bearer $TOKEN"

# Create a staff member in one of my homes
curl -X POST http://localhost:8000/api/v1/self/members/create \\
  -H "Authorization: Bearer $TOKEN" \\
  -H "Content-Type: application/json" \\
  -d '{"email": "ada@example.com", "password": "s3cret!", "role": "STAFF", "home_id": "..."}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Verify tokens, current user and logout",
        },
        {
            "name": "Admin",
            "description": "Admin console: assignments, org structure, people and licences",
        },
        {
            "name": "Roles",
            "description": "Role enumerations and assignment pre-validation",
        },
        {
            "name": "Self Service",
            "description": "Company and manager consoles: homes and members",
        },
        {
            "name": "Licensing",
            "description": "Licence gate and billing webhook",
        },
        {
            "name": "Notifications",
            "description": "Notification bell and appointment reminders",
        },
        {
            "name": "Theme",
            "description": "ORBIT / LIGHT theme preference",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(HomeCareException)
async def handle_homecare_exception(request: Request, exc: HomeCareException):
    """Handle custom HomeCare exceptions."""
    return await homecare_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Admin console endpoints
app.include_router(
    admin.router,
    prefix="/api/v1/admin",
    tags=["Admin"]
)

# Enumerations and pre-validation
app.include_router(
    roles.router,
    prefix="/api/v1",
    tags=["Roles"]
)

# Company / manager console endpoints
app.include_router(
    self_service.router,
    prefix="/api/v1/self",
    tags=["Self Service"]
)

# Licence gate and billing webhook
app.include_router(
    licenses.router,
    prefix="/api/v1",
    tags=["Licensing"]
)

# Notification endpoints
app.include_router(
    notifications.router,
    prefix="/api/v1/notifications",
    tags=["Notifications"]
)

# Theme endpoints
app.include_router(
    theme.router,
    prefix="/api/v1/theme",
    tags=["Theme"]
)

# Debug endpoints (development only)
if settings.DEBUG:
    app.include_router(
        debug.router,
        prefix="/api/v1/debug",
        tags=["Debug"]
    )


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "HomeCare Hub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
