# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health       -> process is up, plus the deployment's reminder schedule
# /health/ready -> Supabase (service role) and the reminder broker respond
# /health/live  -> process liveness for container restarts
# =============================================================================

import logging

import redis
from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str
    reminder_schedule: str


class ChecksResponse(BaseModel):
    """Outcome per dependency: "healthy" or "unhealthy: <reason>"."""
    database: str
    broker: str


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _failure(e: Exception) -> str:
    return f"unhealthy: {str(e)[:50]}"


def check_database() -> str:
    """Read one company id through the service-role client."""
    try:
        SupabaseClient.get_client().table("companies").select("id").limit(1).execute()
        return "healthy"
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        return _failure(e)


def check_broker() -> str:
    """PING the Redis instance the reminder worker consumes from."""
    try:
        redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
        return "healthy"
    except redis.RedisError as e:
        logger.warning(f"Readiness: broker check failed: {e}")
        return _failure(e)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Always healthy while the process serves requests."""
    return HealthResponse(
        status="healthy",
        timestamp=utc_now().isoformat(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
        reminder_schedule=f"{settings.REMINDER_HOUR:02d}:00 {settings.REMINDER_TIMEZONE}",
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    "ready" when both Supabase and the broker answer, otherwise "degraded".

    Always 200; the per-dependency detail is in `checks`.
    """
    checks = ChecksResponse(database=check_database(), broker=check_broker())
    ready = checks.database == "healthy" and checks.broker == "healthy"
    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=utc_now().isoformat(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(status="alive", timestamp=utc_now().isoformat())
