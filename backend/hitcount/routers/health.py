"""
Health check and monitoring endpoints.
"""
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy import text

from hitcount.core.config import settings
from hitcount.core.database import DbSession
from hitcount.core.redis import get_redis

router = APIRouter(tags=["health"])


@router.get("/")
async def root() -> dict:
    """API root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@router.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }


@router.get("/health/ready")
async def readiness_check(
    session: DbSession,
    redis: Annotated[Optional[Redis], Depends(get_redis)],
) -> dict:
    """
    Readiness probe - checks if the service can handle requests.
    Verifies database and Redis connectivity.
    """
    # Check database
    try:
        await session.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"

    # Check Redis (optional; sessions degrade without it)
    if redis is None:
        redis_status = "not_configured"
    else:
        try:
            await redis.ping()
            redis_status = "connected"
        except Exception as e:
            redis_status = f"error: {str(e)}"

    is_ready = db_status == "connected" and redis_status in ("connected", "not_configured")

    return {
        "status": "ready" if is_ready else "not_ready",
        "checks": {
            "database": db_status,
            "redis": redis_status,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/live")
async def liveness_check() -> dict:
    """
    Liveness probe - checks if the service is alive.
    Simple check that doesn't verify dependencies.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
