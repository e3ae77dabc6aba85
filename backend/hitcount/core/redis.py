"""
Redis connection management for the session store and the hit queue.
"""
from typing import Optional

from arq.connections import RedisSettings
from fastapi import Request
from redis.asyncio import Redis

from hitcount.core.config import settings
from hitcount.core.logging import get_logger

logger = get_logger(__name__)


def get_redis_settings() -> RedisSettings:
    """Get arq Redis connection settings from config."""
    redis_url = str(settings.redis_url) if settings.redis_url else "redis://localhost:6379"
    return RedisSettings.from_dsn(redis_url)


def create_redis() -> Optional[Redis]:
    """Create the shared Redis client, or None when Redis is not configured."""
    if not settings.redis_url:
        logger.warning("Redis not configured - sessions and queue disabled")
        return None
    return Redis.from_url(str(settings.redis_url), decode_responses=True)


def get_redis(request: Request) -> Optional[Redis]:
    """Dependency returning the application's Redis client."""
    return getattr(request.app.state, "redis", None)
