"""
ARQ Job Queue Service - Async Redis-based job queue for background work.

Provides:
- Hit processing jobs handed off by the count endpoint
- The daily retention/vacuum cron job
- An in-process fallback when no queue is available
"""
from typing import Any, Optional

from arq import create_pool
from arq.connections import ArqRedis
from arq.cron import cron
from fastapi import BackgroundTasks
from redis.asyncio import Redis

from hitcount.core.database import SessionFactory
from hitcount.core.logging import configure_logging, get_logger
from hitcount.core.redis import get_redis_settings
from hitcount.schemas.hit import HitPayload
from hitcount.services.pipeline import process_hit
from hitcount.services.retention import run_vacuum

logger = get_logger(__name__)

PROCESS_HIT_JOB = "process_hit_job"


# ============================================
# JOB FUNCTIONS
# ============================================

async def process_hit_job(ctx: dict, payload: dict[str, Any]) -> None:
    """
    Background job recording one hit.

    Args:
        ctx: ARQ context with the Redis connection
        payload: ``HitPayload`` as a JSON-compatible dict
    """
    await process_hit(HitPayload.model_validate(payload), redis=ctx["redis"])


async def vacuum_job(ctx: dict) -> dict[str, Any]:
    """Daily retention and dimension cleanup."""
    result = await run_vacuum()
    return {
        "retention_days": result.retention_days,
        "hits_deleted": result.hits_deleted,
        "rollup_rows_deleted": result.rollup_rows_deleted,
        "dimensions_deleted": result.dimensions_deleted,
    }


# ============================================
# ENQUEUEING
# ============================================

async def enqueue_hit(
    payload: HitPayload,
    background_tasks: BackgroundTasks,
    queue: Optional[ArqRedis] = None,
    factory: Optional[SessionFactory] = None,
    redis: Optional[Redis] = None,
) -> None:
    """
    Hand a hit to the worker queue, or run it after the response.

    The caller's response never depends on what happens here.
    """
    if queue is not None:
        try:
            await queue.enqueue_job(PROCESS_HIT_JOB, payload.model_dump(mode="json"))
            return
        except Exception as e:
            logger.warning("hit_enqueue_failed", error=str(e))

    background_tasks.add_task(process_hit, payload, factory=factory, redis=redis)


# ============================================
# WORKER SETTINGS
# ============================================

async def startup(ctx: dict) -> None:
    configure_logging()
    logger.info("Hit worker started")


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [process_hit_job, vacuum_job]

    # Cron jobs
    cron_jobs = [
        # Retention and vacuum daily at 03:00 UTC
        cron(vacuum_job, hour={3}, minute={0}, run_at_startup=False),
    ]

    on_startup = startup

    redis_settings = get_redis_settings()

    # Worker settings
    max_jobs = 50
    # A hit batch takes milliseconds; this only reaps a wedged worker
    job_timeout = 3600
    keep_result = 0
    # A failed hit is dropped, never retried
    retry_jobs = False
    max_tries = 1


async def create_queue_pool() -> ArqRedis:
    """Create ARQ Redis connection pool."""
    return await create_pool(get_redis_settings())
