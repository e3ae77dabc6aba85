"""
Retention and vacuum - the daily cleanup job.

Applies the configured retention window to the raw log and every
time-bucketed rollup, then removes referrer, browser and system rows that
nothing references any more. The id 1 rows are never touched.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hitcount.core.database import SessionFactory, get_db_context
from hitcount.core.logging import get_logger
from hitcount.models import (
    SENTINEL_ID,
    Browser,
    BrowserStat,
    Hit,
    HitCount,
    HitStat,
    LocationStat,
    RefCount,
    Referrer,
    SizeStat,
    System,
    SystemStat,
)
from hitcount.repositories.settings import SettingsRepository
from hitcount.services.periods import as_utc, utcnow

logger = get_logger(__name__)

# Bulk deletes; nothing is loaded into the session
NO_SYNC = {"synchronize_session": False}

HOURLY_TABLES = ((HitCount, HitCount.hour), (RefCount, RefCount.hour))
DAILY_TABLES = (
    (HitStat, HitStat.day),
    (BrowserStat, BrowserStat.day),
    (SystemStat, SystemStat.day),
    (LocationStat, LocationStat.day),
    (SizeStat, SizeStat.day),
)


@dataclass
class VacuumResult:
    retention_days: int = 0
    cutoff: Optional[datetime] = None
    hits_deleted: int = 0
    rollup_rows_deleted: int = 0
    dimensions_deleted: dict[str, int] = field(default_factory=dict)


async def apply_retention(session: AsyncSession, cutoff: datetime) -> tuple[int, int]:
    """Delete hits and rollup rows older than ``cutoff``; returns (hits, rollup rows)."""
    cutoff = as_utc(cutoff)
    cutoff_day = cutoff.date()

    result = await session.execute(
        delete(Hit).where(Hit.created_at < cutoff), execution_options=NO_SYNC
    )
    hits_deleted = result.rowcount or 0

    rollup_rows = 0
    for model, column in HOURLY_TABLES:
        result = await session.execute(
            delete(model).where(column < cutoff), execution_options=NO_SYNC
        )
        rollup_rows += result.rowcount or 0
    for model, column in DAILY_TABLES:
        result = await session.execute(
            delete(model).where(column < cutoff_day), execution_options=NO_SYNC
        )
        rollup_rows += result.rowcount or 0

    return hits_deleted, rollup_rows


async def vacuum_dimensions(session: AsyncSession) -> dict[str, int]:
    """Delete dimension rows referenced neither by hits nor by their rollup table."""
    targets = (
        (Referrer, Referrer.ref_id, Hit.ref_id, RefCount.ref_id),
        (Browser, Browser.browser_id, Hit.browser_id, BrowserStat.browser_id),
        (System, System.system_id, Hit.system_id, SystemStat.system_id),
    )

    deleted = {}
    for model, id_column, hit_column, rollup_column in targets:
        result = await session.execute(
            delete(model).where(
                id_column > SENTINEL_ID,
                id_column.not_in(select(hit_column).distinct()),
                id_column.not_in(select(rollup_column).distinct()),
            ),
            execution_options=NO_SYNC,
        )
        deleted[model.__tablename__] = result.rowcount or 0
    return deleted


async def run_vacuum(
    factory: Optional[SessionFactory] = None,
    now: Optional[datetime] = None,
) -> VacuumResult:
    """Run the full cleanup in one transaction."""
    result = VacuumResult()

    async with get_db_context(factory) as session:
        result.retention_days = await SettingsRepository(session).get_retention_days()

        if result.retention_days > 0:
            result.cutoff = as_utc(now or utcnow()) - timedelta(days=result.retention_days)
            result.hits_deleted, result.rollup_rows_deleted = await apply_retention(
                session, result.cutoff
            )

        result.dimensions_deleted = await vacuum_dimensions(session)

    logger.info(
        "vacuum_completed",
        retention_days=result.retention_days,
        hits_deleted=result.hits_deleted,
        rollup_rows_deleted=result.rollup_rows_deleted,
        **{f"{table}_deleted": count for table, count in result.dimensions_deleted.items()},
    )
    return result
