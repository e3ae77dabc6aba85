"""
Hit aggregator - writes one classified hit to the raw log and the rollups.

All writes go through the caller's session, so they commit or roll back
together as a single transaction.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hitcount.core.database import dialect_insert
from hitcount.core.logging import get_logger
from hitcount.models import (
    HOURS_PER_DAY,
    SENTINEL_ID,
    BrowserStat,
    Hit,
    HitCount,
    HitStat,
    LocationStat,
    RefCount,
    SizeStat,
    SystemStat,
)
from hitcount.services.periods import as_utc, hour_bucket

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClassifiedHit:
    """A hit with every dimension already resolved to its id."""

    path_id: int
    ref_id: int
    browser_id: int
    system_id: int
    session: str
    first_visit: bool
    width: Optional[int]
    location: str
    language: Optional[str]
    created_at: datetime

    @property
    def hour(self) -> datetime:
        return hour_bucket(self.created_at)

    @property
    def day(self) -> date:
        return as_utc(self.created_at).date()

    @property
    def hour_of_day(self) -> int:
        return as_utc(self.created_at).hour


class HitAggregator:
    """Fans a single hit out into the raw log and every qualifying rollup."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.insert = dialect_insert(session)

    async def record(self, hit: ClassifiedHit) -> None:
        await self._insert_hit(hit)
        await self._increment(
            HitCount, {"path_id": hit.path_id, "hour": hit.hour}, column="total"
        )
        await self._increment_hour_slot(hit)

        # Breakdowns count each path once per session
        if not hit.first_visit:
            return

        if hit.ref_id > SENTINEL_ID:
            await self._increment(
                RefCount,
                {"path_id": hit.path_id, "ref_id": hit.ref_id, "hour": hit.hour},
                column="total",
            )
        if hit.browser_id > SENTINEL_ID:
            await self._increment(
                BrowserStat,
                {"path_id": hit.path_id, "browser_id": hit.browser_id, "day": hit.day},
            )
        if hit.system_id > SENTINEL_ID:
            await self._increment(
                SystemStat,
                {"path_id": hit.path_id, "system_id": hit.system_id, "day": hit.day},
            )
        if hit.location:
            await self._increment(
                LocationStat,
                {"path_id": hit.path_id, "day": hit.day, "location": hit.location},
            )
        if hit.width is not None and hit.width > 0:
            await self._increment(
                SizeStat,
                {"path_id": hit.path_id, "day": hit.day, "width": hit.width},
            )

    async def _insert_hit(self, hit: ClassifiedHit) -> None:
        await self.session.execute(
            insert(Hit).values(
                path_id=hit.path_id,
                ref_id=hit.ref_id,
                browser_id=hit.browser_id,
                system_id=hit.system_id,
                session=hit.session,
                first_visit=hit.first_visit,
                width=hit.width,
                location=hit.location,
                language=hit.language,
                created_at=as_utc(hit.created_at),
            )
        )

    async def _increment(self, model: Any, key: dict[str, Any], column: str = "count") -> None:
        """Insert ``key`` with a count of 1, or add 1 to the existing row."""
        counter = getattr(model, column)
        stmt = (
            self.insert(model)
            .values(**key, **{column: 1})
            .on_conflict_do_update(index_elements=list(key), set_={column: counter + 1})
        )
        await self.session.execute(stmt)

    async def _increment_hour_slot(self, hit: ClassifiedHit) -> None:
        """Add 1 to the hour-of-day slot of the path's daily breakdown."""
        key = (HitStat.path_id == hit.path_id, HitStat.day == hit.day)

        await self.session.execute(
            self.insert(HitStat)
            .values(path_id=hit.path_id, day=hit.day, stats=[0] * HOURS_PER_DAY)
            .on_conflict_do_nothing(index_elements=["path_id", "day"])
        )
        current = await self.session.scalar(
            select(HitStat.stats).where(*key).with_for_update()
        )

        stats = list(current or [])
        stats += [0] * (HOURS_PER_DAY - len(stats))
        stats[hit.hour_of_day] += 1

        await self.session.execute(update(HitStat).where(*key).values(stats=stats))
