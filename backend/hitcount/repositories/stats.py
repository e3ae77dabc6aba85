"""
Rollup query layer - dashboard reads over the aggregate tables.

Hourly tables are filtered with the half-open instant range, daily tables
with the calendar days the range touches. The raw hit log is only read
for the visitor count.
"""
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import and_, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hitcount.models import (
    Browser,
    BrowserStat,
    Hit,
    HitCount,
    LocationStat,
    Path,
    RefCount,
    Referrer,
    SizeStat,
    System,
    SystemStat,
)
from hitcount.schemas import stats as schemas
from hitcount.services.periods import DateRange, Granularity, as_utc, percent_change

DEFAULT_LIMIT = 10


def format_hour(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%dT%H:00:00Z")


def _in_hours(column: Any, window: DateRange) -> Any:
    return and_(column >= window.start, column < window.end)


def _in_days(column: Any, window: DateRange) -> Any:
    return column.between(window.first_day, window.last_day)


def _limited(stmt: Any, limit: Optional[int]) -> Any:
    return stmt.limit(limit) if limit is not None else stmt


class StatsRepository:
    """Read-only queries answering the dashboard's questions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    async def total_hits(
        self,
        window: DateRange,
        granularity: Granularity = Granularity.HOUR,
    ) -> schemas.TotalHits:
        """Hits in range with a per-hour or per-day series."""
        stmt = (
            select(HitCount.hour, func.sum(HitCount.total))
            .where(_in_hours(HitCount.hour, window))
            .group_by(HitCount.hour)
            .order_by(HitCount.hour)
        )
        rows = (await self.session.execute(stmt)).all()

        buckets: dict[str, int] = {}
        for hour, count in rows:
            if granularity == Granularity.DAY:
                key = as_utc(hour).date().isoformat()
            else:
                key = format_hour(hour)
            buckets[key] = buckets.get(key, 0) + int(count)

        series = [schemas.TimeSeriesPoint(time=key, count=count) for key, count in buckets.items()]
        return schemas.TotalHits(total=sum(buckets.values()), time_series=series)

    async def total_visitors(self, window: DateRange) -> int:
        """First-visit hits in range; the unique visitor estimate."""
        stmt = (
            select(func.count())
            .select_from(Hit)
            .where(_in_hours(Hit.created_at, window), Hit.first_visit.is_(True))
        )
        return await self.session.scalar(stmt) or 0

    async def totals_with_change(self, window: DateRange) -> schemas.Totals:
        previous = window.previous()

        hits = (await self.total_hits(window)).total
        visitors = await self.total_visitors(window)
        prev_hits = (await self.total_hits(previous)).total
        prev_visitors = await self.total_visitors(previous)

        return schemas.Totals(
            total_hits=hits,
            total_hits_change=percent_change(hits, prev_hits),
            total_visitors=visitors,
            total_visitors_change=percent_change(visitors, prev_visitors),
        )

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def _path_totals(self, window: DateRange, path_ids: list[int]) -> dict[int, int]:
        stmt = (
            select(HitCount.path_id, func.sum(HitCount.total))
            .where(_in_hours(HitCount.hour, window), HitCount.path_id.in_(path_ids))
            .group_by(HitCount.path_id)
        )
        rows = (await self.session.execute(stmt)).all()
        return {path_id: int(total) for path_id, total in rows}

    async def _sparklines(self, window: DateRange, path_ids: list[int]) -> dict[int, list[int]]:
        """Daily totals per path, one entry for every day of the range."""
        stmt = (
            select(HitCount.path_id, HitCount.hour, HitCount.total)
            .where(_in_hours(HitCount.hour, window), HitCount.path_id.in_(path_ids))
        )
        rows = (await self.session.execute(stmt)).all()

        per_day: dict[int, dict[date, int]] = defaultdict(lambda: defaultdict(int))
        for path_id, hour, total in rows:
            per_day[path_id][as_utc(hour).date()] += int(total)

        days = window.days()
        return {path_id: [per_day[path_id].get(day, 0) for day in days] for path_id in path_ids}

    async def top_pages(
        self,
        window: DateRange,
        limit: int = DEFAULT_LIMIT,
        filter: Optional[str] = None,
    ) -> schemas.TopPages:
        """
        Most viewed paths with change against the previous period.

        Fetches one row beyond ``limit`` to tell whether more pages exist.
        ``filter`` is a case-insensitive substring of the path or title.
        """
        conditions = [_in_hours(HitCount.hour, window)]
        if filter:
            conditions.append(
                Path.path.icontains(filter, autoescape=True)
                | Path.title.icontains(filter, autoescape=True)
            )

        total = func.sum(HitCount.total).label("total")
        stmt = (
            select(Path.path_id, Path.path, Path.title, Path.event, total)
            .select_from(HitCount)
            .join(Path, Path.path_id == HitCount.path_id)
            .where(*conditions)
            .group_by(Path.path_id, Path.path, Path.title, Path.event)
            .order_by(total.desc(), Path.path_id)
            .limit(limit + 1)
        )
        rows = (await self.session.execute(stmt)).all()
        has_more = len(rows) > limit
        rows = rows[:limit]

        count_stmt = (
            select(func.count(distinct(HitCount.path_id)))
            .select_from(HitCount)
            .join(Path, Path.path_id == HitCount.path_id)
            .where(*conditions)
        )
        total_count = await self.session.scalar(count_stmt) or 0

        path_ids = [row.path_id for row in rows]
        previous: dict[int, int] = {}
        sparklines: dict[int, list[int]] = {}
        if path_ids:
            previous = await self._path_totals(window.previous(), path_ids)
            sparklines = await self._sparklines(window, path_ids)

        pages = [
            schemas.PageStat(
                path_id=row.path_id,
                path=row.path,
                title=row.title,
                event=bool(row.event),
                total=int(row.total),
                change=percent_change(int(row.total), previous.get(row.path_id, 0)),
                sparkline=sparklines.get(row.path_id, []),
            )
            for row in rows
        ]
        return schemas.TopPages(pages=pages, has_more=has_more, total_count=total_count)

    # ------------------------------------------------------------------
    # Breakdowns
    # ------------------------------------------------------------------

    async def top_refs(
        self, window: DateRange, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[schemas.RefStat]:
        total = func.sum(RefCount.total).label("total")
        stmt = (
            select(Referrer.ref, Referrer.ref_scheme, total)
            .select_from(RefCount)
            .join(Referrer, Referrer.ref_id == RefCount.ref_id)
            .where(_in_hours(RefCount.hour, window))
            .group_by(Referrer.ref_id, Referrer.ref, Referrer.ref_scheme)
            .order_by(total.desc(), Referrer.ref)
        )
        rows = (await self.session.execute(_limited(stmt, limit))).all()
        return [
            schemas.RefStat(ref=ref, ref_scheme=scheme, total=int(count))
            for ref, scheme, count in rows
        ]

    async def _name_version_stats(
        self,
        dimension: Any,
        id_column: Any,
        stat_model: Any,
        stat_id_column: Any,
        window: DateRange,
        limit: Optional[int],
    ) -> list[schemas.NameVersionStat]:
        count = func.sum(stat_model.count).label("count")
        stmt = (
            select(dimension.name, dimension.version, count)
            .select_from(stat_model)
            .join(dimension, id_column == stat_id_column)
            .where(_in_days(stat_model.day, window))
            .group_by(id_column, dimension.name, dimension.version)
            .order_by(count.desc(), dimension.name, dimension.version)
        )
        rows = (await self.session.execute(_limited(stmt, limit))).all()
        return [
            schemas.NameVersionStat(name=name, version=version, count=int(total))
            for name, version, total in rows
        ]

    async def top_browsers(
        self, window: DateRange, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[schemas.NameVersionStat]:
        return await self._name_version_stats(
            Browser, Browser.browser_id, BrowserStat, BrowserStat.browser_id, window, limit
        )

    async def top_systems(
        self, window: DateRange, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[schemas.NameVersionStat]:
        return await self._name_version_stats(
            System, System.system_id, SystemStat, SystemStat.system_id, window, limit
        )

    async def top_locations(
        self, window: DateRange, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[schemas.LocationStat]:
        count = func.sum(LocationStat.count).label("count")
        stmt = (
            select(LocationStat.location, count)
            .where(_in_days(LocationStat.day, window))
            .group_by(LocationStat.location)
            .order_by(count.desc(), LocationStat.location)
        )
        rows = (await self.session.execute(_limited(stmt, limit))).all()
        return [schemas.LocationStat(location=location, count=int(total)) for location, total in rows]

    async def top_sizes(
        self, window: DateRange, limit: Optional[int] = None
    ) -> list[schemas.SizeStat]:
        count = func.sum(SizeStat.count).label("count")
        stmt = (
            select(SizeStat.width, count)
            .where(_in_days(SizeStat.day, window))
            .group_by(SizeStat.width)
            .order_by(count.desc(), SizeStat.width)
        )
        rows = (await self.session.execute(_limited(stmt, limit))).all()
        return [schemas.SizeStat(width=width, count=int(total)) for width, total in rows]
