"""
Dashboard read API over the rollup tables.
"""
from datetime import date, datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hitcount.core.database import DbSession
from hitcount.core.logging import get_logger
from hitcount.core.security import require_dashboard_token
from hitcount.repositories.settings import SettingsRepository
from hitcount.repositories.stats import DEFAULT_LIMIT, StatsRepository
from hitcount.schemas.stats import (
    DashboardSummary,
    LocationStat,
    NameVersionStat,
    PeriodInfo,
    RefStat,
    SizeStat,
    TopPages,
    TotalHits,
    Totals,
)
from hitcount.services.periods import (
    DEFAULT_PERIOD,
    DateRange,
    Granularity,
    Period,
    PeriodName,
    parse_period,
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/stats",
    tags=["stats"],
    dependencies=[Depends(require_dashboard_token)],
)

SUMMARY_LIMIT = 10


async def get_period(
    period: Annotated[PeriodName, Query(description="Named period")] = DEFAULT_PERIOD,
    period_start: Annotated[Optional[date], Query(alias="period-start")] = None,
    period_end: Annotated[Optional[date], Query(alias="period-end")] = None,
    start: Annotated[Optional[datetime], Query(description="Range start (ISO 8601)")] = None,
    end: Annotated[Optional[datetime], Query(description="Range end, exclusive")] = None,
    hl: Annotated[Optional[Granularity], Query(description="hour or day")] = None,
) -> Period:
    """
    Resolve the requested window.

    Explicit ``start``/``end`` instants win, then a custom
    ``period-start``/``period-end`` date pair, then the named period.
    """
    try:
        if start is not None and end is not None:
            window = DateRange(start=start, end=end)
            return Period(
                name=PeriodName.CUSTOM,
                range=window,
                granularity=hl or window.auto_granularity(),
            )
        return parse_period(period, period_start, period_end, hl)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )


PeriodDep = Annotated[Period, Depends(get_period)]
Limit = Annotated[int, Query(ge=1, le=100)]


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    period: PeriodDep,
    session: DbSession,
    filter: Annotated[str, Query(max_length=200)] = "",
) -> DashboardSummary:
    """Everything the dashboard page shows, in one response."""
    stats = StatsRepository(session)
    window = period.range

    site_name = await SettingsRepository(session).get_site_name()
    totals = await stats.totals_with_change(window)
    hits = await stats.total_hits(window, period.granularity)
    pages = await stats.top_pages(window, SUMMARY_LIMIT, filter=filter or None)

    return DashboardSummary(
        site_name=site_name,
        period=PeriodInfo(
            name=period.name.value,
            start=window.start,
            end=window.end,
            granularity=period.granularity.value,
        ),
        filter=filter,
        totals=totals,
        time_series=hits.time_series,
        pages=pages,
        refs=await stats.top_refs(window, SUMMARY_LIMIT),
        browsers=await stats.top_browsers(window, SUMMARY_LIMIT),
        systems=await stats.top_systems(window, SUMMARY_LIMIT),
        locations=await stats.top_locations(window, SUMMARY_LIMIT),
        sizes=await stats.top_sizes(window, SUMMARY_LIMIT),
    )


@router.get("/hits", response_model=TotalHits)
async def get_hits(period: PeriodDep, session: DbSession) -> TotalHits:
    """Total hits with an hourly or daily series."""
    return await StatsRepository(session).total_hits(period.range, period.granularity)


@router.get("/totals", response_model=Totals)
async def get_totals(period: PeriodDep, session: DbSession) -> Totals:
    """Hits and visitors with the change against the previous period."""
    return await StatsRepository(session).totals_with_change(period.range)


@router.get("/pages", response_model=TopPages)
async def get_pages(
    period: PeriodDep,
    session: DbSession,
    limit: Limit = DEFAULT_LIMIT,
    filter: Annotated[str, Query(max_length=200)] = "",
) -> TopPages:
    return await StatsRepository(session).top_pages(period.range, limit, filter=filter or None)


@router.get("/refs", response_model=list[RefStat])
async def get_refs(period: PeriodDep, session: DbSession, limit: Limit = DEFAULT_LIMIT) -> list[RefStat]:
    return await StatsRepository(session).top_refs(period.range, limit)


@router.get("/browsers", response_model=list[NameVersionStat])
async def get_browsers(
    period: PeriodDep, session: DbSession, limit: Limit = DEFAULT_LIMIT
) -> list[NameVersionStat]:
    return await StatsRepository(session).top_browsers(period.range, limit)


@router.get("/systems", response_model=list[NameVersionStat])
async def get_systems(
    period: PeriodDep, session: DbSession, limit: Limit = DEFAULT_LIMIT
) -> list[NameVersionStat]:
    return await StatsRepository(session).top_systems(period.range, limit)


@router.get("/locations", response_model=list[LocationStat])
async def get_locations(
    period: PeriodDep, session: DbSession, limit: Limit = DEFAULT_LIMIT
) -> list[LocationStat]:
    return await StatsRepository(session).top_locations(period.range, limit)


@router.get("/sizes", response_model=list[SizeStat])
async def get_sizes(
    period: PeriodDep, session: DbSession, limit: Annotated[Optional[int], Query(ge=1, le=100)] = None
) -> list[SizeStat]:
    return await StatsRepository(session).top_sizes(period.range, limit)
