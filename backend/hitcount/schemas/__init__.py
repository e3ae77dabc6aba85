"""
Pydantic schemas package.
"""
from hitcount.schemas.hit import HitPayload
from hitcount.schemas.stats import (
    DashboardSummary,
    LocationStat,
    NameVersionStat,
    PageStat,
    PeriodInfo,
    RefStat,
    SizeStat,
    TimeSeriesPoint,
    TopPages,
    TotalHits,
    Totals,
)

__all__ = [
    # Ingestion
    "HitPayload",
    # Dashboard
    "DashboardSummary",
    "PeriodInfo",
    "Totals",
    "TotalHits",
    "TimeSeriesPoint",
    "TopPages",
    "PageStat",
    "RefStat",
    "NameVersionStat",
    "LocationStat",
    "SizeStat",
]
