"""
Dashboard Pydantic schemas for rollup query results.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TimeSeriesPoint(BaseModel):
    """Hits in one hour or day bucket."""

    time: str
    count: int


class TotalHits(BaseModel):
    total: int
    time_series: list[TimeSeriesPoint] = Field(alias="timeSeries")

    model_config = ConfigDict(populate_by_name=True)


class Totals(BaseModel):
    """Hits and visitors with the change against the previous period."""

    total_hits: int = Field(alias="totalHits")
    total_hits_change: Optional[int] = Field(None, alias="totalHitsChange")
    total_visitors: int = Field(alias="totalVisitors")
    total_visitors_change: Optional[int] = Field(None, alias="totalVisitorsChange")

    model_config = ConfigDict(populate_by_name=True)


class PageStat(BaseModel):
    """A page with its total, change and daily sparkline."""

    path_id: int = Field(alias="pathId")
    path: str
    title: str
    event: bool
    total: int
    change: Optional[int] = None
    sparkline: list[int] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class TopPages(BaseModel):
    pages: list[PageStat]
    has_more: bool = Field(alias="hasMore")
    total_count: int = Field(alias="totalCount")

    model_config = ConfigDict(populate_by_name=True)


class RefStat(BaseModel):
    ref: str
    ref_scheme: str = Field(alias="refScheme")
    total: int

    model_config = ConfigDict(populate_by_name=True)


class NameVersionStat(BaseModel):
    """Browser or operating system count."""

    name: str
    version: str
    count: int


class LocationStat(BaseModel):
    location: str
    count: int


class SizeStat(BaseModel):
    width: int
    count: int


class PeriodInfo(BaseModel):
    name: str
    start: datetime
    end: datetime
    granularity: str


class DashboardSummary(BaseModel):
    """Complete dashboard summary."""

    site_name: str = Field(alias="siteName")
    period: PeriodInfo
    filter: str = ""
    totals: Totals
    time_series: list[TimeSeriesPoint] = Field(alias="timeSeries")
    pages: TopPages
    refs: list[RefStat]
    browsers: list[NameVersionStat]
    systems: list[NameVersionStat]
    locations: list[LocationStat]
    sizes: list[SizeStat]

    model_config = ConfigDict(populate_by_name=True)
