"""
Pre-aggregated counter tables.

Dashboards read only from these; each is incremented once per qualifying hit
by the aggregator. Hourly tables are keyed by a UTC hour bucket, daily tables
by a UTC calendar date.
"""
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hitcount.core.database import Base

HOURS_PER_DAY = 24


class HitCount(Base):
    """Hits per path per hour."""

    __tablename__ = "hit_counts"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    hour: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class HitStat(Base):
    """
    Hits per path per day, broken down by hour of day.

    ``stats`` is always a list of 24 integers; slot ``n`` counts hits
    recorded between ``n:00`` and ``n:59`` UTC.
    """

    __tablename__ = "hit_stats"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    stats: Mapped[list[int]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )


class RefCount(Base):
    """First-visit hits per path, referrer and hour."""

    __tablename__ = "ref_counts"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    ref_id: Mapped[int] = mapped_column(ForeignKey("refs.ref_id"), primary_key=True)
    hour: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class BrowserStat(Base):
    __tablename__ = "browser_stats"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    browser_id: Mapped[int] = mapped_column(
        ForeignKey("browsers.browser_id"), primary_key=True
    )
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SystemStat(Base):
    __tablename__ = "system_stats"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    system_id: Mapped[int] = mapped_column(
        ForeignKey("systems.system_id"), primary_key=True
    )
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LocationStat(Base):
    """First-visit hits per path, two-letter country code and day."""

    __tablename__ = "location_stats"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    location: Mapped[str] = mapped_column(String(2), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SizeStat(Base):
    """First-visit hits per path, screen width bucket and day."""

    __tablename__ = "size_stats"

    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), primary_key=True)
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    width: Mapped[int] = mapped_column(Integer, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
