"""
Period and bucket math shared by ingestion and the dashboard queries.

All instants are UTC. Ranges are half-open: ``start <= t < end``.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional


class Granularity(str, Enum):
    HOUR = "hour"
    DAY = "day"


class PeriodName(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    HALF_YEAR = "half-year"
    YEAR = "year"
    CUSTOM = "custom"


# Days before today that a named period starts at
PERIOD_DAYS = {
    PeriodName.DAY: 0,
    PeriodName.WEEK: 7,
    PeriodName.MONTH: 30,
    PeriodName.QUARTER: 90,
    PeriodName.HALF_YEAR: 180,
    PeriodName.YEAR: 365,
}

DEFAULT_PERIOD = PeriodName.WEEK

# Windows up to this many days are charted per hour
HOURLY_MAX_DAYS = 7

ONE_MILLISECOND = timedelta(milliseconds=1)
ONE_MICROSECOND = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values (SQLite returns them) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hour_bucket(value: datetime) -> datetime:
    return as_utc(value).replace(minute=0, second=0, microsecond=0)


def day_bucket(value: datetime) -> date:
    return as_utc(value).date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Last millisecond of ``day``."""
    return start_of_day(day) + timedelta(days=1) - ONE_MILLISECOND


def percent_change(current: int, previous: int) -> Optional[int]:
    """
    Whole-number percentage change from ``previous`` to ``current``.

    A zero baseline has no meaningful change, so it yields None rather
    than 0. Halves round towards positive infinity.
    """
    if previous <= 0:
        return None
    return math.floor((current - previous) / previous * 100 + 0.5)


@dataclass(frozen=True)
class DateRange:
    """Half-open UTC instant range."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.end < self.start:
            raise ValueError("range end is before its start")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        """Last calendar day holding an instant of the range."""
        if self.end == self.start:
            return self.first_day
        return (self.end - ONE_MICROSECOND).date()

    def days(self) -> list[date]:
        count = (self.last_day - self.first_day).days + 1
        return [self.first_day + timedelta(days=offset) for offset in range(count)]

    def previous(self) -> "DateRange":
        """Window of the same duration ending 1 ms before this one starts."""
        prev_end = self.start - ONE_MILLISECOND
        return DateRange(start=prev_end - self.duration, end=prev_end)

    def auto_granularity(self) -> Granularity:
        span_days = math.ceil(self.duration / timedelta(days=1))
        return Granularity.HOUR if span_days <= HOURLY_MAX_DAYS else Granularity.DAY


@dataclass(frozen=True)
class Period:
    name: PeriodName
    range: DateRange
    granularity: Granularity


def parse_period(
    period: Optional[PeriodName | str] = None,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    granularity: Optional[Granularity | str] = None,
    now: Optional[datetime] = None,
) -> Period:
    """
    Resolve dashboard period parameters to a concrete range.

    A custom ``period_start``/``period_end`` pair wins over a named period
    and covers both days completely. Named periods run from midnight N days
    ago to the end of today. Without an explicit granularity, windows of up
    to seven days are hourly and longer ones daily.
    """
    now = as_utc(now or utcnow())

    if period_start is not None and period_end is not None:
        if period_start > period_end:
            raise ValueError("period-start is after period-end")
        name = PeriodName.CUSTOM
        window = DateRange(start=start_of_day(period_start), end=end_of_day(period_end))
    else:
        name = PeriodName(period) if period else DEFAULT_PERIOD
        if name == PeriodName.CUSTOM:
            name = DEFAULT_PERIOD
        today = now.date()
        window = DateRange(
            start=start_of_day(today - timedelta(days=PERIOD_DAYS[name])),
            end=end_of_day(today),
        )

    resolved = Granularity(granularity) if granularity else window.auto_granularity()
    return Period(name=name, range=window, granularity=resolved)
