"""
Tests for period parsing, bucketing and percentage change.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from hitcount.services.periods import (
    DateRange,
    Granularity,
    PeriodName,
    as_utc,
    end_of_day,
    hour_bucket,
    parse_period,
    percent_change,
)

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)


class TestPercentChange:
    def test_increase(self):
        assert percent_change(150, 100) == 50

    def test_decrease(self):
        assert percent_change(80, 100) == -20

    def test_zero_baseline_has_no_change(self):
        assert percent_change(10, 0) is None
        assert percent_change(0, 0) is None

    def test_halves_round_up(self):
        assert percent_change(3, 2) == 50
        assert percent_change(1, 8) == -87  # -87.5
        assert percent_change(201, 200) == 1  # 0.5


class TestDateRange:
    def test_previous_window(self):
        window = DateRange(
            start=datetime(2024, 1, 8, tzinfo=timezone.utc),
            end=datetime(2024, 1, 15, tzinfo=timezone.utc),
        )
        previous = window.previous()

        assert previous.end == datetime(2024, 1, 7, 23, 59, 59, 999000, tzinfo=timezone.utc)
        assert previous.duration == window.duration
        assert previous.start == previous.end - timedelta(days=7)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            DateRange(start=NOW, end=NOW - timedelta(seconds=1))

    def test_naive_values_are_utc(self):
        window = DateRange(start=datetime(2026, 1, 1), end=datetime(2026, 1, 2))
        assert window.start.tzinfo == timezone.utc

    def test_days_of_exclusive_end(self):
        window = DateRange(
            start=datetime(2026, 1, 1, tzinfo=timezone.utc),
            end=datetime(2026, 1, 3, tzinfo=timezone.utc),
        )
        assert window.days() == [date(2026, 1, 1), date(2026, 1, 2)]

    def test_auto_granularity(self):
        short = DateRange(start=NOW - timedelta(days=7), end=NOW)
        long = DateRange(start=NOW - timedelta(days=8), end=NOW)
        assert short.auto_granularity() == Granularity.HOUR
        assert long.auto_granularity() == Granularity.DAY


class TestBuckets:
    def test_hour_bucket_truncates(self):
        assert hour_bucket(NOW) == datetime(2026, 3, 10, 15, tzinfo=timezone.utc)

    def test_hour_bucket_converts_offsets(self):
        local = datetime(2026, 3, 10, 17, 45, tzinfo=timezone(timedelta(hours=2)))
        assert hour_bucket(local) == datetime(2026, 3, 10, 15, tzinfo=timezone.utc)

    def test_as_utc_naive(self):
        assert as_utc(datetime(2026, 1, 1)).tzinfo == timezone.utc

    def test_end_of_day(self):
        assert end_of_day(date(2026, 1, 1)) == datetime(
            2026, 1, 1, 23, 59, 59, 999000, tzinfo=timezone.utc
        )


class TestParsePeriod:
    def test_default_is_week(self):
        period = parse_period(now=NOW)
        assert period.name == PeriodName.WEEK
        assert period.range.start == datetime(2026, 3, 3, tzinfo=timezone.utc)
        assert period.range.end == end_of_day(date(2026, 3, 10))

    def test_week_spans_more_than_seven_days_so_is_daily(self):
        assert parse_period(PeriodName.WEEK, now=NOW).granularity == Granularity.DAY

    def test_day_is_hourly(self):
        period = parse_period("day", now=NOW)
        assert period.range.start == datetime(2026, 3, 10, tzinfo=timezone.utc)
        assert period.granularity == Granularity.HOUR

    def test_year(self):
        period = parse_period("year", now=NOW)
        assert period.range.first_day == date(2025, 3, 10)

    def test_custom_dates_win(self):
        period = parse_period(
            PeriodName.MONTH,
            period_start=date(2026, 2, 1),
            period_end=date(2026, 2, 2),
            now=NOW,
        )
        assert period.name == PeriodName.CUSTOM
        assert period.range.first_day == date(2026, 2, 1)
        assert period.range.last_day == date(2026, 2, 2)
        assert period.granularity == Granularity.HOUR

    def test_explicit_granularity(self):
        assert parse_period("year", granularity="hour", now=NOW).granularity == Granularity.HOUR

    def test_inverted_custom_range(self):
        with pytest.raises(ValueError):
            parse_period(period_start=date(2026, 2, 2), period_end=date(2026, 2, 1), now=NOW)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            parse_period("fortnight", now=NOW)
