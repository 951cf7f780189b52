"""Streak and calendar-date helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from tilt.stats.daily_stats import next_streak, utc_today


class TestNextStreak:
    def test_first_row_starts_at_one(self):
        assert next_streak(None) == 1

    def test_continues_from_yesterday(self):
        assert next_streak(1) == 2
        assert next_streak(6) == 7

    def test_yesterday_row_with_zero_streak(self):
        assert next_streak(0) == 1


class TestUtcToday:
    def test_converts_aware_time_to_utc_date(self):
        # 23:30 on the 1st in UTC-5 is already the 2nd in UTC
        eastern = timezone(timedelta(hours=-5))
        assert utc_today(datetime(2026, 3, 1, 23, 30, tzinfo=eastern)) == date(2026, 3, 2)

    def test_naive_time_taken_as_utc(self):
        assert utc_today(datetime(2026, 3, 1, 23, 59)) == date(2026, 3, 1)

    def test_defaults_to_now(self):
        assert utc_today() == datetime.now(timezone.utc).date()
