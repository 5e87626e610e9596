"""Business-day arithmetic."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from timeoff.leave.calendar import (
    business_days_inclusive,
    is_business_day,
    iter_business_days,
    normalize_date,
)


class TestBusinessDaysInclusive:

    def test_weekend_only_range_is_zero(self):
        # Sat 6 Jan – Sun 7 Jan 2024
        assert business_days_inclusive(date(2024, 1, 6), date(2024, 1, 7)) == 0

    def test_full_work_week(self):
        assert business_days_inclusive(date(2024, 1, 8), date(2024, 1, 12)) == 5

    def test_single_weekday(self):
        assert business_days_inclusive(date(2024, 1, 10), date(2024, 1, 10)) == 1

    def test_single_weekend_day(self):
        assert business_days_inclusive(date(2024, 1, 13), date(2024, 1, 13)) == 0

    def test_end_before_start_is_zero(self):
        assert business_days_inclusive(date(2024, 1, 12), date(2024, 1, 8)) == 0

    def test_range_spanning_weekend(self):
        # Thu 1 Feb – Mon 5 Feb 2024
        assert business_days_inclusive(date(2024, 2, 1), date(2024, 2, 5)) == 3

    def test_two_full_weeks(self):
        # Mon 8 Jan – Sun 21 Jan 2024
        assert business_days_inclusive(date(2024, 1, 8), date(2024, 1, 21)) == 10

    def test_partial_weeks_starting_on_weekend(self):
        # Sat 6 Jan – Wed 17 Jan 2024
        assert business_days_inclusive(date(2024, 1, 6), date(2024, 1, 17)) == 8

    @pytest.mark.parametrize("start_day", range(1, 15))
    def test_matches_day_by_day_walk(self, start_day):
        start = date(2024, 3, start_day)
        for span in range(0, 40):
            end = date.fromordinal(start.toordinal() + span)
            expected = len(list(iter_business_days(start, end)))
            assert business_days_inclusive(start, end) == expected

    def test_datetime_time_component_is_ignored(self):
        start = datetime(2024, 1, 8, 23, 59, tzinfo=timezone.utc)
        end = datetime(2024, 1, 12, 0, 1, tzinfo=timezone.utc)
        assert business_days_inclusive(start, end) == 5


class TestHelpers:

    def test_normalize_date_strips_time(self):
        assert normalize_date(datetime(2024, 1, 8, 15, 30)) == date(2024, 1, 8)
        assert normalize_date(date(2024, 1, 8)) == date(2024, 1, 8)

    def test_is_business_day(self):
        assert is_business_day(date(2024, 1, 8)) is True    # Monday
        assert is_business_day(date(2024, 1, 12)) is True   # Friday
        assert is_business_day(date(2024, 1, 13)) is False  # Saturday
        assert is_business_day(date(2024, 1, 14)) is False  # Sunday

    def test_iter_business_days_skips_weekend(self):
        days = list(iter_business_days(date(2024, 1, 11), date(2024, 1, 16)))
        assert days == [
            date(2024, 1, 11),
            date(2024, 1, 12),
            date(2024, 1, 15),
            date(2024, 1, 16),
        ]
