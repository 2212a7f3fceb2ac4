"""Unit tests for clock-time and date arithmetic."""
from datetime import date

import pytest

from hallbooking.errors import InvalidDateFormat, MalformedTime
from hallbooking.timeutils import TimeRange, format_date, is_ordered, iter_dates, overlaps, parse_date, to_minutes


class TestClockTimes:
    """Test HH:mm parsing and ordering."""

    @pytest.mark.parametrize(
        "value, minutes",
        [("00:00", 0), ("09:05", 545), ("23:59", 1439), (" 10:30 ", 630)],
    )
    def test_to_minutes(self, value, minutes):
        assert to_minutes(value) == minutes

    @pytest.mark.parametrize("value", ["24:00", "9:00", "10:60", "10-00", "", None, "noon"])
    def test_to_minutes_rejects_malformed(self, value):
        with pytest.raises(MalformedTime):
            to_minutes(value)

    def test_is_ordered_is_strict(self):
        assert is_ordered("09:00", "09:01") is True
        assert is_ordered("09:00", "09:00") is False
        assert is_ordered("10:00", "09:00") is False

    def test_time_range_str(self):
        assert str(TimeRange.parse("08:00", "17:30")) == "08:00-17:30"


class TestOverlap:
    """Test half-open window overlap."""

    def test_touching_windows_do_not_overlap(self):
        assert overlaps(TimeRange(600, 720), TimeRange(720, 780)) is False

    def test_intersecting_windows_overlap(self):
        assert overlaps(TimeRange(600, 720), TimeRange(660, 780)) is True
        assert overlaps(TimeRange(660, 780), TimeRange(600, 720)) is True

    def test_contained_window_overlaps(self):
        assert overlaps(TimeRange(540, 1020), TimeRange(600, 610)) is True

    def test_unknown_window_overlaps_anything(self):
        assert overlaps(None, TimeRange(0, 1)) is True
        assert overlaps(TimeRange(0, 1), None) is True


class TestDates:
    def test_parse_date(self):
        assert parse_date("2025-03-01") == date(2025, 3, 1)
        assert parse_date(date(2025, 3, 1)) == date(2025, 3, 1)

    @pytest.mark.parametrize("value", ["2025-3-1", "01-03-2025", "2025-02-30", "", None])
    def test_parse_date_rejects_bad_input(self, value):
        with pytest.raises(InvalidDateFormat):
            parse_date(value)

    def test_iter_dates_is_inclusive_across_months(self):
        days = list(iter_dates(date(2024, 2, 28), date(2024, 3, 1)))
        assert [format_date(day) for day in days] == ["2024-02-28", "2024-02-29", "2024-03-01"]

    def test_iter_dates_single_day(self):
        assert list(iter_dates(date(2025, 1, 1), date(2025, 1, 1))) == [date(2025, 1, 1)]
