"""Unit tests for calendar period helpers."""

from datetime import date, datetime, time

import pytest

from services.shared import periods


class TestShiftMonth:
    """Test month arithmetic across year boundaries."""

    @pytest.mark.parametrize(
        ("year", "month", "offset", "expected"),
        [
            (2024, 5, -1, (2024, 4)),
            (2024, 1, -1, (2023, 12)),
            (2024, 3, -5, (2023, 10)),
            (2024, 12, 1, (2025, 1)),
            (2024, 6, 0, (2024, 6)),
        ],
    )
    def test_shift_month(
        self, year: int, month: int, offset: int, expected: tuple[int, int]
    ) -> None:
        """Should roll the year over when the month leaves 1..12."""
        assert periods.shift_month(year, month, offset) == expected


class TestNamedPeriods:
    """Test periods resolved from a reference date."""

    def test_last_month_in_january(self) -> None:
        """Should resolve to December of the previous year."""
        start, end = periods.last_month(date(2024, 1, 10))
        assert start == datetime(2023, 12, 1)
        assert end == datetime.combine(date(2023, 12, 31), time.max)

    def test_this_month_handles_leap_february(self) -> None:
        """Should end on the 29th in a leap year."""
        start, end = periods.this_month(date(2024, 2, 3))
        assert start == datetime(2024, 2, 1)
        assert end.date() == date(2024, 2, 29)

    def test_this_year_and_last_year(self) -> None:
        """Should cover whole calendar years."""
        assert periods.this_year(date(2024, 7, 1))[0] == datetime(2024, 1, 1)
        assert periods.last_year(date(2024, 7, 1))[1].date() == date(2023, 12, 31)

    def test_last_week_on_wednesday(self) -> None:
        """Should return Monday..Saturday of the previous week."""
        # 2024-05-15 is a Wednesday
        start, end = periods.last_week(date(2024, 5, 15))
        assert start == datetime(2024, 5, 6)
        assert start.weekday() == 0
        assert end.date() == date(2024, 5, 11)
        assert end.weekday() == 5

    def test_last_week_on_sunday(self) -> None:
        """Should end on the day before a Sunday."""
        start, end = periods.last_week(date(2024, 5, 19))
        assert start.date() == date(2024, 5, 13)
        assert end.date() == date(2024, 5, 18)

    def test_first_quarter_window(self) -> None:
        """Should span Jan 1 through Mar 31 23:59:59."""
        assert periods.first_quarter(2024) == (
            datetime(2024, 1, 1),
            datetime(2024, 3, 31, 23, 59, 59),
        )


class TestWithin:
    """Test inclusive period membership."""

    def test_bounds_are_inclusive(self) -> None:
        """Should include both ends of the period."""
        period = periods.month_period(2024, 5)
        assert periods.within(period[0], period)
        assert periods.within(period[1], period)

    def test_outside_period(self) -> None:
        """Should exclude instants outside the period."""
        assert not periods.within(datetime(2024, 6, 1), periods.month_period(2024, 5))

    def test_absent_moment(self) -> None:
        """Should never match an absent date."""
        assert not periods.within(None, periods.month_period(2024, 5))
