"""Tests for utils/dt_utils.py calendar-day helpers."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from pokrok.utils.dt_utils import (
    dt_add_months,
    dt_add_years,
    dt_days_in_month,
    dt_iter_days,
    dt_parse_date,
    dt_to_iso_date,
    dt_to_local_date,
    dt_today_local,
    dt_week_start,
    get_default_timezone,
    set_default_timezone,
)


class TestParsing:
    """Test parsing and normalization of date-like values."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-04-07", date(2024, 4, 7)),
            ("2024/04/07", date(2024, 4, 7)),
            ("2024-13-01", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_date(self, value: str | None, expected: date | None) -> None:
        """Only date-only strings are accepted."""
        assert dt_parse_date(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (date(2024, 1, 3), date(2024, 1, 3)),
            (datetime(2024, 1, 3, 23, 59), date(2024, 1, 3)),
            ("2024-01-03", date(2024, 1, 3)),
            (" 2024-01-03 ", date(2024, 1, 3)),
            ("2024-01-03T23:30:00-08:00", date(2024, 1, 3)),
            ("2024-01-03T00:30:00+09:00", date(2024, 1, 3)),
            ("2024-01-03T12:00:00Z", date(2024, 1, 3)),
            ("tomorrow", None),
            (20240103, None),
        ],
    )
    def test_to_local_date(self, value: object, expected: date | None) -> None:
        """Aware values keep their own wall-clock day by default."""
        assert dt_to_local_date(value) == expected  # type: ignore[arg-type]

    def test_configured_timezone(self) -> None:
        """A configured zone converts aware datetimes before taking the day."""
        set_default_timezone(ZoneInfo("Europe/Prague"))

        assert get_default_timezone() == ZoneInfo("Europe/Prague")
        assert dt_to_local_date("2024-01-03T23:30:00+00:00") == date(2024, 1, 4)
        # Naive values are already local
        assert dt_to_local_date("2024-01-03T23:30:00") == date(2024, 1, 3)

    def test_explicit_timezone_overrides_default(self) -> None:
        """The tz argument wins over the configured default."""
        set_default_timezone(ZoneInfo("Europe/Prague"))
        moment = datetime(2024, 1, 4, 2, 0, tzinfo=timezone.utc)

        assert dt_to_local_date(moment, ZoneInfo("America/New_York")) == date(
            2024, 1, 3
        )

    def test_to_iso_date(self) -> None:
        """ISO output for valid input, None otherwise."""
        assert dt_to_iso_date(datetime(2024, 1, 3, 8, 0)) == "2024-01-03"
        assert dt_to_iso_date("garbage") is None


class TestToday:
    """Test current-day helpers."""

    @freeze_time("2024-01-01 02:00:00")
    def test_today_in_explicit_timezone(self) -> None:
        """02:00 UTC on New Year is still New Year's Eve in New York."""
        assert dt_today_local(ZoneInfo("America/New_York")) == date(2023, 12, 31)
        assert dt_today_local(ZoneInfo("UTC")) == date(2024, 1, 1)

    @freeze_time("2024-01-01 02:00:00")
    def test_today_uses_configured_timezone(self) -> None:
        """The configured zone is used when no override is given."""
        set_default_timezone(ZoneInfo("America/New_York"))

        assert dt_today_local() == date(2023, 12, 31)


class TestCalendarArithmetic:
    """Test day iteration and month/year arithmetic."""

    def test_iter_days_is_inclusive(self) -> None:
        """Both ends are yielded."""
        days = list(dt_iter_days(date(2024, 2, 27), date(2024, 3, 1)))

        assert days == [
            date(2024, 2, 27),
            date(2024, 2, 28),
            date(2024, 2, 29),
            date(2024, 3, 1),
        ]

    def test_iter_days_reversed_range(self) -> None:
        """A reversed range yields nothing."""
        assert list(dt_iter_days(date(2024, 3, 1), date(2024, 2, 1))) == []

    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (date(2024, 1, 3), date(2023, 12, 31)),
            (date(2024, 3, 3), date(2024, 3, 3)),
            (date(2024, 3, 9), date(2024, 3, 3)),
        ],
    )
    def test_week_start_is_sunday(self, day: date, expected: date) -> None:
        """Weeks run Sunday through Saturday."""
        assert dt_week_start(day) == expected
        assert dt_week_start(day).weekday() == 6

    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (date(2024, 2, 10), 29),
            (date(2023, 2, 10), 28),
            (date(2024, 4, 1), 30),
            (date(2024, 12, 31), 31),
        ],
    )
    def test_days_in_month(self, day: date, expected: int) -> None:
        """Month lengths account for leap years."""
        assert dt_days_in_month(day) == expected

    def test_add_months_clamps_to_month_end(self) -> None:
        """March 31 minus one month is February 29 in a leap year."""
        assert dt_add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
        assert dt_add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_add_years_clamps_leap_day(self) -> None:
        """February 29 plus one year is February 28."""
        assert dt_add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
