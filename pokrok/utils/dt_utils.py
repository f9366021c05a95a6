# File: utils/dt_utils.py
"""Date utilities for Pokrok.

Pure Python calendar-day functions. Every engine compares dates through
these helpers so that "same day" always means the same *local calendar
day*, never a UTC instant.

Uses standard library: datetime, calendar, zoneinfo, plus dateutil.

Functions:
    - set_default_timezone / get_default_timezone: process-wide local zone
    - dt_today_local: Get today's date in local timezone
    - dt_parse_date: Parse date-only strings
    - dt_to_local_date: Normalize str/date/datetime to a local calendar day
    - dt_to_iso_date: Same, returned as "YYYY-MM-DD"
    - dt_iter_days: Inclusive day-by-day iteration
    - dt_week_start: Sunday that starts the week of a date
    - dt_days_in_month: Number of days in a date's month
    - dt_add_months: Month arithmetic with end-of-month clamping
    - dt_add_years: Year arithmetic with Feb 29 clamping
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta
import logging
from typing import TYPE_CHECKING

# Third-party date utilities
from dateutil.relativedelta import relativedelta

if TYPE_CHECKING:
    from collections.abc import Iterator
    from zoneinfo import ZoneInfo

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# None = keep the wall-clock date carried by each datetime
DEFAULT_TIME_ZONE: ZoneInfo | None = None

ISO_DATE_LENGTH = 10

# Python weekday() is Monday=0; weeks here start on Sunday
DAYS_FROM_SUNDAY_OFFSET = 1


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo | None) -> None:
    """Set the local timezone used to read timezone-aware datetimes.

    Call this once during application setup with the user's timezone.
    Passing None restores the default: aware datetimes keep their own
    wall-clock date.

    Args:
        tz: ZoneInfo object representing the user's timezone, or None
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo | None:
    """Get the configured local timezone (None when not configured)."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided,
            and the system local time if that is not configured either.

    Returns:
        Today's date in the resolved timezone.

    Example:
        datetime.date(2024, 4, 7)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


# ==============================================================================
# Parsing and Normalization
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date-only string into a `datetime.date`.

    Accepts formats:
    - "2024-04-07" (ISO format)
    - "2024/04/07"

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return datetime.strptime(date_str, "%Y/%m/%d").date()
    except ValueError:
        return None


def dt_to_local_date(
    value: str | date | datetime | None,
    tz: ZoneInfo | None = None,
) -> date | None:
    """Normalize a date-like value to the local calendar day it denotes.

    Rules:
    - `date` values and "YYYY-MM-DD" strings are already calendar days.
    - Naive datetimes (and naive ISO timestamps) are local wall-clock time;
      the time of day is dropped.
    - Aware datetimes are converted to `tz` (or DEFAULT_TIME_ZONE) when one
      is configured; otherwise their own wall-clock date is used, so the
      same calendar day expressed in different offsets stays the same day.

    Hosts that store UTC-stamped values (for example a step's
    `completed_at`) should call `set_default_timezone` with the user's zone;
    otherwise those values keep their UTC day.

    Args:
        value: String, date, datetime, or None
        tz: Optional timezone override for aware datetimes

    Returns:
        The local calendar date, or None if the value cannot be parsed.

    Example:
        >>> dt_to_local_date("2024-01-03T23:30:00-08:00")
        datetime.date(2024, 1, 3)
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str):
        text = value.strip()
        if len(text) == ISO_DATE_LENGTH:
            parsed_date = dt_parse_date(text)
            if parsed_date is not None:
                return parsed_date
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            parsed_date = dt_parse_date(text)
            if parsed_date is None:
                _LOGGER.debug("Unparseable date value: %r", value)
            return parsed_date
    else:
        _LOGGER.debug("Unsupported date value type: %s", type(value).__name__)
        return None

    tz_info = tz or DEFAULT_TIME_ZONE
    if result.tzinfo is not None and tz_info is not None:
        result = result.astimezone(tz_info)
    return result.date()


def dt_to_iso_date(
    value: str | date | datetime | None,
    tz: ZoneInfo | None = None,
) -> str | None:
    """Normalize a date-like value to an ISO "YYYY-MM-DD" string (or None)."""
    local_date = dt_to_local_date(value, tz)
    return local_date.isoformat() if local_date else None


# ==============================================================================
# Calendar Arithmetic
# ==============================================================================


def dt_iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from `start` to `end`, both inclusive.

    Yields nothing when `end` is before `start`.
    """
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        yield current
        current += one_day


def dt_week_start(day: date) -> date:
    """Return the Sunday that starts the week containing `day`.

    Example:
        dt_week_start(date(2024, 1, 3)) → date(2023, 12, 31)  # Wed → Sun
    """
    days_since_sunday = (day.weekday() + DAYS_FROM_SUNDAY_OFFSET) % 7
    return day - timedelta(days=days_since_sunday)


def dt_days_in_month(day: date) -> int:
    """Return the number of days in the month containing `day`."""
    return monthrange(day.year, day.month)[1]


def dt_add_months(day: date, months: int) -> date:
    """Add (or subtract) whole months, clamping to the end of month.

    Example:
        dt_add_months(date(2024, 3, 31), -1) → date(2024, 2, 29)
    """
    return day + relativedelta(months=months)


def dt_add_years(day: date, years: int) -> date:
    """Add (or subtract) whole years, clamping Feb 29 to Feb 28."""
    return day + relativedelta(years=years)
