"""Schedule Engine for Pokrok.

Decides whether a recurring habit or step is due on a calendar day and
searches forward for the next not-yet-completed occurrence.

- Day-of-week rules (weekly/custom) match lowercase weekday names
- Monthly rules match day-of-month tokens and "{ordinal}_{weekday}" tokens
- `dateutil.relativedelta` resolves "first_monday" / "last_friday" style
  tokens to the actual date inside the month

IMPORTANT: This module must NOT import from helpers to avoid circular imports.
Only import from const.py, type_defs.py, data_builders.py, utils and
standard libraries.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, timedelta
from functools import partial
from typing import TYPE_CHECKING, Any, ClassVar, cast

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from .. import const
from ..data_builders import (
    RecordValidationError,
    build_habit,
    build_record,
    build_step,
)
from ..utils.dt_utils import (
    dt_days_in_month,
    dt_iter_days,
    dt_to_local_date,
    dt_today_local,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from dateutil.relativedelta import weekday

    from ..type_defs import HabitData, ScheduleConfig, StepData

    CompletionCheck = Callable[[date], bool]


class RecurrenceEngine:
    """Scheduling rules for a single habit or step.

    Handles all frequency types:
    - DAILY: every day from the effective start
    - WEEKLY / CUSTOM: weekdays listed in selected_days
    - MONTHLY: day-of-month numbers and ordinal-weekday tokens
    - No frequency: one-off steps, due only on their own date

    Instances are immutable and hold no reference to the source record.
    """

    # Indexed by date.weekday() (0=Monday), aligned with const.WEEKDAY_NAMES
    WEEKDAYS: ClassVar[list[weekday]] = [MO, TU, WE, TH, FR, SA, SU]

    def __init__(self, config: ScheduleConfig) -> None:
        """Initialize the recurrence engine with configuration.

        Args:
            config: ScheduleConfig TypedDict containing frequency, selected
                days, effective start, one-off date and matching mode.

        Note:
            Unknown ordinal_matching values fall back to strict matching.
            Unrecognized monthly tokens are ignored.
        """
        self._config = config
        self._frequency = config.get("frequency")
        self._selected_days = frozenset(config.get("selected_days") or [])
        self._start_date = config.get("start_date")
        self._one_off_date = config.get("one_off_date")

        matching = config.get("ordinal_matching", const.DEFAULT_ORDINAL_MATCHING)
        if matching not in const.ORDINAL_MATCH_OPTIONS:
            const.LOGGER.warning(
                "RecurrenceEngine: Unknown ordinal matching '%s', using '%s'",
                matching,
                const.DEFAULT_ORDINAL_MATCHING,
            )
            matching = const.DEFAULT_ORDINAL_MATCHING
        self._ordinal_matching = matching

        # (occurrence, weekday index) pairs parsed once from monthly tokens
        self._ordinal_tokens: list[tuple[int, int]] = []
        if self._frequency == const.FREQUENCY_MONTHLY:
            self._ordinal_tokens = self._parse_ordinal_tokens(self._selected_days)

    @classmethod
    def from_habit(
        cls, habit: HabitData, ordinal_matching: str | None = None
    ) -> RecurrenceEngine:
        """Build an engine from a normalized habit record."""
        config: ScheduleConfig = {
            "frequency": habit["frequency"],
            "selected_days": habit["selected_days"],
            "start_date": habit["start_date"] or habit["created_at"],
            "one_off_date": None,
        }
        if ordinal_matching is not None:
            config["ordinal_matching"] = ordinal_matching
        return cls(config)

    @classmethod
    def from_step(
        cls, step: StepData, ordinal_matching: str | None = None
    ) -> RecurrenceEngine:
        """Build an engine from a normalized step record.

        One-off steps (no frequency) are scheduled on their own date only;
        the effective start does not apply to them.
        """
        repeating = step["frequency"] is not None
        config: ScheduleConfig = {
            "frequency": step["frequency"],
            "selected_days": step["selected_days"],
            "start_date": (step["start_date"] or step["created_at"])
            if repeating
            else None,
            "one_off_date": None if repeating else step["date"],
        }
        if ordinal_matching is not None:
            config["ordinal_matching"] = ordinal_matching
        return cls(config)

    @property
    def is_repeating(self) -> bool:
        """Return True when the item recurs (has a frequency)."""
        return self._frequency is not None

    @property
    def start_date(self) -> date | None:
        """Return the effective start (None for one-off items)."""
        return self._start_date

    def is_scheduled(self, day: Any) -> bool:
        """Check whether the item is due on a calendar day.

        Args:
            day: date, datetime or ISO string; time of day is ignored.

        Returns:
            True if due on that local calendar day. Unparseable days are
            never scheduled.
        """
        local_day = dt_to_local_date(day)
        if local_day is None:
            const.LOGGER.debug("RecurrenceEngine: Unparseable day %r", day)
            return False

        if not self.is_repeating:
            return self._one_off_date is not None and local_day == self._one_off_date

        if self._start_date is not None and local_day < self._start_date:
            return False

        if self._frequency == const.FREQUENCY_DAILY:
            return True
        if self._frequency in const.WEEKDAY_FREQUENCIES:
            return const.WEEKDAY_NAMES[local_day.weekday()] in self._selected_days
        if self._frequency == const.FREQUENCY_MONTHLY:
            return self._matches_monthly(local_day)
        return False

    def get_next_occurrence(
        self,
        after: Any = None,
        is_completed: CompletionCheck | None = None,
    ) -> date | None:
        """Find the earliest scheduled, not-completed day on or after `after`.

        Args:
            after: Reference day (inclusive). Defaults to today (local).
            is_completed: Optional check returning True when the item is
                already completed for a given day.

        Returns:
            The next occurrence, or None if none is found within
            MAX_OCCURRENCE_SEARCH_DAYS days (one-off items: their own date
            when it is not before `after`).
        """
        occurrences = self.get_occurrences(after, limit=1, is_completed=is_completed)
        return occurrences[0] if occurrences else None

    def get_occurrences(
        self,
        start: Any = None,
        limit: int = const.DEFAULT_UPCOMING_OCCURRENCES,
        is_completed: CompletionCheck | None = None,
    ) -> list[date]:
        """Collect up to `limit` upcoming not-completed occurrences.

        The forward scan covers at most MAX_OCCURRENCE_SEARCH_DAYS days
        starting at `start`, so schedules that never match (for example a
        monthly habit with no selected days) still terminate.

        Args:
            start: First day to consider (inclusive). Defaults to today.
            limit: Maximum occurrences to return (safety limit).
            is_completed: Optional per-day completion check.

        Returns:
            Ascending list of occurrence dates.
        """
        first_day = dt_today_local() if start is None else dt_to_local_date(start)
        if first_day is None or limit <= 0:
            return []

        if not self.is_repeating:
            # One-off items: their own date, completion is not consulted
            if self._one_off_date is not None and self._one_off_date >= first_day:
                return [self._one_off_date]
            return []

        last_day = first_day + timedelta(days=const.MAX_OCCURRENCE_SEARCH_DAYS - 1)
        occurrences: list[date] = []
        for day in dt_iter_days(first_day, last_day):
            if not self.is_scheduled(day):
                continue
            if is_completed is not None and is_completed(day):
                continue
            occurrences.append(day)
            if len(occurrences) >= limit:
                break
        return occurrences

    # =========================================================================
    # Private: monthly rules
    # =========================================================================

    @staticmethod
    def _parse_ordinal_tokens(tokens: frozenset[str]) -> list[tuple[int, int]]:
        """Parse "{ordinal}_{weekday}" tokens into (occurrence, weekday) pairs."""
        parsed: list[tuple[int, int]] = []
        for token in sorted(tokens):
            if const.ORDINAL_TOKEN_SEPARATOR not in token:
                continue
            ordinal, _, weekday_name = token.partition(const.ORDINAL_TOKEN_SEPARATOR)
            occurrence = const.ORDINAL_OCCURRENCES.get(ordinal)
            if occurrence is None or weekday_name not in const.WEEKDAY_NAMES:
                const.LOGGER.debug(
                    "RecurrenceEngine: Ignoring unknown monthly token '%s'", token
                )
                continue
            parsed.append((occurrence, const.WEEKDAY_NAMES.index(weekday_name)))
        return parsed

    def _matches_monthly(self, day: date) -> bool:
        """Check day-of-month and ordinal-weekday tokens for a day."""
        if str(day.day) in self._selected_days:
            return True

        # "31" also covers the last day of 30-day months
        if (
            day.day == const.THIRTY_DAY_MONTH_LENGTH
            and const.MONTH_END_DAY_TOKEN in self._selected_days
            and dt_days_in_month(day) == const.THIRTY_DAY_MONTH_LENGTH
        ):
            return True

        for occurrence, weekday_index in self._ordinal_tokens:
            if weekday_index != day.weekday():
                continue
            if self._ordinal_matching == const.ORDINAL_MATCH_WEEKDAY_ONLY:
                return True
            if self._nth_weekday_of_month(day, occurrence, weekday_index) == day:
                return True
        return False

    def _nth_weekday_of_month(
        self, day: date, occurrence: int, weekday_index: int
    ) -> date:
        """Return the `occurrence`-th weekday of day's month (-1 = last).

        relativedelta clamps day=31 to the month end before searching
        backwards for the last occurrence.
        """
        anchor_day = 1 if occurrence > 0 else 31
        target = self.WEEKDAYS[weekday_index](occurrence)
        return day + relativedelta(day=anchor_day, weekday=target)


# =============================================================================
# Completion predicates
# =============================================================================


def habit_completed_on(habit: HabitData, day: date) -> bool:
    """Return True when a normalized habit is marked completed on `day`."""
    return habit["habit_completions"].get(day.isoformat()) is True


def step_completed_on(step: StepData, day: date) -> bool:
    """Return True when a normalized step is completed for the `day` occurrence.

    Repeating steps need `completed_at` to attribute the completion to an
    occurrence; `completed` without `completed_at` counts as not completed
    for any specific date. One-off steps are completed for their own date.
    """
    if not step["completed"]:
        return False
    if step["frequency"] is None:
        return step["date"] == day
    return step["completed_at"] == day


# =============================================================================
# Record-level API (accepts raw or normalized records, fails closed)
# =============================================================================


def _engine_for(
    item: Mapping[str, Any], ordinal_matching: str | None
) -> tuple[RecurrenceEngine, Callable[[date], bool]] | None:
    """Build the engine and default completion check for a record."""
    try:
        kind, record = build_record(item)
    except RecordValidationError as err:
        const.LOGGER.warning(
            "Treating malformed record %r as not scheduled: %s",
            item.get(const.DATA_ID) if isinstance(item, Mapping) else None,
            err,
        )
        return None

    if kind == const.RECORD_KIND_HABIT:
        habit = cast("HabitData", record)
        return (
            RecurrenceEngine.from_habit(habit, ordinal_matching),
            partial(habit_completed_on, habit),
        )
    step = cast("StepData", record)
    return (
        RecurrenceEngine.from_step(step, ordinal_matching),
        partial(step_completed_on, step),
    )


def is_scheduled_for_day(
    item: Mapping[str, Any], day: Any, ordinal_matching: str | None = None
) -> bool:
    """Check whether a habit or step is due on a calendar day.

    `always_show` is a display hint and never changes the result.

    Args:
        item: Habit or step record (raw payload or normalized).
        day: date, datetime or ISO string.
        ordinal_matching: Optional ORDINAL_MATCH_* override.

    Returns:
        True if scheduled; False for malformed records or days.
    """
    loaded = _engine_for(item, ordinal_matching)
    if loaded is None:
        return False
    engine, _ = loaded
    return engine.is_scheduled(day)


def next_occurrence(
    item: Mapping[str, Any],
    from_date: Any,
    is_completed_for_date: Callable[[Any, date], bool] | None = None,
    ordinal_matching: str | None = None,
) -> date | None:
    """Find the earliest due, not-completed date on or after `from_date`.

    Args:
        item: Habit or step record.
        from_date: First day to consider (inclusive).
        is_completed_for_date: Optional predicate (item, day) → bool. Defaults
            to the habit completions map for habits, and to
            `completed` + `completed_at` for repeating steps.
        ordinal_matching: Optional ORDINAL_MATCH_* override.

    Returns:
        The next occurrence, or None when none exists within the search
        window or the record is malformed.
    """
    occurrences = upcoming_occurrences(
        item,
        from_date,
        max_occurrences=1,
        is_completed_for_date=is_completed_for_date,
        ordinal_matching=ordinal_matching,
    )
    return occurrences[0] if occurrences else None


def upcoming_occurrences(
    item: Mapping[str, Any],
    from_date: Any,
    max_occurrences: int = const.DEFAULT_UPCOMING_OCCURRENCES,
    is_completed_for_date: Callable[[Any, date], bool] | None = None,
    ordinal_matching: str | None = None,
) -> list[date]:
    """List up to `max_occurrences` due, not-completed dates from `from_date`."""
    loaded = _engine_for(item, ordinal_matching)
    if loaded is None:
        return []
    engine, default_check = loaded

    check = (
        default_check
        if is_completed_for_date is None
        else partial(is_completed_for_date, item)
    )
    return engine.get_occurrences(from_date, limit=max_occurrences, is_completed=check)


def is_habit_completed_for_date(habit: Mapping[str, Any], day: Any) -> bool:
    """Return True when `habit_completions[day]` is True (fails closed)."""
    local_day = dt_to_local_date(day)
    if local_day is None:
        return False
    try:
        return habit_completed_on(build_habit(habit), local_day)
    except RecordValidationError as err:
        const.LOGGER.warning("Malformed habit record: %s", err)
        return False


def is_step_completed_for_date(step: Mapping[str, Any], day: Any) -> bool:
    """Return True when a step is completed for the occurrence on `day`."""
    local_day = dt_to_local_date(day)
    if local_day is None:
        return False
    try:
        return step_completed_on(build_step(step), local_day)
    except RecordValidationError as err:
        const.LOGGER.warning("Malformed step record: %s", err)
        return False


def is_step_overdue(step: Mapping[str, Any], today: Any = None) -> bool:
    """Return True for an uncompleted one-off step dated before `today`.

    Repeating steps are never overdue; only their next occurrence matters.
    """
    reference = dt_today_local() if today is None else dt_to_local_date(today)
    if reference is None:
        return False
    try:
        record = build_step(step)
    except RecordValidationError as err:
        const.LOGGER.warning("Malformed step record: %s", err)
        return False
    if record["frequency"] is not None or record["completed"]:
        return False
    return record["date"] is not None and record["date"] < reference
