"""Statistics Engine - completion statistics over habits and steps.

This engine centralizes all period-based statistics for Pokrok:
- Scheduled vs. completed habit occurrences per day
- Dated steps per day, partitioned by completion
- Day classification (perfect / failed / partial / no activity / future)
- Weekly, monthly and yearly roll-ups of the daily breakdown
- Activity streaks and per-habit summaries
- XP earned in a period

Design Principles:
    - Stateless: operates on passed record snapshots, never mutates them
    - Consistent: every "is this due" question goes through RecurrenceEngine
    - Sum first: roll-ups add numerators and denominators, then divide once
    - Fail closed: malformed records are skipped, never abort a computation
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Final

from .. import const
from ..data_builders import (
    RecordValidationError,
    build_habit,
    build_habits,
    build_steps,
)
from ..utils.dt_utils import (
    dt_add_months,
    dt_add_years,
    dt_iter_days,
    dt_to_local_date,
    dt_today_local,
    dt_week_start,
)
from ..utils.math_utils import calculate_percentage, sum_numbers
from .schedule_engine import RecurrenceEngine, habit_completed_on

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import (
        DayStats,
        HabitData,
        HabitStats,
        PeriodStats,
        RollupStats,
        StepData,
    )


# Count fields carried by daily entries and summed by roll-ups
COUNT_FIELDS: Final[tuple[str, ...]] = (
    "total_habits",
    "completed_habits",
    "total_steps",
    "completed_steps",
)

ROLLUP_KEY_FORMATS: Final[dict[str, str]] = {
    const.ROLLUP_MONTHLY: const.PERIOD_FORMAT_MONTHLY,
    const.ROLLUP_YEARLY: const.PERIOD_FORMAT_YEARLY,
}


class StatisticsEngine:
    """Stateless engine computing completion statistics.

    This class provides methods to:
    - Resolve week/month/year/all period ranges (current or previous)
    - Compute period statistics with a per-day breakdown and roll-ups
    - Compute the activity streak ending today
    - Compute per-habit planned/completed/streak summaries

    All methods operate on records passed as arguments. Records may be raw
    payloads or already normalized; each is normalized once per call.

    Example:
        stats = StatisticsEngine()

        start, end = stats.resolve_period_range(const.PERIOD_WEEK)
        period = stats.compute_stats(habits, steps, start, end)
        # period["completion_rate"] = 67

        streak = stats.compute_streak(habits, steps)
    """

    def __init__(self, ordinal_matching: str | None = None) -> None:
        """Initialize the engine.

        Args:
            ordinal_matching: Optional ORDINAL_MATCH_* mode forwarded to every
                RecurrenceEngine built by this engine.
        """
        self._ordinal_matching = ordinal_matching

    # ────────────────────────────────────────────────────────────────
    # Period Keys and Ranges
    # ────────────────────────────────────────────────────────────────

    def get_period_keys(self, reference_date: Any = None) -> dict[str, str]:
        """Generate roll-up keys for a day.

        Args:
            reference_date: Day to generate keys for. Defaults to today (local).

        Returns:
            Dictionary with keys "weekly", "monthly", "yearly".

        Example:
            >>> stats.get_period_keys(date(2024, 1, 3))
            {"weekly": "2023-12-31", "monthly": "2024-01", "yearly": "2024"}
        """
        ref = self._resolve_today(reference_date)
        return {
            const.ROLLUP_WEEKLY: dt_week_start(ref).isoformat(),
            const.ROLLUP_MONTHLY: ref.strftime(const.PERIOD_FORMAT_MONTHLY),
            const.ROLLUP_YEARLY: ref.strftime(const.PERIOD_FORMAT_YEARLY),
        }

    def resolve_period_range(
        self,
        period: str,
        today: Any = None,
        previous: bool = False,
        account_created_at: Any = None,
    ) -> tuple[date, date]:
        """Resolve a named period to an inclusive (start, end) date range.

        Current periods end today:
        - week: the 7 days before today through today
        - month: the same day one month ago through today
        - year: the same day one year ago through today
        - all: account creation day through today (today when unknown)

        Previous periods:
        - week: the 7 days before the current window's start
        - month: first day two months back → first day of last month
        - year: 1 January two years back → 1 January of last year
        - all: has no previous period; the current range is returned

        Unknown period names resolve like "all".
        """
        reference = self._resolve_today(today)

        if period == const.PERIOD_WEEK:
            if previous:
                end = reference - timedelta(days=7)
                return end - timedelta(days=7), end
            return reference - timedelta(days=7), reference

        if period == const.PERIOD_MONTH:
            if previous:
                end = dt_add_months(reference, -1).replace(day=1)
                return dt_add_months(end, -1), end
            return dt_add_months(reference, -1), reference

        if period == const.PERIOD_YEAR:
            if previous:
                end = dt_add_years(reference, -1).replace(month=1, day=1)
                return dt_add_years(end, -1), end
            return dt_add_years(reference, -1), reference

        if period not in const.PERIOD_OPTIONS:
            const.LOGGER.debug("Unknown period '%s', using all-time range", period)

        created = dt_to_local_date(account_created_at)
        if created is None or created > reference:
            return reference, reference
        return created, reference

    # ────────────────────────────────────────────────────────────────
    # Period Statistics
    # ────────────────────────────────────────────────────────────────

    def compute_stats(
        self,
        habits: Iterable[Mapping[str, Any]],
        steps: Iterable[Mapping[str, Any]],
        period_start: Any,
        period_end: Any,
        today: Any = None,
    ) -> PeriodStats:
        """Compute completion statistics for an inclusive date range.

        Habit occurrences count on days the habit is scheduled; a completion
        on an unscheduled day is not counted (it still earns XP). Steps count
        on their own date. Rates are computed once from summed counts.

        Args:
            habits: Habit records visible to the user.
            steps: Step records visible to the user.
            period_start: First day of the range (inclusive).
            period_end: Last day of the range (inclusive).
            today: Reference "today" for future-day classification.

        Returns:
            PeriodStats with totals, daily breakdown and roll-ups. A reversed
            or unparseable range yields zero totals and an empty breakdown.
        """
        start = dt_to_local_date(period_start)
        end = dt_to_local_date(period_end)
        reference = self._resolve_today(today)

        habit_records, skipped_habits = build_habits(list(habits))
        step_records, skipped_steps = build_steps(list(steps))
        skipped = skipped_habits + skipped_steps

        if start is None or end is None:
            const.LOGGER.warning(
                "Invalid statistics range %r → %r, returning empty stats",
                period_start,
                period_end,
            )
            return self._empty_stats(period_start, period_end, skipped)

        scheduled_habits = [
            (RecurrenceEngine.from_habit(habit, self._ordinal_matching), habit)
            for habit in habit_records
        ]
        steps_by_day = self._group_steps_by_day(step_records, start, end)

        daily: list[DayStats] = []
        xp_values: list[float] = []
        for day in dt_iter_days(start, end):
            total_habits = 0
            completed_habits = 0
            for engine, habit in scheduled_habits:
                done = habit_completed_on(habit, day)
                if done:
                    xp_values.append(habit["xp_reward"])
                if engine.is_scheduled(day):
                    total_habits += 1
                    completed_habits += int(done)

            day_steps = steps_by_day.get(day, [])
            done_steps = [step for step in day_steps if step["completed"]]
            xp_values.extend(step["xp_reward"] for step in done_steps)

            daily.append(
                self._build_day(
                    day,
                    reference,
                    total_habits,
                    completed_habits,
                    len(day_steps),
                    len(done_steps),
                )
            )

        return self._summarize(start, end, daily, xp_values, skipped)

    def classify_day(
        self, day: date, total: int, completed: int, today: Any = None
    ) -> str:
        """Classify a day by its rounded completion rate.

        Returns:
            DAY_STATUS_FUTURE for days after today, DAY_STATUS_NO_ACTIVITY when
            nothing was due, DAY_STATUS_PERFECT at a 100% rate,
            DAY_STATUS_FAILED at 0%, else DAY_STATUS_PARTIAL.
        """
        if day > self._resolve_today(today):
            return const.DAY_STATUS_FUTURE
        if total <= 0:
            return const.DAY_STATUS_NO_ACTIVITY
        rate = calculate_percentage(completed, total)
        if rate >= const.PERCENTAGE_MAX:
            return const.DAY_STATUS_PERFECT
        if rate <= 0:
            return const.DAY_STATUS_FAILED
        return const.DAY_STATUS_PARTIAL

    def rollup(self, daily: Iterable[DayStats], granularity: str) -> list[RollupStats]:
        """Group daily entries by week (Sunday start), month or year.

        Counts are summed; the rate is computed once from the sums, never
        by averaging daily rates.

        Args:
            daily: Daily entries in ascending date order.
            granularity: ROLLUP_WEEKLY, ROLLUP_MONTHLY or ROLLUP_YEARLY.

        Returns:
            Ascending list of roll-up entries.
        """
        buckets: dict[str, dict[str, int]] = {}
        for entry in daily:
            day = date.fromisoformat(entry["date"])
            if granularity == const.ROLLUP_WEEKLY:
                key = dt_week_start(day).isoformat()
            else:
                key = day.strftime(ROLLUP_KEY_FORMATS[granularity])

            bucket = buckets.setdefault(key, dict.fromkeys(COUNT_FIELDS, 0))
            for field in COUNT_FIELDS:
                bucket[field] += entry[field]  # type: ignore[literal-required]

        rollups: list[RollupStats] = []
        for key in sorted(buckets):
            bucket = buckets[key]
            total = bucket["total_habits"] + bucket["total_steps"]
            completed = bucket["completed_habits"] + bucket["completed_steps"]
            rollups.append(
                {
                    "period": key,
                    "total_habits": bucket["total_habits"],
                    "completed_habits": bucket["completed_habits"],
                    "total_steps": bucket["total_steps"],
                    "completed_steps": bucket["completed_steps"],
                    "total": total,
                    "completed": completed,
                    "completion_rate": calculate_percentage(completed, total),
                }
            )
        return rollups

    # ────────────────────────────────────────────────────────────────
    # Streaks
    # ────────────────────────────────────────────────────────────────

    def compute_streak(
        self,
        habits: Iterable[Mapping[str, Any]],
        steps: Iterable[Mapping[str, Any]],
        today: Any = None,
        floor_date: Any = None,
    ) -> int:
        """Count consecutive days with activity, walking back from today.

        A day has activity when any habit is marked completed on it or a
        completed step is dated on it. Scheduling does not matter here.

        The backward scan never passes `floor_date` (typically the account
        creation day) or, when not given, the earliest recorded activity.

        Returns:
            Number of consecutive active days ending today (0 if today has
            no activity).
        """
        reference = self._resolve_today(today)
        habit_records, _ = build_habits(list(habits))
        step_records, _ = build_steps(list(steps))

        active_days = self._activity_days(habit_records, step_records)
        if not active_days:
            return 0

        floor = dt_to_local_date(floor_date) if floor_date is not None else None
        if floor is None:
            floor = min(active_days)

        streak = 0
        day = reference
        while day >= floor and day in active_days:
            streak += 1
            day -= timedelta(days=1)
        return streak

    # ────────────────────────────────────────────────────────────────
    # Per-Habit Statistics
    # ────────────────────────────────────────────────────────────────

    def habit_statistics_start(self, habit: HabitData) -> date | None:
        """Return the first day a habit's statistics cover.

        An explicit start date wins. Otherwise the earlier of the creation
        day and the first recorded completion is used, so completions
        imported from before the habit was created still count.
        """
        if habit["start_date"] is not None:
            return habit["start_date"]

        candidates = [
            date.fromisoformat(iso_date)
            for iso_date, done in habit["habit_completions"].items()
            if done
        ]
        if habit["created_at"] is not None:
            candidates.append(habit["created_at"])
        return min(candidates) if candidates else None

    def compute_habit_stats(
        self, habit: Mapping[str, Any], today: Any = None
    ) -> HabitStats:
        """Summarize one habit from its statistics start through today.

        Returns:
            HabitStats with planned/completed counts, completions on
            unscheduled days, completion rate, the current streak of
            consecutive completed days ending today, and the longest such
            run (never below the stored max_streak).
        """
        reference = self._resolve_today(today)
        try:
            record = build_habit(habit)
        except RecordValidationError as err:
            const.LOGGER.warning("Skipping malformed habit record: %s", err)
            return self._empty_habit_stats(habit)

        start = self.habit_statistics_start(record) or reference
        engine = RecurrenceEngine.from_habit(record, self._ordinal_matching)

        total_planned = 0
        total_completed = 0
        completed_outside_plan = 0
        longest_run = 0
        run = 0
        for day in dt_iter_days(start, reference):
            done = habit_completed_on(record, day)
            if engine.is_scheduled(day):
                total_planned += 1
                total_completed += int(done)
            elif done:
                completed_outside_plan += 1

            run = run + 1 if done else 0
            longest_run = max(longest_run, run)

        current_streak = 0
        day = reference
        while day >= start and habit_completed_on(record, day):
            current_streak += 1
            day -= timedelta(days=1)

        return {
            "habit_id": record["id"],
            "start_date": start.isoformat(),
            "total_planned": total_planned,
            "total_completed": total_completed,
            "completed_outside_plan": completed_outside_plan,
            "completion_rate": calculate_percentage(total_completed, total_planned),
            "current_streak": current_streak,
            "max_streak": max(longest_run, record["max_streak"]),
        }

    # ────────────────────────────────────────────────────────────────
    # Internal Helpers
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def _resolve_today(today: Any) -> date:
        """Return `today` as a local date, defaulting to the current day."""
        if today is None:
            return dt_today_local()
        resolved = dt_to_local_date(today)
        if resolved is None:
            const.LOGGER.warning("Invalid reference day %r, using today", today)
            return dt_today_local()
        return resolved

    @staticmethod
    def _group_steps_by_day(
        steps: list[StepData], start: date, end: date
    ) -> dict[date, list[StepData]]:
        """Bucket dated steps inside [start, end] by their date."""
        grouped: dict[date, list[StepData]] = {}
        for step in steps:
            step_date = step["date"]
            if step_date is None or not start <= step_date <= end:
                continue
            grouped.setdefault(step_date, []).append(step)
        return grouped

    @staticmethod
    def _activity_days(habits: list[HabitData], steps: list[StepData]) -> set[date]:
        """Collect every day with a habit completion or a completed dated step."""
        days = {
            date.fromisoformat(iso_date)
            for habit in habits
            for iso_date, done in habit["habit_completions"].items()
            if done
        }
        days.update(
            step["date"] for step in steps if step["completed"] and step["date"]
        )
        return days

    def _build_day(
        self,
        day: date,
        today: date,
        total_habits: int,
        completed_habits: int,
        total_steps: int,
        completed_steps: int,
    ) -> DayStats:
        """Build one daily breakdown entry."""
        total = total_habits + total_steps
        completed = completed_habits + completed_steps
        return {
            "date": day.isoformat(),
            "total_habits": total_habits,
            "completed_habits": completed_habits,
            "total_steps": total_steps,
            "completed_steps": completed_steps,
            "total": total,
            "completed": completed,
            "completion_rate": calculate_percentage(completed, total),
            "status": self.classify_day(day, total, completed, today),
        }

    def _summarize(
        self,
        start: date,
        end: date,
        daily: list[DayStats],
        xp_values: list[float],
        skipped: int,
    ) -> PeriodStats:
        """Sum the daily breakdown into period totals and roll-ups."""
        total_habits = sum(entry["total_habits"] for entry in daily)
        completed_habits = sum(entry["completed_habits"] for entry in daily)
        total_steps = sum(entry["total_steps"] for entry in daily)
        completed_steps = sum(entry["completed_steps"] for entry in daily)
        total = total_habits + total_steps
        completed = completed_habits + completed_steps

        status_counts = dict.fromkeys(
            (
                const.DAY_STATUS_PERFECT,
                const.DAY_STATUS_FAILED,
                const.DAY_STATUS_PARTIAL,
                const.DAY_STATUS_NO_ACTIVITY,
            ),
            0,
        )
        for entry in daily:
            if entry["status"] in status_counts:
                status_counts[entry["status"]] += 1

        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_scheduled_habit_occurrences": total_habits,
            "completed_habit_occurrences": completed_habits,
            "habit_completion_rate": calculate_percentage(
                completed_habits, total_habits
            ),
            "total_steps": total_steps,
            "completed_steps": completed_steps,
            "step_completion_rate": calculate_percentage(completed_steps, total_steps),
            "total": total,
            "completed": completed,
            "completion_rate": calculate_percentage(completed, total),
            "xp_earned": sum_numbers(xp_values),
            "perfect_days": status_counts[const.DAY_STATUS_PERFECT],
            "failed_days": status_counts[const.DAY_STATUS_FAILED],
            "partial_days": status_counts[const.DAY_STATUS_PARTIAL],
            "no_activity_days": status_counts[const.DAY_STATUS_NO_ACTIVITY],
            "daily": daily,
            "weekly": self.rollup(daily, const.ROLLUP_WEEKLY),
            "monthly": self.rollup(daily, const.ROLLUP_MONTHLY),
            "yearly": self.rollup(daily, const.ROLLUP_YEARLY),
            "skipped_records": skipped,
        }

    def _empty_stats(
        self, period_start: Any, period_end: Any, skipped: int
    ) -> PeriodStats:
        """Return zeroed statistics for an unusable range."""
        stats = self._summarize(date.min, date.min, [], [], skipped)
        stats["start_date"] = str(period_start)
        stats["end_date"] = str(period_end)
        return stats

    @staticmethod
    def _empty_habit_stats(habit: Any) -> HabitStats:
        """Return zeroed per-habit statistics for a malformed record."""
        return {
            "habit_id": (
                habit.get(const.DATA_ID) if isinstance(habit, Mapping) else None
            ),
            "start_date": None,
            "total_planned": 0,
            "total_completed": 0,
            "completed_outside_plan": 0,
            "completion_rate": 0,
            "current_streak": 0,
            "max_streak": 0,
        }


# =============================================================================
# Module-level API
# =============================================================================

_DEFAULT_ENGINE = StatisticsEngine()


def compute_stats(
    habits: Iterable[Mapping[str, Any]],
    steps: Iterable[Mapping[str, Any]],
    period_start: Any,
    period_end: Any,
    today: Any = None,
) -> PeriodStats:
    """Compute period statistics with the default (strict) engine."""
    return _DEFAULT_ENGINE.compute_stats(habits, steps, period_start, period_end, today)


def compute_streak(
    habits: Iterable[Mapping[str, Any]],
    steps: Iterable[Mapping[str, Any]],
    today: Any = None,
    floor_date: Any = None,
) -> int:
    """Compute the activity streak ending today with the default engine."""
    return _DEFAULT_ENGINE.compute_streak(habits, steps, today, floor_date)


def compute_habit_stats(habit: Mapping[str, Any], today: Any = None) -> HabitStats:
    """Compute per-habit statistics with the default engine."""
    return _DEFAULT_ENGINE.compute_habit_stats(habit, today)
