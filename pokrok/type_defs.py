"""Type definitions for Pokrok data structures.

TypedDict is used for structures with fixed keys (normalized records,
statistics results). Raw records coming from the persistence or view layer
are plain ``dict[str, Any]`` until ``data_builders`` normalizes them.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime coercion and fail-closed
handling of malformed input live in data_builders.py and the engines.

IMPORTANT: This file must NOT import from engines or helpers.
Only import from typing and the standard library.
"""

from datetime import date
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

HabitId = Any  # Opaque identifier, kept as delivered
StepId = Any  # Opaque identifier, kept as delivered
GoalId = Any  # Opaque identifier, kept as delivered
ISODate = str  # ISO 8601 date string (no time) "2024-01-18"


# =============================================================================
# Normalized Records
# =============================================================================


class HabitData(TypedDict):
    """Normalized habit record produced by data_builders.build_habit()."""

    id: HabitId
    frequency: str | None  # FREQUENCY_* constant, None = never scheduled
    selected_days: list[str]  # Lowercase day tokens
    always_show: bool  # Display hint only
    start_date: date | None
    created_at: date | None
    habit_completions: dict[ISODate, bool]
    xp_reward: float
    max_streak: int


class StepData(TypedDict):
    """Normalized step record produced by data_builders.build_step()."""

    id: StepId
    title: str
    date: date | None
    completed: bool
    completed_at: date | None  # Local calendar day of the completion
    frequency: str | None  # None = one-off step
    selected_days: list[str]
    start_date: date | None
    created_at: date | None
    goal_id: GoalId | None
    is_important: bool
    is_urgent: bool
    estimated_time: int
    xp_reward: float


class ScheduleConfig(TypedDict, total=False):
    """Configuration for RecurrenceEngine in schedule_engine.py.

    All fields are optional (total=False) to support partial configuration.
    """

    frequency: str | None  # FREQUENCY_* constant
    selected_days: list[str]  # Lowercase day tokens
    start_date: date | None  # Effective start (start_date -> created_at)
    one_off_date: date | None  # Set for one-off steps only
    ordinal_matching: str  # ORDINAL_MATCH_* constant


# =============================================================================
# Statistics Results
# =============================================================================


class DayStats(TypedDict):
    """Per-day breakdown entry returned by StatisticsEngine.compute_stats()."""

    date: ISODate
    total_habits: int
    completed_habits: int
    total_steps: int
    completed_steps: int
    total: int
    completed: int
    completion_rate: int
    status: str  # DAY_STATUS_* constant


class RollupStats(TypedDict):
    """Weekly/monthly/yearly roll-up entry (sums of daily entries)."""

    period: str  # Sunday week start ISO date, "YYYY-MM" or "YYYY"
    total_habits: int
    completed_habits: int
    total_steps: int
    completed_steps: int
    total: int
    completed: int
    completion_rate: int


class PeriodStats(TypedDict):
    """Aggregate statistics for an inclusive date range."""

    start_date: ISODate
    end_date: ISODate
    total_scheduled_habit_occurrences: int
    completed_habit_occurrences: int
    habit_completion_rate: int
    total_steps: int
    completed_steps: int
    step_completion_rate: int
    total: int
    completed: int
    completion_rate: int
    xp_earned: float
    perfect_days: int
    failed_days: int
    partial_days: int
    no_activity_days: int
    daily: list[DayStats]
    weekly: list[RollupStats]
    monthly: list[RollupStats]
    yearly: list[RollupStats]
    skipped_records: int


class HabitStats(TypedDict):
    """Per-habit summary returned by StatisticsEngine.compute_habit_stats()."""

    habit_id: HabitId
    start_date: ISODate | None
    total_planned: int
    total_completed: int
    completed_outside_plan: int
    completion_rate: int
    current_streak: int
    max_streak: int


class DayOverview(TypedDict):
    """Display/counting sets for a single day (helpers.day_view_helpers)."""

    date: ISODate
    displayed_habit_ids: list[HabitId]
    counted_habit_ids: list[HabitId]
    completed_habit_ids: list[HabitId]
    step_ids: list[StepId]
    completed_step_ids: list[StepId]
    overdue_step_ids: list[StepId]
    total: int
    completed: int
    progress_percentage: int
    skipped_records: NotRequired[int]
