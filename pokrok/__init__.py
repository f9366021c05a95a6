"""Pokrok recurrence engine.

Pure, stateless scheduling and statistics rules for Pokrok habits and
steps: is an item due on a day, when is it next due, how complete was a
period, how long is the current streak, and in which order steps list.

Records are plain dicts as serialized by the persistence layer
(snake_case) or the view layer (camelCase). Nothing here performs I/O.
"""

from .data_builders import (
    RecordValidationError,
    build_habit,
    build_record,
    build_step,
    is_habit_record,
)
from .engines import (
    RecurrenceEngine,
    StatisticsEngine,
    compare_steps,
    compute_habit_stats,
    compute_stats,
    compute_streak,
    is_habit_completed_for_date,
    is_scheduled_for_day,
    is_step_completed_for_date,
    is_step_overdue,
    next_occurrence,
    priority_score,
    sort_steps,
    step_sort_key,
    upcoming_occurrences,
)
from .helpers.day_view_helpers import build_day_overview
from .utils.dt_utils import get_default_timezone, set_default_timezone

__all__ = [
    "RecordValidationError",
    "RecurrenceEngine",
    "StatisticsEngine",
    "build_day_overview",
    "build_habit",
    "build_record",
    "build_step",
    "compare_steps",
    "compute_habit_stats",
    "compute_stats",
    "compute_streak",
    "get_default_timezone",
    "is_habit_completed_for_date",
    "is_habit_record",
    "is_scheduled_for_day",
    "is_step_completed_for_date",
    "is_step_overdue",
    "next_occurrence",
    "priority_score",
    "set_default_timezone",
    "sort_steps",
    "step_sort_key",
    "upcoming_occurrences",
]
