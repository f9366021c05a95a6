"""Engine modules for Pokrok.

Contains specialized computation engines:
- schedule_engine: Recurrence predicate and next-occurrence search
- statistics_engine: Period statistics, roll-ups, streaks, per-habit stats
- priority_engine: Step priority score and default ordering
"""

from .priority_engine import compare_steps, priority_score, sort_steps, step_sort_key
from .schedule_engine import (
    RecurrenceEngine,
    is_habit_completed_for_date,
    is_scheduled_for_day,
    is_step_completed_for_date,
    is_step_overdue,
    next_occurrence,
    upcoming_occurrences,
)
from .statistics_engine import (
    StatisticsEngine,
    compute_habit_stats,
    compute_stats,
    compute_streak,
)

__all__ = [
    "RecurrenceEngine",
    "StatisticsEngine",
    "compare_steps",
    "compute_habit_stats",
    "compute_stats",
    "compute_streak",
    "is_habit_completed_for_date",
    "is_scheduled_for_day",
    "is_step_completed_for_date",
    "is_step_overdue",
    "next_occurrence",
    "priority_score",
    "sort_steps",
    "step_sort_key",
    "upcoming_occurrences",
]
