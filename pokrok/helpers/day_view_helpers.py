# File: helpers/day_view_helpers.py
"""Day overview helper functions for Pokrok.

Builds the display and counting sets a day view needs, delegating every
"is this due today" decision to RecurrenceEngine so views never re-derive
day-matching rules inline.

`always_show` habits are displayed on every day but only counted toward
progress on days they are actually scheduled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_habits, build_steps
from ..engines.schedule_engine import (
    RecurrenceEngine,
    habit_completed_on,
    step_completed_on,
)
from ..utils.dt_utils import dt_to_local_date, dt_today_local
from ..utils.math_utils import calculate_percentage, clamp

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ..type_defs import DayOverview


def build_day_overview(
    habits: Iterable[Mapping[str, Any]],
    steps: Iterable[Mapping[str, Any]],
    day: Any,
    today: Any = None,
    ordinal_matching: str | None = None,
) -> DayOverview:
    """Build the overview of habits and steps for one day.

    Args:
        habits: Habit records (raw or normalized).
        steps: Step records (raw or normalized).
        day: The day being viewed.
        today: Reference "today"; overdue steps are only listed when the
            viewed day is today. Defaults to the current local day.
        ordinal_matching: Optional ORDINAL_MATCH_* override.

    Returns:
        DayOverview with displayed/counted/completed habit ids, scheduled
        and completed step ids, overdue step ids and progress percentage.
        Malformed records are skipped and counted in `skipped_records`.
    """
    view_day = dt_to_local_date(day)
    reference = dt_to_local_date(today) if today is not None else dt_today_local()
    if view_day is None:
        const.LOGGER.warning("Invalid day %r for day overview, using today", day)
        view_day = reference or dt_today_local()

    habit_records, skipped_habits = build_habits(list(habits))
    step_records, skipped_steps = build_steps(list(steps))

    displayed_habit_ids: list[Any] = []
    counted_habit_ids: list[Any] = []
    completed_habit_ids: list[Any] = []
    completed_counted = 0
    for habit in habit_records:
        scheduled = RecurrenceEngine.from_habit(habit, ordinal_matching).is_scheduled(
            view_day
        )
        if not scheduled and not habit["always_show"]:
            continue
        displayed_habit_ids.append(habit["id"])
        done = habit_completed_on(habit, view_day)
        if done:
            completed_habit_ids.append(habit["id"])
        if scheduled:
            counted_habit_ids.append(habit["id"])
            completed_counted += int(done)

    step_ids: list[Any] = []
    completed_step_ids: list[Any] = []
    overdue_step_ids: list[Any] = []
    for step in step_records:
        engine = RecurrenceEngine.from_step(step, ordinal_matching)
        if engine.is_scheduled(view_day):
            step_ids.append(step["id"])
            if step_completed_on(step, view_day):
                completed_step_ids.append(step["id"])
        elif (
            view_day == reference
            and not engine.is_repeating
            and not step["completed"]
            and step["date"] is not None
            and step["date"] < view_day
        ):
            overdue_step_ids.append(step["id"])

    total = len(counted_habit_ids) + len(step_ids)
    completed = completed_counted + len(completed_step_ids)

    return {
        "date": view_day.isoformat(),
        "displayed_habit_ids": displayed_habit_ids,
        "counted_habit_ids": counted_habit_ids,
        "completed_habit_ids": completed_habit_ids,
        "step_ids": step_ids,
        "completed_step_ids": completed_step_ids,
        "overdue_step_ids": overdue_step_ids,
        "total": total,
        "completed": completed,
        "progress_percentage": int(
            clamp(calculate_percentage(completed, total), 0, const.PERCENTAGE_MAX)
        ),
        "skipped_records": skipped_habits + skipped_steps,
    }
