"""Priority Engine - default ordering of steps.

Pure comparator helpers with no side effects:
- priority_score: 2 x important + 1 x urgent (0-3)
- compare_steps: score desc → date asc → goal focus order asc → equal
- step_sort_key / sort_steps: the same ordering as a stable sort key

Callers compose these with their own primary key (for example "overdue
before today before future") through functools.cmp_to_key or by
prefixing the sort key tuple.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from .. import const
from ..data_builders import canonical_keys, coerce_flag
from ..utils.dt_utils import dt_to_local_date

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import GoalId

# Steps with no usable date sort before dated ones
UNDATED_SORT_DATE = date.min


def _flag(fields: Mapping[str, Any], key: str) -> bool:
    """Read a boolean flag the way record normalization does.

    Unreadable values count as False.
    """
    value = fields.get(key)
    try:
        return coerce_flag(value)
    except vol.Invalid:
        const.LOGGER.warning("Ignoring unreadable %s value %r", key, value)
        return False


def priority_score(step: Mapping[str, Any]) -> int:
    """Return the priority score of a step.

    Examples:
        important + urgent → 3
        important → 2
        urgent → 1
        neither → 0
    """
    fields = canonical_keys(step) if isinstance(step, Mapping) else {}
    return const.PRIORITY_WEIGHT_IMPORTANT * int(
        _flag(fields, const.DATA_STEP_IS_IMPORTANT)
    ) + const.PRIORITY_WEIGHT_URGENT * int(_flag(fields, const.DATA_STEP_IS_URGENT))


def _sort_date(fields: Mapping[str, Any]) -> date:
    """Return the date a step sorts by (due date → creation day → undated)."""
    for key in (const.DATA_STEP_DATE, const.DATA_CREATED_AT):
        value = dt_to_local_date(fields.get(key))
        if value is not None:
            return value
    return UNDATED_SORT_DATE


def _focus_order(
    fields: Mapping[str, Any], goal_focus_order: Mapping[GoalId, int] | None
) -> int:
    """Return the focus order of a step's goal (unknown goals sort last)."""
    if not goal_focus_order:
        return const.DEFAULT_FOCUS_ORDER
    order = goal_focus_order.get(fields.get(const.DATA_STEP_GOAL_ID))
    # Focus order 0 means "not focused", like a missing one
    return order if order else const.DEFAULT_FOCUS_ORDER


def step_sort_key(
    step: Mapping[str, Any],
    goal_focus_order: Mapping[GoalId, int] | None = None,
) -> tuple[int, date, int]:
    """Return the default sort key for a step.

    Args:
        step: Step record (raw or normalized).
        goal_focus_order: Optional mapping goal id → focus order (lower first).

    Returns:
        Tuple (negated score, sort date, focus order); ascending order of
        this key is the default list order.
    """
    fields = canonical_keys(step) if isinstance(step, Mapping) else {}
    return (
        -priority_score(fields),
        _sort_date(fields),
        _focus_order(fields, goal_focus_order),
    )


def compare_steps(
    a: Mapping[str, Any],
    b: Mapping[str, Any],
    goal_focus_order: Mapping[GoalId, int] | None = None,
) -> int:
    """Compare two steps for the default ordering.

    Returns:
        Negative if `a` sorts first, positive if `b` does, 0 when tied
        (a stable sort then keeps the input order).
    """
    key_a = step_sort_key(a, goal_focus_order)
    key_b = step_sort_key(b, goal_focus_order)
    return (key_a > key_b) - (key_a < key_b)


def sort_steps(
    steps: Iterable[Mapping[str, Any]],
    goal_focus_order: Mapping[GoalId, int] | None = None,
) -> list[Mapping[str, Any]]:
    """Return steps in default order; ties keep their input order."""
    return sorted(steps, key=lambda step: step_sort_key(step, goal_focus_order))
