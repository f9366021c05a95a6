# File: utils/math_utils.py
"""Math and calculation utilities for Pokrok.

Pure Python math functions.

Functions:
    - round_half_up: Nearest-integer rounding with ties going up
    - calculate_percentage: Completion rate (0-100) with division protection
    - clamp: Bound a value to a range
    - sum_numbers: Tolerant numeric sum used for XP totals
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

PERCENTAGE_SCALE = 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values.

    Python's built-in round() uses banker's rounding (round(2.5) == 2),
    which would make rates like 1/8 = 12.5% round down. Completion rates
    must round half up.

    Examples:
        round_half_up(66.666) → 67
        round_half_up(12.5) → 13
        round_half_up(0.49) → 0
    """
    try:
        return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        _LOGGER.debug("Cannot round non-finite value: %r", value)
        return 0


def calculate_percentage(completed: float, total: float) -> int:
    """Calculate a completion rate as an integer percentage.

    Numerator and denominator are used as given, so callers aggregate the
    raw counts first and divide once.

    Args:
        completed: Completed count
        total: Total (scheduled) count

    Returns:
        round_half_up(100 * completed / total), or 0 when total is 0

    Examples:
        calculate_percentage(2, 3) → 67
        calculate_percentage(1, 8) → 13
        calculate_percentage(5, 0) → 0  # Division by zero protection
    """
    if total <= 0:
        return 0
    # Integer math keeps exact ties exact (1/8 → 12.5, not 12.4999...)
    if isinstance(completed, int) and isinstance(total, int):
        ratio = Decimal(completed * PERCENTAGE_SCALE) / Decimal(total)
        return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return round_half_up((completed / total) * PERCENTAGE_SCALE)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))


def sum_numbers(values: list[float]) -> float:
    """Sum numeric values, returning an int when every term is integral."""
    total = sum(values)
    if isinstance(total, float) and total.is_integer():
        return int(total)
    return total
