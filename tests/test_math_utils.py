"""Tests for utils/math_utils.py."""

import pytest

from pokrok.utils.math_utils import (
    calculate_percentage,
    clamp,
    round_half_up,
    sum_numbers,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(66.666, 67), (12.5, 13), (2.5, 3), (0.49, 0), (100.0, 100)],
)
def test_round_half_up(value: float, expected: int) -> None:
    """Ties round up, unlike the built-in round()."""
    assert round_half_up(value) == expected


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_round_half_up_non_finite(value: float) -> None:
    """Non-finite values round to 0."""
    assert round_half_up(value) == 0


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [
        (2, 3, 67),
        (1, 8, 13),
        (1, 3, 33),
        (0, 3, 0),
        (3, 3, 100),
        (5, 0, 0),
        (0, 0, 0),
        (0.5, 4, 13),
    ],
)
def test_calculate_percentage(completed: float, total: float, expected: int) -> None:
    """Rates are whole percentages and never divide by zero."""
    assert calculate_percentage(completed, total) == expected


def test_clamp() -> None:
    """Values are bounded on both sides."""
    assert clamp(150, 0, 100) == 100
    assert clamp(-10, 0, 100) == 0
    assert clamp(42, 0, 100) == 42


def test_sum_numbers() -> None:
    """Integral float sums come back as int."""
    assert sum_numbers([10, 2.5, 2.5]) == 15
    assert isinstance(sum_numbers([10, 2.5, 2.5]), int)
    assert sum_numbers([1.5]) == 1.5
    assert sum_numbers([]) == 0
