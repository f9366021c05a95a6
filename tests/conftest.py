"""Shared fixtures for Pokrok engine tests."""

from collections.abc import Iterator
from typing import Any

import pytest

from pokrok.utils.dt_utils import get_default_timezone, set_default_timezone


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Iterator[None]:
    """Restore the process-wide local timezone after each test."""
    previous = get_default_timezone()
    yield
    set_default_timezone(previous)


@pytest.fixture
def weekly_habit() -> dict[str, Any]:
    """Return a Monday/Wednesday habit starting 2024-01-01 (a Monday)."""
    return {
        "id": "h-weekly",
        "frequency": "weekly",
        "selected_days": ["monday", "wednesday"],
        "start_date": "2024-01-01",
        "created_at": "2023-12-15T09:00:00",
        "xp_reward": 10,
        "habit_completions": {},
    }


@pytest.fixture
def one_off_step() -> dict[str, Any]:
    """Return an uncompleted one-off step due 2024-05-01."""
    return {
        "id": "s-one-off",
        "title": "File taxes",
        "date": "2024-05-01",
        "completed": False,
        "xp_reward": 5,
    }
