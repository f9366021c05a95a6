"""Tests for priority_engine.py default step ordering."""

from functools import cmp_to_key
import logging
from typing import Any

import pytest

from pokrok.data_builders import build_step
from pokrok.engines.priority_engine import (
    compare_steps,
    priority_score,
    sort_steps,
    step_sort_key,
)


def step(
    step_id: str,
    day: str | None = "2024-03-04",
    important: Any = False,
    urgent: Any = False,
    goal_id: str | None = None,
) -> dict[str, Any]:
    """Create a step record for ordering tests."""
    return {
        "id": step_id,
        "date": day,
        "is_important": important,
        "is_urgent": urgent,
        "goal_id": goal_id,
    }


class TestPriorityScore:
    """Test the 2 x important + 1 x urgent score."""

    @pytest.mark.parametrize(
        ("important", "urgent", "expected"),
        [
            (True, True, 3),
            (True, False, 2),
            (False, True, 1),
            (False, False, 0),
            (None, None, 0),
            ("true", "false", 2),
            (1, 1, 3),
        ],
    )
    def test_score(self, important: Any, urgent: Any, expected: int) -> None:
        """Flags are read leniently from persisted values."""
        assert priority_score(step("s", important=important, urgent=urgent)) == expected

    def test_camel_case_flags(self) -> None:
        """View payloads send isImportant / isUrgent."""
        assert priority_score({"isImportant": True, "isUrgent": True}) == 3

    def test_missing_flags(self) -> None:
        """A step with no flags scores 0."""
        assert priority_score({"id": "bare"}) == 0

    @pytest.mark.parametrize(
        ("important", "urgent", "expected"),
        [("on", "enable", 3), ("yes", "off", 2), ("no", "1", 1)],
    )
    def test_matches_record_normalization(
        self, important: Any, urgent: Any, expected: int
    ) -> None:
        """Scores use the same flag spellings as build_step."""
        raw = step("s", important=important, urgent=urgent)
        normalized = build_step(raw)

        assert priority_score(raw) == expected
        assert priority_score(normalized) == expected
        assert normalized["is_important"] == bool(expected & 2)
        assert normalized["is_urgent"] == bool(expected & 1)

    def test_unreadable_flag_counts_as_false(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A value build_step rejects adds nothing to the score."""
        with caplog.at_level(logging.WARNING):
            score = priority_score(step("s", important="maybe", urgent=True))

        assert score == 1
        assert "maybe" in caplog.text


class TestSortSteps:
    """Test score → date → focus order → input order."""

    def test_higher_score_first_then_earlier_date(self) -> None:
        """Score dominates; dates break ties."""
        steps = [
            step("plain", "2024-03-01"),
            step("important-late", "2024-03-05", important=True),
            step("both", "2024-03-10", important=True, urgent=True),
            step("important-early", "2024-03-02", important=True),
            step("urgent", "2024-03-01", urgent=True),
        ]

        result = [item["id"] for item in sort_steps(steps)]

        assert result == [
            "both",
            "important-early",
            "important-late",
            "urgent",
            "plain",
        ]

    def test_goal_focus_order_breaks_date_ties(self) -> None:
        """Lower focus order sorts first; unknown and 0 sort last."""
        steps = [
            step("unfocused", goal_id="g0"),
            step("second", goal_id="g2"),
            step("unknown", goal_id="other"),
            step("first", goal_id="g1"),
        ]
        focus = {"g1": 1, "g2": 2, "g0": 0}

        result = [item["id"] for item in sort_steps(steps, focus)]

        assert result[:2] == ["first", "second"]
        assert set(result[2:]) == {"unfocused", "unknown"}

    def test_full_ties_keep_input_order(self) -> None:
        """The sort is stable for equal keys."""
        steps = [step("a"), step("b"), step("c")]

        assert [item["id"] for item in sort_steps(steps)] == ["a", "b", "c"]

    def test_undated_step_falls_back_to_created_at(self) -> None:
        """Steps without a due date sort by their creation day."""
        undated = {"id": "undated", "created_at": "2024-02-01T08:00:00"}

        key = step_sort_key(undated)

        assert key[1].isoformat() == "2024-02-01"

    def test_steps_without_any_date_sort_first(self) -> None:
        """With equal scores, undated steps come before dated ones."""
        steps = [step("dated"), step("undated", day=None)]

        assert [item["id"] for item in sort_steps(steps)] == ["undated", "dated"]


class TestCompareSteps:
    """Test the comparator used to compose with caller keys."""

    def test_sign(self) -> None:
        """Negative when the first step sorts first."""
        urgent = step("u", urgent=True)
        plain = step("p")

        assert compare_steps(urgent, plain) == -1
        assert compare_steps(plain, urgent) == 1
        assert compare_steps(plain, step("p2")) == 0

    def test_composes_with_primary_key(self) -> None:
        """Callers can put their own bucket (e.g. overdue first) in front."""
        steps = [
            step("today-urgent", "2024-03-04", urgent=True),
            step("overdue-plain", "2024-03-01"),
            step("today-important", "2024-03-04", important=True),
        ]
        today = "2024-03-04"

        def compare(a: dict[str, Any], b: dict[str, Any]) -> int:
            bucket_a = a["date"] < today
            bucket_b = b["date"] < today
            if bucket_a != bucket_b:
                return -1 if bucket_a else 1
            return compare_steps(a, b)

        result = [item["id"] for item in sorted(steps, key=cmp_to_key(compare))]

        assert result == ["overdue-plain", "today-important", "today-urgent"]
