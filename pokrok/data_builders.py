"""Record normalization helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Record field defaults
- Coercion of loosely-typed persistence/view payloads
- Key aliasing (camelCase view payloads → snake_case DATA_* keys)

## Build Functions
Each record type has a `build_<record>()` function that:
- Takes a raw dict as delivered by the persistence or view layer
- Maps camelCase aliases to DATA_* keys (snake_case wins when both exist)
- Coerces fields through a voluptuous schema
- Returns a complete, normalized record
- Raises RecordValidationError when the record is malformed

Engines call these once per record and fail closed on
RecordValidationError, so one corrupt record never aborts an aggregation.

See Also:
- type_defs.py: TypedDict definitions for normalized records
- utils/dt_utils.py: calendar-day normalization used for every date field
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import Any, cast

import voluptuous as vol

from . import const
from .type_defs import HabitData, StepData
from .utils.dt_utils import dt_to_iso_date, dt_to_local_date

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class RecordValidationError(Exception):
    """Raised when a habit or step record cannot be normalized.

    Attributes:
        field: The DATA_* key that failed validation (None for the record itself)
        reason: Human-readable validation message

    Example:
        raise RecordValidationError(
            field=const.DATA_FREQUENCY,
            reason="unknown frequency 'hourly'",
        )
    """

    def __init__(self, field: str | None, reason: str) -> None:
        """Initialize RecordValidationError.

        Args:
            field: The DATA_* key for the field that failed validation
            reason: Validation message
        """
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}" if field else reason)


# ==============================================================================
# FIELD VALIDATORS
# ==============================================================================


def _frequency(value: Any) -> str | None:
    """Coerce a frequency; empty values mean "no frequency"."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise vol.Invalid(f"frequency must be a string, got {type(value).__name__}")
    frequency = value.strip().lower()
    if frequency in ("", const.FREQUENCY_NONE):
        return None
    if frequency not in const.FREQUENCY_OPTIONS:
        raise vol.Invalid(f"unknown frequency '{value}'")
    return frequency


def _day_token(value: Any) -> str:
    """Coerce one selected-day token to its lowercase string form."""
    if isinstance(value, bool):
        raise vol.Invalid("day token must not be a boolean")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip().lower()
    raise vol.Invalid(f"invalid day token {value!r}")


def _selected_days(value: Any) -> list[str]:
    """Coerce selected days from a list, JSON string, or comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            value = text.split(",")
        if isinstance(value, (str, int)):
            value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise vol.Invalid(f"selected days must be a list, got {type(value).__name__}")
    tokens = [_day_token(item) for item in value]
    return [token for token in tokens if token]


def _optional_date(value: Any) -> Any:
    """Coerce an optional date-like value to a local calendar date."""
    if value is None or value == "":
        return None
    local_date = dt_to_local_date(value)
    if local_date is None:
        raise vol.Invalid(f"invalid date {value!r}")
    return local_date


def _completions(value: Any) -> dict[str, bool]:
    """Coerce a completions mapping keyed by ISO date.

    Keys that are not dates are ignored. Only a literal True marks a
    completion; duplicate keys for the same day are OR-ed.
    """
    if value is None:
        return {}
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return {}
        try:
            value = json.loads(text)
        except json.JSONDecodeError as err:
            raise vol.Invalid("completions string is not valid JSON") from err
    if not isinstance(value, Mapping):
        raise vol.Invalid(f"completions must be a mapping, got {type(value).__name__}")

    result: dict[str, bool] = {}
    for key, done in value.items():
        iso_date = dt_to_iso_date(key)
        if iso_date is None:
            const.LOGGER.debug("Ignoring completion with invalid date key %r", key)
            continue
        result[iso_date] = result.get(iso_date, False) or done is True
    return result


def coerce_flag(value: Any) -> bool:
    """Coerce an optional boolean flag (None → False)."""
    if value is None:
        return False
    return cast("bool", vol.Boolean()(value))


def _number(value: Any) -> float:
    """Coerce an optional numeric value (None → 0)."""
    if value is None or value == "":
        return const.DEFAULT_XP_REWARD
    if isinstance(value, bool):
        raise vol.Invalid("expected a number, got a boolean")
    if isinstance(value, (int, float)):
        return value
    return cast("float", vol.Coerce(float)(value))


def _whole_number(value: Any) -> int:
    """Coerce an optional integer value (None → 0)."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise vol.Invalid("expected an integer, got a boolean")
    return cast("int", vol.Coerce(int)(value))


def _text(value: Any) -> str:
    """Coerce an optional text value (None → "")."""
    return "" if value is None else str(value)


# ==============================================================================
# SCHEMAS
# ==============================================================================

_SHARED_FIELDS = {
    vol.Optional(const.DATA_ID, default=None): object,
    vol.Optional(const.DATA_FREQUENCY, default=None): _frequency,
    vol.Optional(const.DATA_SELECTED_DAYS, default=None): _selected_days,
    vol.Optional(const.DATA_START_DATE, default=None): _optional_date,
    vol.Optional(const.DATA_CREATED_AT, default=None): _optional_date,
    vol.Optional(const.DATA_XP_REWARD, default=None): _number,
}

HABIT_SCHEMA = vol.Schema(
    {
        **_SHARED_FIELDS,
        vol.Optional(const.DATA_HABIT_ALWAYS_SHOW, default=None): coerce_flag,
        vol.Optional(const.DATA_HABIT_COMPLETIONS, default=None): _completions,
        vol.Optional(const.DATA_HABIT_MAX_STREAK, default=None): _whole_number,
    },
    extra=vol.REMOVE_EXTRA,
)

STEP_SCHEMA = vol.Schema(
    {
        **_SHARED_FIELDS,
        vol.Optional(const.DATA_STEP_TITLE, default=None): _text,
        vol.Optional(const.DATA_STEP_DATE, default=None): _optional_date,
        vol.Optional(const.DATA_STEP_COMPLETED, default=None): coerce_flag,
        vol.Optional(const.DATA_STEP_COMPLETED_AT, default=None): _optional_date,
        vol.Optional(const.DATA_STEP_GOAL_ID, default=None): object,
        vol.Optional(const.DATA_STEP_IS_IMPORTANT, default=None): coerce_flag,
        vol.Optional(const.DATA_STEP_IS_URGENT, default=None): coerce_flag,
        vol.Optional(const.DATA_STEP_ESTIMATED_TIME, default=None): _whole_number,
    },
    extra=vol.REMOVE_EXTRA,
)

# Keys that only ever appear on one record type
_HABIT_ONLY_KEYS = {
    const.DATA_HABIT_COMPLETIONS,
    const.DATA_HABIT_ALWAYS_SHOW,
    const.DATA_HABIT_MAX_STREAK,
}
_STEP_ONLY_KEYS = {
    const.DATA_STEP_DATE,
    const.DATA_STEP_COMPLETED,
    const.DATA_STEP_COMPLETED_AT,
    const.DATA_STEP_TITLE,
    const.DATA_STEP_GOAL_ID,
}


# ==============================================================================
# BUILD FUNCTIONS
# ==============================================================================


def canonical_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of `raw` with camelCase aliases mapped to DATA_* keys.

    When a record carries both spellings, the snake_case value wins.
    """
    result: dict[str, Any] = {}
    for key, value in raw.items():
        canonical = const.RECORD_KEY_ALIASES.get(key)
        if canonical is None:
            result[key] = value
        elif canonical not in raw:
            result[canonical] = value
    return result


def _validate(schema: vol.Schema, raw: Any) -> dict[str, Any]:
    """Run a schema over a raw record, translating voluptuous errors."""
    if not isinstance(raw, Mapping):
        raise RecordValidationError(
            None, f"record must be a mapping, got {type(raw).__name__}"
        )
    try:
        return cast("dict[str, Any]", schema(canonical_keys(raw)))
    except vol.Invalid as err:
        field = str(err.path[0]) if err.path else None
        raise RecordValidationError(field, err.error_message) from err


def build_habit(raw: Mapping[str, Any]) -> HabitData:
    """Build a normalized habit record.

    Args:
        raw: Habit payload with DATA_* keys or their camelCase aliases.

    Returns:
        HabitData with every field present and coerced.

    Raises:
        RecordValidationError: If any field cannot be coerced.
    """
    return cast("HabitData", _validate(HABIT_SCHEMA, raw))


def build_step(raw: Mapping[str, Any]) -> StepData:
    """Build a normalized step record.

    Args:
        raw: Step payload with DATA_* keys or their camelCase aliases.

    Returns:
        StepData with every field present and coerced.

    Raises:
        RecordValidationError: If any field cannot be coerced.
    """
    return cast("StepData", _validate(STEP_SCHEMA, raw))


def is_habit_record(raw: Mapping[str, Any]) -> bool:
    """Tell a habit payload from a step payload.

    Habits carry completion/display keys; steps carry a due date or a
    completion flag. Records with neither are treated as habits.
    """
    keys = set(canonical_keys(raw)) if isinstance(raw, Mapping) else set()
    if keys & _HABIT_ONLY_KEYS:
        return True
    return not keys & _STEP_ONLY_KEYS


def build_record(raw: Mapping[str, Any]) -> tuple[str, HabitData | StepData]:
    """Build a habit or step record, detecting the kind from its keys.

    Returns:
        Tuple of (RECORD_KIND_* constant, normalized record).

    Raises:
        RecordValidationError: If the record is malformed.
    """
    if is_habit_record(raw):
        return const.RECORD_KIND_HABIT, build_habit(raw)
    return const.RECORD_KIND_STEP, build_step(raw)


def build_habits(raws: list[Mapping[str, Any]]) -> tuple[list[HabitData], int]:
    """Normalize a list of habits, skipping malformed ones.

    Returns:
        Tuple of (normalized habits, number of skipped records).
    """
    habits: list[HabitData] = []
    skipped = 0
    for raw in raws:
        try:
            habits.append(build_habit(raw))
        except RecordValidationError as err:
            skipped += 1
            const.LOGGER.warning("Skipping malformed habit record: %s", err)
    return habits, skipped


def build_steps(raws: list[Mapping[str, Any]]) -> tuple[list[StepData], int]:
    """Normalize a list of steps, skipping malformed ones.

    Returns:
        Tuple of (normalized steps, number of skipped records).
    """
    steps: list[StepData] = []
    skipped = 0
    for raw in raws:
        try:
            steps.append(build_step(raw))
        except RecordValidationError as err:
            skipped += 1
            const.LOGGER.warning("Skipping malformed step record: %s", err)
    return steps, skipped
