# File: const.py
"""Constants for the Pokrok recurrence engine.

This file centralizes record keys, day tokens, frequencies, period names,
limits and defaults for consistency across the engines, helpers and
normalization code.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Record Keys (persistence contract, snake_case)
# ------------------------------------------------------------------------------------------------

# Shared
DATA_ID = "id"
DATA_FREQUENCY = "frequency"
DATA_SELECTED_DAYS = "selected_days"
DATA_START_DATE = "start_date"
DATA_CREATED_AT = "created_at"
DATA_XP_REWARD = "xp_reward"

# Habits
DATA_HABIT_ALWAYS_SHOW = "always_show"
DATA_HABIT_COMPLETIONS = "habit_completions"
DATA_HABIT_MAX_STREAK = "max_streak"

# Steps
DATA_STEP_TITLE = "title"
DATA_STEP_DATE = "date"
DATA_STEP_COMPLETED = "completed"
DATA_STEP_COMPLETED_AT = "completed_at"
DATA_STEP_GOAL_ID = "goal_id"
DATA_STEP_IS_IMPORTANT = "is_important"
DATA_STEP_IS_URGENT = "is_urgent"
DATA_STEP_ESTIMATED_TIME = "estimated_time"

# camelCase aliases sent by the view layer
RECORD_KEY_ALIASES = {
    "selectedDays": DATA_SELECTED_DAYS,
    "startDate": DATA_START_DATE,
    "createdAt": DATA_CREATED_AT,
    "xpReward": DATA_XP_REWARD,
    "alwaysShow": DATA_HABIT_ALWAYS_SHOW,
    "habitCompletions": DATA_HABIT_COMPLETIONS,
    "maxStreak": DATA_HABIT_MAX_STREAK,
    "completedAt": DATA_STEP_COMPLETED_AT,
    "goalId": DATA_STEP_GOAL_ID,
    "isImportant": DATA_STEP_IS_IMPORTANT,
    "isUrgent": DATA_STEP_IS_URGENT,
    "estimatedTime": DATA_STEP_ESTIMATED_TIME,
}

# ------------------------------------------------------------------------------------------------
# Frequencies
# ------------------------------------------------------------------------------------------------
FREQUENCY_CUSTOM = "custom"
FREQUENCY_DAILY = "daily"
FREQUENCY_MONTHLY = "monthly"
FREQUENCY_NONE = "none"
FREQUENCY_WEEKLY = "weekly"

FREQUENCY_OPTIONS = [
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_CUSTOM,
    FREQUENCY_MONTHLY,
]

# Frequencies matched against weekday names
WEEKDAY_FREQUENCIES = {FREQUENCY_WEEKLY, FREQUENCY_CUSTOM}

# ------------------------------------------------------------------------------------------------
# Day Tokens
# ------------------------------------------------------------------------------------------------

# Indexed by date.weekday() (0=Monday)
WEEKDAY_NAMES = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

ORDINAL_FIRST = "first"
ORDINAL_SECOND = "second"
ORDINAL_THIRD = "third"
ORDINAL_FOURTH = "fourth"
ORDINAL_LAST = "last"

# Ordinal token -> relativedelta weekday occurrence (-1 = last)
ORDINAL_OCCURRENCES = {
    ORDINAL_FIRST: 1,
    ORDINAL_SECOND: 2,
    ORDINAL_THIRD: 3,
    ORDINAL_FOURTH: 4,
    ORDINAL_LAST: -1,
}

ORDINAL_TOKEN_SEPARATOR = "_"

# Monthly ordinal-weekday matching modes
ORDINAL_MATCH_STRICT = "strict"
ORDINAL_MATCH_WEEKDAY_ONLY = "weekday_only"
ORDINAL_MATCH_OPTIONS = [ORDINAL_MATCH_STRICT, ORDINAL_MATCH_WEEKDAY_ONLY]
DEFAULT_ORDINAL_MATCHING = ORDINAL_MATCH_STRICT

# "31" selected also matches day 30 in months that have 30 days
MONTH_END_DAY_TOKEN = "31"
THIRTY_DAY_MONTH_LENGTH = 30

# ------------------------------------------------------------------------------------------------
# Record Kinds
# ------------------------------------------------------------------------------------------------
RECORD_KIND_HABIT = "habit"
RECORD_KIND_STEP = "step"

# ------------------------------------------------------------------------------------------------
# Periods
# ------------------------------------------------------------------------------------------------
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIOD_YEAR = "year"
PERIOD_ALL = "all"
PERIOD_OPTIONS = [PERIOD_WEEK, PERIOD_MONTH, PERIOD_YEAR, PERIOD_ALL]

PERIOD_FORMAT_MONTHLY = "%Y-%m"
PERIOD_FORMAT_YEARLY = "%Y"

# Roll-up granularities
ROLLUP_WEEKLY = "weekly"
ROLLUP_MONTHLY = "monthly"
ROLLUP_YEARLY = "yearly"

# ------------------------------------------------------------------------------------------------
# Day Status
# ------------------------------------------------------------------------------------------------
DAY_STATUS_PERFECT = "perfect"
DAY_STATUS_FAILED = "failed"
DAY_STATUS_PARTIAL = "partial"
DAY_STATUS_NO_ACTIVITY = "no_activity"
DAY_STATUS_FUTURE = "future"

# ------------------------------------------------------------------------------------------------
# Limits and Defaults
# ------------------------------------------------------------------------------------------------

# Forward scan bound for next-occurrence search
MAX_OCCURRENCE_SEARCH_DAYS = 365

DEFAULT_UPCOMING_OCCURRENCES = 5

# Goals without a focus order sort after every focused goal
DEFAULT_FOCUS_ORDER = 999

PRIORITY_WEIGHT_IMPORTANT = 2
PRIORITY_WEIGHT_URGENT = 1

DEFAULT_XP_REWARD = 0
PERCENTAGE_MAX = 100
