"""Constants for tasktimer.

This module centralizes key layout and default values used throughout the application.
"""

# Key layout in the key-value store
TASK_KEY_PREFIX = "task:"
CATEGORY_KEY_PREFIX = "category:"
TIMER_KEY_PREFIX = "timer:"
ALL_TASKS_KEY = "tasks"
ALL_CATEGORIES_KEY = "categories"

# Defaults
DEFAULT_CATEGORY_COLOR = "gray"
DEFAULT_ORDER = 0
INITIAL_VERSION = 1

# Time units
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE


def task_key(task_id: str) -> str:
    return f"{TASK_KEY_PREFIX}{task_id}"


def category_key(category_id: str) -> str:
    return f"{CATEGORY_KEY_PREFIX}{category_id}"


def timer_key(task_id: str) -> str:
    return f"{TIMER_KEY_PREFIX}{task_id}"
