"""Pure task/timer logic for tasktimer."""

from tasktimer.engine.validation import validate_task, validate_category
from tasktimer.engine.timekeeping import (
    DeadlineStatus,
    now_ms,
    minutes_between,
    live_elapsed,
    is_over_target,
    format_elapsed_time,
    deadline_status,
    sort_tasks,
    due_by_today,
    group_by_category,
)

__all__ = [
    "validate_task",
    "validate_category",
    "DeadlineStatus",
    "now_ms",
    "minutes_between",
    "live_elapsed",
    "is_over_target",
    "format_elapsed_time",
    "deadline_status",
    "sort_tasks",
    "due_by_today",
    "group_by_category",
]
