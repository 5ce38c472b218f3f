"""Elapsed-time, deadline and ordering helpers for tasktimer.

Everything here is pure: the current time is always passed in (or read once
via ``now_ms``) and nothing is persisted. Live elapsed time and the
over-target signal are projections recomputed on every read.
"""

import time
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from tasktimer.models.category import Category
from tasktimer.models.constants import MS_PER_DAY, MS_PER_MINUTE
from tasktimer.models.task import Deadline, Task


class DeadlineStatus:
    """Deadline buckets used by list views."""
    NONE = "none"
    OVERDUE = "overdue"
    TODAY = "today"
    TOMORROW = "tomorrow"
    UPCOMING = "upcoming"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def minutes_between(start_ms: int, end_ms: int) -> float:
    """Minutes from start to end, clamped at zero if the clock went backwards."""
    return max(0.0, (end_ms - start_ms) / MS_PER_MINUTE)


def live_elapsed(task: Task, now: Optional[int] = None) -> float:
    """Stored elapsed minutes plus the active run segment, if any."""
    if not task.is_running or not task.start_time:
        return task.elapsed_time
    if now is None:
        now = now_ms()
    return task.elapsed_time + minutes_between(task.start_time, now)


def is_over_target(task: Task, now: Optional[int] = None) -> bool:
    """Whether projected elapsed time exceeds the task's target (if any)."""
    if not task.target_time:
        return False
    return live_elapsed(task, now) > task.target_time


def format_elapsed_time(total_minutes: float) -> str:
    """Format fractional minutes as e.g. ``"1h 25m 30s"``.

    Minutes are shown whenever hours are; seconds are always shown.
    """
    if total_minutes < 0:
        return "0s"

    total_seconds = int(total_minutes * 60)
    h, rem = divmod(total_seconds, 3600)
    m, s = divmod(rem, 60)

    parts: List[str] = []
    if h > 0:
        parts.append(f"{h}h")
    if m > 0 or h > 0:
        parts.append(f"{m}m")
    parts.append(f"{s}s")
    return " ".join(parts)


def deadline_at(deadline: Deadline) -> datetime:
    """Local naive datetime of a deadline; end of day when no time is given."""
    day = date.fromisoformat(deadline.date)
    if deadline.time:
        hour, minute = (int(p) for p in deadline.time.split(":"))
        return datetime(day.year, day.month, day.day, hour, minute)
    return datetime(day.year, day.month, day.day) + timedelta(days=1) - timedelta(milliseconds=1)


def deadline_status(deadline: Optional[Deadline], now: datetime) -> str:
    """Classify a deadline relative to ``now`` (overdue / within 24h / within 48h)."""
    if deadline is None:
        return DeadlineStatus.NONE
    diff_ms = (deadline_at(deadline) - now) / timedelta(milliseconds=1)
    if diff_ms < 0:
        return DeadlineStatus.OVERDUE
    if diff_ms < MS_PER_DAY:
        return DeadlineStatus.TODAY
    if diff_ms < 2 * MS_PER_DAY:
        return DeadlineStatus.TOMORROW
    return DeadlineStatus.UPCOMING


def _sort_key(task: Task) -> Tuple[int, datetime, int]:
    if task.deadline is None:
        return (1, datetime.max, task.order)
    return (0, deadline_at(task.deadline), task.order)


def sort_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Order by deadline (tasks without one last), then by manual order."""
    return sorted(tasks, key=_sort_key)


def due_by_today(tasks: Iterable[Task], today: date) -> List[Task]:
    """Active tasks whose deadline date is today or earlier, sorted."""
    due = [
        t for t in tasks
        if t.deadline is not None
        and not t.is_completed
        and date.fromisoformat(t.deadline.date) <= today
    ]
    return sort_tasks(due)


def group_by_category(
    tasks: Iterable[Task], categories: Sequence[Category]
) -> List[Tuple[Optional[Category], List[Task]]]:
    """Group tasks for display: uncategorized first, then categories by ``order``.

    Tasks pointing at a category that no longer exists land in the
    uncategorized bucket.
    """
    known: Dict[str, List[Task]] = {c.id: [] for c in categories}
    uncategorized: List[Task] = []
    for task in sort_tasks(tasks):
        if task.category_id and task.category_id in known:
            known[task.category_id].append(task)
        else:
            uncategorized.append(task)

    groups: List[Tuple[Optional[Category], List[Task]]] = [(None, uncategorized)]
    for category in sorted(categories, key=lambda c: (c.order, c.created_at)):
        groups.append((category, known[category.id]))
    return groups
