"""Timer projection model for tasktimer."""

from typing import Optional

from tasktimer.models.base import CamelModel


class Timer(CamelModel):
    """Running/stopped state of a task's timer.

    Kept in sync with the owning Task on every transition; ``elapsed_time`` is
    the total as of the last stop and ``start_time`` is 0 after a reset.
    """

    task_id: str
    start_time: int = 0
    elapsed_time: float = 0.0
    is_running: bool = False
    target_time: Optional[float] = None
