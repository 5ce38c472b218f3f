"""Timer engine: start/stop/reset transitions for a task's timer.

The timer projection (`timer:<id>`) and the task's own timer fields are
written in the same batch on every transition so they never disagree.
"""

import logging
from typing import Callable, Optional

from tasktimer.database.kv_store import SqlKeyValueStore
from tasktimer.database.task_repository import TaskRepository
from tasktimer.engine.timekeeping import minutes_between, now_ms
from tasktimer.errors import NotFoundError, NotRunningError, ValidationError
from tasktimer.models.constants import timer_key
from tasktimer.models.task import Task
from tasktimer.models.timer import Timer

logger = logging.getLogger(__name__)

START_COMPLETED = "Completed tasks cannot be timed."


def project_timer(task: Task) -> Timer:
    """Timer view derived from a task's fields."""
    return Timer(
        task_id=task.id,
        start_time=task.start_time or 0,
        elapsed_time=task.elapsed_time,
        is_running=task.is_running,
        target_time=task.target_time,
    )


class TimerRepository:
    """Repository for timer state transitions."""

    def __init__(self, store: SqlKeyValueStore, tasks: TaskRepository, clock: Callable[[], int] = now_ms):
        self.store = store
        self.tasks = tasks
        self.clock = clock

    def get_timer(self, task_id: str) -> Optional[Timer]:
        record = self.store.get(timer_key(task_id))
        return Timer.model_validate(record) if record else None

    def _write(self, task: Task, timer: Timer, *, start_time: Optional[int]) -> None:
        with self.store.batch():
            self.tasks.record_timer_state(
                task,
                is_running=timer.is_running,
                elapsed_time=timer.elapsed_time,
                start_time=start_time,
            )
            self.store.set(timer_key(task.id), timer.to_record())

    def start(self, task_id: str) -> Timer:
        """Start a run segment.

        Starting an already running timer changes nothing and returns the
        current view; the running segment keeps its original start time.
        """
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        if task.is_completed:
            raise ValidationError({"completedAt": START_COMPLETED})
        if task.is_running:
            logger.info(f"Timer for task {task_id} already running; start ignored")
            return self.get_timer(task_id) or project_timer(task)

        now = self.clock()
        timer = Timer(
            task_id=task_id,
            start_time=now,
            elapsed_time=task.elapsed_time,
            is_running=True,
            target_time=task.target_time,
        )
        self._write(task, timer, start_time=now)
        logger.debug(f"Started timer for task {task_id}")
        return timer

    def stop(self, task_id: str) -> Timer:
        """Close the running segment and add its minutes to elapsed time.

        Raises:
            NotRunningError: no timer, no task, or the timer is not running;
                nothing is written
        """
        timer = self.get_timer(task_id)
        task = self.tasks.get(task_id)
        if timer is None or task is None or not timer.is_running:
            logger.warning(f"Stop requested for task {task_id} but its timer is not running")
            raise NotRunningError(task_id)

        delta = minutes_between(timer.start_time, self.clock())
        stopped = timer.model_copy(update={
            "is_running": False,
            "elapsed_time": task.elapsed_time + delta,
            "target_time": task.target_time,
        })
        self._write(task, stopped, start_time=None)
        logger.debug(f"Stopped timer for task {task_id} (+{delta:.2f} min)")
        return stopped

    def reset(self, task_id: str) -> Timer:
        """Zero the timer regardless of its current state."""
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)

        timer = Timer(
            task_id=task_id,
            start_time=0,
            elapsed_time=0.0,
            is_running=False,
            target_time=task.target_time,
        )
        self._write(task, timer, start_time=None)
        logger.debug(f"Reset timer for task {task_id}")
        return timer
