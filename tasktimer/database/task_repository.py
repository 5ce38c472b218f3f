"""Repository for Task records in the key-value store."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

from tasktimer.database.kv_store import SqlKeyValueStore
from tasktimer.engine.timekeeping import now_ms
from tasktimer.engine.validation import parse_payload, validate_task
from tasktimer.errors import ConflictError, NotFoundError, ValidationError
from tasktimer.models.constants import ALL_TASKS_KEY, task_key, timer_key
from tasktimer.models.factory import create_task_base
from tasktimer.models.task import Task, TaskCreate, TaskPatch
from tasktimer.models.timer import Timer

logger = logging.getLogger(__name__)

COMPLETE_WHILE_RUNNING = "Stop the timer before completing the task."
TIMER_FIELDS = ("elapsed_time", "target_time")


@dataclass
class ReorderResult:
    """Outcome of a batch reorder."""
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class TaskRepository:
    """Repository for Task store operations."""

    def __init__(self, store: SqlKeyValueStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    def _save(self, task: Task) -> None:
        self.store.set(task_key(task.id), task.to_record())

    def _touch(self, task: Task, changes: Mapping[str, Any]) -> Task:
        """Merge changes over a task, bump bookkeeping fields and revalidate."""
        merged = {
            **task.model_dump(),
            **changes,
            "updated_at": self.clock(),
            "version": task.version + 1,
        }
        return parse_payload(Task, merged)

    def _sync_timer(self, task: Task) -> None:
        """Carry patched elapsed/target time into an existing timer projection."""
        record = self.store.get(timer_key(task.id))
        if record is None:
            return
        timer = Timer.model_validate(record).model_copy(update={
            "elapsed_time": task.elapsed_time,
            "target_time": task.target_time,
        })
        self.store.set(timer_key(task.id), timer.to_record())

    def _require(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def create(self, data: Union[TaskCreate, Mapping[str, Any]]) -> Task:
        """Create a new task."""
        payload = parse_payload(TaskCreate, data)
        errors = validate_task(payload.model_dump())
        if errors:
            raise ValidationError(errors)

        task = create_task_base(payload, self.clock())
        with self.store.batch():
            self._save(task)
            self.store.add_to_set(ALL_TASKS_KEY, task.id)
        logger.debug(f"Created task {task.id}: {task.title[:50]}")
        return task

    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        record = self.store.get(task_key(task_id))
        return Task.model_validate(record) if record else None

    def get_all(self) -> List[Task]:
        """Get every task in the index. Order is unspecified."""
        task_ids = self.store.list_set(ALL_TASKS_KEY)
        records = self.store.get_many([task_key(task_id) for task_id in task_ids])
        tasks: List[Task] = []
        for task_id in task_ids:
            record = records.get(task_key(task_id))
            if record is None:
                logger.warning(f"Task {task_id} is indexed but has no record")
                continue
            tasks.append(Task.model_validate(record))
        return tasks

    def get_active(self) -> List[Task]:
        """Tasks that are not completed."""
        return [task for task in self.get_all() if not task.is_completed]

    def get_completed(self) -> List[Task]:
        return [task for task in self.get_all() if task.is_completed]

    def update(
        self,
        task_id: str,
        data: Union[TaskPatch, Mapping[str, Any]],
        expected_version: Optional[int] = None,
    ) -> Task:
        """Merge a partial update over an existing task.

        Raises:
            ValidationError: a field is invalid; nothing is written
            NotFoundError: no task with this id
            ConflictError: ``expected_version`` does not match the stored version
        """
        patch = parse_payload(TaskPatch, data)
        changes = patch.model_dump(exclude_unset=True)
        errors = validate_task(changes, partial=True)
        if errors:
            raise ValidationError(errors)

        existing = self._require(task_id)
        if expected_version is not None and existing.version != expected_version:
            raise ConflictError(task_id, expected_version, existing.version)

        updated = self._touch(existing, changes)
        with self.store.batch():
            self._save(updated)
            if any(name in changes for name in TIMER_FIELDS):
                self._sync_timer(updated)
        logger.debug(f"Updated task {task_id}: {sorted(changes)}")
        return updated

    def record_timer_state(
        self,
        task: Task,
        *,
        is_running: bool,
        elapsed_time: float,
        start_time: Optional[int],
    ) -> Task:
        """Persist timer fields on a task (not reachable through a patch)."""
        updated = self._touch(task, {
            "is_running": is_running,
            "elapsed_time": elapsed_time,
            "start_time": start_time,
        })
        self._save(updated)
        return updated

    def complete(self, task_id: str) -> Task:
        """Mark a task completed. A running timer must be stopped first."""
        task = self._require(task_id)
        if task.is_running:
            raise ValidationError({"isRunning": COMPLETE_WHILE_RUNNING})
        if task.is_completed:
            return task
        updated = self._touch(task, {"completed_at": self.clock()})
        self._save(updated)
        logger.debug(f"Completed task {task_id}")
        return updated

    def reopen(self, task_id: str) -> Task:
        """Return a completed task to the active state."""
        task = self._require(task_id)
        if not task.is_completed:
            return task
        updated = self._touch(task, {"completed_at": None})
        self._save(updated)
        logger.debug(f"Reopened task {task_id}")
        return updated

    def delete(self, task_id: str) -> bool:
        """Delete a task, its timer projection and its index entry.

        Returns False when the task did not exist (not an error).
        """
        existed = self.store.get(task_key(task_id)) is not None
        with self.store.batch():
            self.store.delete(task_key(task_id))
            self.store.delete(timer_key(task_id))
            self.store.remove_from_set(ALL_TASKS_KEY, task_id)
        if existed:
            logger.debug(f"Deleted task {task_id}")
        return existed

    def reorder(self, task_ids: List[str]) -> ReorderResult:
        """Set each task's ``order`` to its zero-based position in ``task_ids``.

        Ids not in the task index are skipped and reported; a repeated id keeps
        its first position. All writes are committed together.
        """
        result = ReorderResult()
        known: Set[str] = set(self.store.list_set(ALL_TASKS_KEY))
        positions: Dict[str, int] = {}
        for position, task_id in enumerate(task_ids):
            if task_id in positions:
                continue
            if task_id not in known:
                result.skipped.append(task_id)
                continue
            positions[task_id] = position

        records = self.store.get_many([task_key(task_id) for task_id in positions])
        writes: Dict[str, dict] = {}
        for task_id, position in positions.items():
            record = records.get(task_key(task_id))
            if record is None:
                result.skipped.append(task_id)
                continue
            task = self._touch(Task.model_validate(record), {"order": position})
            writes[task_key(task_id)] = task.to_record()
            result.updated.append(task_id)

        if writes:
            self.store.set_many(writes)
        if result.skipped:
            logger.warning(f"Reorder skipped unknown task ids: {result.skipped}")
        logger.debug(f"Reordered {len(result.updated)} tasks")
        return result

    def clear_category(self, category_id: str) -> List[Task]:
        """Detach every task from ``category_id``; tasks themselves are kept."""
        cleared: List[Task] = []
        writes: Dict[str, dict] = {}
        for task in self.get_all():
            if task.category_id == category_id:
                updated = self._touch(task, {"category_id": None})
                writes[task_key(task.id)] = updated.to_record()
                cleared.append(updated)
        if writes:
            self.store.set_many(writes)
            logger.debug(f"Cleared category {category_id} from {len(cleared)} tasks")
        return cleared
