"""Entity creation for tasktimer.

This module centralizes creation logic so system-managed fields (id,
timestamps, timer state, version) are assigned in one place.
"""

import uuid

from tasktimer.models.category import Category, CategoryCreate
from tasktimer.models.constants import INITIAL_VERSION
from tasktimer.models.task import Task, TaskCreate


def new_id() -> str:
    return str(uuid.uuid4())


def create_task_base(data: TaskCreate, now: int) -> Task:
    """Create a task from caller-supplied fields.

    Args:
        data: Validated create payload
        now: Creation time in epoch milliseconds

    Returns:
        Task with a fresh id, zero elapsed time and a stopped timer
    """
    return Task(
        id=new_id(),
        title=data.title,
        description=data.description,
        category_id=data.category_id,
        target_time=data.target_time,
        elapsed_time=0.0,
        is_running=False,
        start_time=None,
        deadline=data.deadline,
        order=data.order,
        created_at=now,
        updated_at=now,
        completed_at=None,
        version=INITIAL_VERSION,
    )


def create_category_base(data: CategoryCreate, now: int) -> Category:
    return Category(
        id=new_id(),
        name=data.name,
        color=data.color,
        order=data.order,
        created_at=now,
        updated_at=now,
    )
