"""Data models for tasktimer."""

from tasktimer.models.task import Task, TaskCreate, TaskPatch, Deadline
from tasktimer.models.category import Category, CategoryCreate, CategoryPatch
from tasktimer.models.timer import Timer

__all__ = [
    "Task",
    "TaskCreate",
    "TaskPatch",
    "Deadline",
    "Category",
    "CategoryCreate",
    "CategoryPatch",
    "Timer",
]
