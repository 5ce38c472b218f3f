"""Task data model for tasktimer."""

import re
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from tasktimer.models.base import CamelModel, CamelPatch
from tasktimer.models.constants import DEFAULT_ORDER, INITIAL_VERSION

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


class Deadline(CamelModel):
    """Deadline as a calendar date with an optional wall-clock time."""

    date: str = Field(..., description="YYYY-MM-DD")
    time: Optional[str] = Field(None, description="HH:MM; end of day when omitted")

    @field_validator("date")
    @classmethod
    def _validate_date(cls, v):
        if not _DATE_RE.match(v):
            raise ValueError("date must be YYYY-MM-DD")
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"{v} is not a calendar date")
        return v

    @field_validator("time")
    @classmethod
    def _validate_time(cls, v):
        if v is None:
            return v
        if not _TIME_RE.match(v):
            raise ValueError("time must be HH:MM")
        try:
            datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError(f"{v} is not a time of day")
        return v


class Task(CamelModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Free-form description")
    category_id: Optional[str] = Field(None, description="Category id; absent means uncategorized")
    target_time: Optional[float] = Field(None, description="Time budget in minutes")
    elapsed_time: float = Field(0.0, description="Accumulated minutes across all run segments")
    is_running: bool = Field(False, description="Whether the timer is active")
    start_time: Optional[int] = Field(None, description="Epoch ms the current run segment began")
    deadline: Optional[Deadline] = None
    order: int = Field(DEFAULT_ORDER, description="Position within the task's grouping")
    created_at: int = Field(..., description="Epoch ms")
    updated_at: int = Field(..., description="Epoch ms")
    completed_at: Optional[int] = Field(None, description="Epoch ms; present once completed")
    version: int = Field(INITIAL_VERSION, description="Incremented on every write")

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class TaskCreate(CamelPatch):
    """Fields a caller may supply when creating a task."""

    title: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    target_time: Optional[float] = None
    deadline: Optional[Deadline] = None
    order: int = DEFAULT_ORDER


class TaskPatch(CamelPatch):
    """Partial update for a task.

    Only fields explicitly set by the caller are merged; an explicit ``None``
    clears an optional field.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    target_time: Optional[float] = None
    elapsed_time: Optional[float] = None
    deadline: Optional[Deadline] = None
    order: Optional[int] = None
