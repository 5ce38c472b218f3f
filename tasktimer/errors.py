"""Failure taxonomy for tasktimer stores."""

from typing import Dict, Optional


class TaskTimerError(Exception):
    """Base class for all tasktimer failures."""


class ValidationError(TaskTimerError, ValueError):
    """One or more fields failed validation; nothing was written."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Validation failed for: {fields}")


class NotFoundError(TaskTimerError, LookupError):
    """The targeted entity is not present in the store."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class NotRunningError(TaskTimerError):
    """Stop was requested for a timer that is not running."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Timer for task {task_id} is not running")


class ConflictError(TaskTimerError):
    """A versioned write lost against a concurrent writer."""

    def __init__(self, entity_id: str, expected: int, actual: Optional[int]):
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Version conflict on {entity_id}: expected {expected}, found {actual}")


class StoreUnavailableError(TaskTimerError):
    """The backing key-value store is unreachable or timed out.

    Retryable by the caller; the stores never retry on their own.
    """
