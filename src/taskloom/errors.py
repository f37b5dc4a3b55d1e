"""Exception types raised by the task store."""

from __future__ import annotations


class TaskloomError(Exception):
    """Base exception for taskloom errors."""


class ValidationError(TaskloomError):
    """Raised when input is rejected (empty title, malformed import payload)."""


class NotFoundError(TaskloomError):
    """Raised when an operation references a task id that does not exist."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PersistenceError(TaskloomError):
    """Raised when the storage slot cannot be read or written."""


__all__ = ["TaskloomError", "ValidationError", "NotFoundError", "PersistenceError"]
