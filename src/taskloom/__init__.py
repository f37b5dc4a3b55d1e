"""taskloom - a local, single-user task list."""

__version__ = "0.1.0"
__author__ = "taskloom Contributors"

from .config import Config
from .errors import NotFoundError, PersistenceError, TaskloomError, ValidationError
from .state.store import TaskStore
from .state.tasks import Task, TaskFilter

__all__ = [
    "Config",
    "TaskStore",
    "Task",
    "TaskFilter",
    "TaskloomError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
]
