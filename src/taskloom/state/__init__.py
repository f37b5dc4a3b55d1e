"""State management modules."""

from .persistence import LocalStorage, StorageEvent
from .tasks import Task, TaskFilter
from .store import STORAGE_KEY, TaskStore

__all__ = ["LocalStorage", "StorageEvent", "Task", "TaskFilter", "TaskStore", "STORAGE_KEY"]
