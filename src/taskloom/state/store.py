"""The task store: an ordered task collection mirrored to a storage slot."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
import uuid
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Tuple

from ..errors import NotFoundError, PersistenceError, ValidationError
from ..notify import Notifier
from ..utils.logger import ActivityLog
from .persistence import LocalStorage, StorageEvent
from .snapshot import backup_filename, dumps_tasks, loads_tasks, parse_import
from .tasks import Task, TaskFilter, normalize_tags

if TYPE_CHECKING:
    from ..config import ConfigLoader

logger = logging.getLogger(__name__)

STORAGE_KEY = "taskloom:tasks:v1"

EXAMPLE_TASKS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Design new dashboard", ("Work", "Urgent")),
    ("Buy groceries", ("Personal",)),
    ("Schedule dentist appointment", ()),
)

_UPDATABLE_FIELDS = frozenset({"title", "completed", "due_date", "tags"})

Snapshot = Tuple[Task, ...]
Observer = Callable[[Snapshot], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    if isinstance(tags, str) or not isinstance(tags, Iterable):
        raise ValidationError("Tags must be a list of strings.")
    tags = list(tags)
    if not all(isinstance(tag, str) for tag in tags):
        raise ValidationError("Tags must be a list of strings.")
    return normalize_tags(tags)


class TaskStore:
    """
    Owns the ordered task collection.

    Every mutation builds a new snapshot, writes it to the storage slot and
    only then swaps it in and notifies observers. A failed write leaves the
    in-memory snapshot untouched and raises ``PersistenceError``.
    """

    def __init__(
        self,
        storage: LocalStorage,
        *,
        key: str = STORAGE_KEY,
        notifier: Optional[Notifier] = None,
        activity: Optional[ActivityLog] = None,
        export_dir: Optional[Path] = None,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        autoload: bool = True,
    ) -> None:
        self.storage = storage
        self.key = key
        self.notifier = notifier or Notifier()
        self.activity = activity
        self.export_dir = export_dir
        self._clock = clock
        self._id_factory = id_factory
        self._tasks: Snapshot = ()
        self._observers: List[Observer] = []
        self.is_loading = True
        self.storage.add_listener(self._on_storage_event)
        if autoload:
            self.load()

    @classmethod
    def from_config(
        cls,
        config: "ConfigLoader",
        notifier: Optional[Notifier] = None,
        data_dir: Optional[Path] = None,
    ) -> "TaskStore":
        """Build a store over the configured data directory."""
        root = Path(data_dir).expanduser() if data_dir else config.data_dir
        storage = LocalStorage(root, quota_bytes=config.get_int("storage.quota_bytes"))
        return cls(
            storage,
            key=config.get("storage.key", STORAGE_KEY),
            notifier=notifier,
            activity=ActivityLog(root / "logs"),
            export_dir=config.export_dir,
        )

    # ------------------------------------------------------------------ #
    # Loading and sync
    # ------------------------------------------------------------------ #
    def load(self) -> Snapshot:
        """Read the persisted collection; fall back to empty on failure."""
        self.is_loading = True
        tasks: Snapshot = ()
        try:
            raw = self.storage.get_item(self.key)
            if raw:
                tasks = loads_tasks(raw)
        except PersistenceError:
            logger.exception("Failed to load tasks from %s", self.key)
            self.notifier.warning("Could not load your tasks. Starting with an empty list.")
            tasks = ()
        finally:
            self.is_loading = False
        self._tasks = tasks
        logger.info("TaskStore ready key=%s total=%d", self.key, len(tasks))
        self._emit()
        return self._tasks

    def close(self) -> None:
        """Stop listening for external changes."""
        self.storage.remove_listener(self._on_storage_event)

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key != self.key or not event.new_value:
            return
        try:
            tasks = loads_tasks(event.new_value)
        except PersistenceError:
            logger.warning("Ignoring unreadable external write to %s", self.key)
            return
        # Last writer wins: no merge with the current snapshot.
        self._tasks = tasks
        logger.info("Tasks replaced by external write total=%d", len(tasks))
        self._emit()

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #
    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a callback for new snapshots; returns an unsubscribe function."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _emit(self) -> None:
        for observer in list(self._observers):
            observer(self._tasks)

    def _commit(self, tasks: Iterable[Task]) -> Snapshot:
        snapshot = tuple(tasks)
        try:
            self.storage.set_item(self.key, dumps_tasks(snapshot))
        except PersistenceError:
            logger.exception("Failed to save tasks to %s", self.key)
            self.notifier.error("There was a problem saving your tasks.")
            raise
        self._tasks = snapshot
        self._emit()
        return snapshot

    def _record(self, event: str, **details) -> None:
        # Runs after a successful commit, so a log failure must not fail the call.
        if not self.activity:
            return
        try:
            self.activity.record(event, **details)
        except OSError:
            logger.exception("Failed to write activity event=%s", event)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    @property
    def tasks(self) -> Snapshot:
        return self._tasks

    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        return next((task for task in self._tasks if task.id == task_id), None)

    def _require(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def filter(self, status: TaskFilter = TaskFilter.ALL, search: str = "") -> List[Task]:
        """Tasks matching the status filter and search text, in collection order."""
        result = []
        for task in self._tasks:
            if status is TaskFilter.ACTIVE and task.completed:
                continue
            if status is TaskFilter.COMPLETED and not task.completed:
                continue
            if search and not task.matches(search):
                continue
            result.append(task)
        return result

    def active(self) -> List[Task]:
        return self.filter(TaskFilter.ACTIVE)

    def completed(self) -> List[Task]:
        return self.filter(TaskFilter.COMPLETED)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def create(self, title: str, tags: Sequence[str] = ()) -> Task:
        """Create a task and put it at the front of the list."""
        cleaned = title.strip()
        if not cleaned:
            raise ValidationError("Task title cannot be empty.")
        task = Task(
            id=self._new_id(),
            title=cleaned,
            completed=False,
            created_at=self._clock(),
            tags=_clean_tags(tags),
        )
        self._commit((task,) + self._tasks)
        logger.debug("Task created id=%s", task.id)
        self._record("create", task_id=task.id, title=task.title)
        return task

    def _new_id(self) -> str:
        existing = {task.id for task in self._tasks}
        task_id = self._id_factory()
        while task_id in existing:
            task_id = self._id_factory()
        return task_id

    def update(self, task_id: str, **fields) -> Task:
        """Merge the given fields into an existing task."""
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        current = self._require(task_id)

        if "title" in fields:
            title = str(fields["title"]).strip()
            if not title:
                raise ValidationError("Task title cannot be empty.")
            fields["title"] = title
        if "tags" in fields:
            fields["tags"] = _clean_tags(fields["tags"] or ())
        if "due_date" in fields:
            due = fields["due_date"]
            if due is not None and (isinstance(due, bool) or not isinstance(due, int)):
                raise ValidationError("Due date must be epoch milliseconds or None.")
        if "completed" in fields:
            fields["completed"] = bool(fields["completed"])

        updated = dataclasses.replace(current, **fields)
        self._commit(updated if task.id == task_id else task for task in self._tasks)
        return updated

    def delete(self, task_id: str) -> None:
        """Delete a task; unknown ids are ignored."""
        self._commit(task for task in self._tasks if task.id != task_id)
        self._record("delete", task_id=task_id)

    def reorder(self, tasks: Sequence[Task]) -> Snapshot:
        """Replace the collection with a permutation of the current tasks."""
        new_ids = [task.id for task in tasks]
        current_ids = [task.id for task in self._tasks]
        if len(new_ids) != len(set(new_ids)) or sorted(new_ids) != sorted(current_ids):
            raise ValidationError("Reorder must contain exactly the existing tasks.")
        return self._commit(tasks)

    def move(self, task_id: str, new_index: int) -> Snapshot:
        """Move one task to ``new_index``, shifting the others."""
        task = self._require(task_id)
        remaining = [t for t in self._tasks if t.id != task_id]
        new_index = max(0, min(new_index, len(remaining)))
        remaining.insert(new_index, task)
        return self.reorder(remaining)

    def toggle_complete(self, task_id: str) -> Task:
        task = self._require(task_id)
        return self.update(task_id, completed=not task.completed)

    def set_due_date(self, task_id: str, due_date: Optional[int] = None) -> Task:
        """Set or clear (``None``) the due date, in epoch milliseconds."""
        return self.update(task_id, due_date=due_date)

    def add_tag(self, task_id: str, tag: str) -> Task:
        task = self._require(task_id)
        cleaned = tag.strip()
        if not cleaned or cleaned in task.tags:
            return task
        return self.update(task_id, tags=task.tags + (cleaned,))

    def remove_tag(self, task_id: str, tag: str) -> Task:
        task = self._require(task_id)
        return self.update(task_id, tags=[t for t in task.tags if t != tag])

    def add_examples(self) -> Snapshot:
        """Seed the example tasks shown on an empty list."""
        for title, tags in EXAMPLE_TASKS:
            self.create(title, tags)
        return self._tasks

    # ------------------------------------------------------------------ #
    # Import / export
    # ------------------------------------------------------------------ #
    def export_json(self) -> str:
        """Pretty-printed JSON of the current collection."""
        return dumps_tasks(self._tasks, indent=2)

    def export_snapshot(
        self, directory: Optional[Path] = None, today: Optional[date] = None
    ) -> Optional[Path]:
        """Write a dated backup file; reports the outcome instead of raising."""
        target_dir = Path(directory or self.export_dir or Path.cwd()).expanduser()
        path = target_dir / backup_filename(today)
        try:
            LocalStorage.ensure_dir(target_dir)
            path.write_text(self.export_json(), encoding="utf-8")
        except OSError:
            logger.exception("Failed to export tasks to %s", path)
            self.notifier.error("Could not export tasks.")
            return None
        self.notifier.success(f"Tasks exported to {path}")
        self._record("export", path=str(path), count=len(self._tasks))
        return path

    def import_snapshot(self, contents: str) -> bool:
        """Replace the collection with a validated backup; reports the outcome."""
        try:
            tasks = parse_import(contents)
        except ValidationError as exc:
            logger.warning("Rejected import: %s", exc)
            self.notifier.error("Invalid JSON file or format.")
            return False
        try:
            self._commit(tasks)
        except PersistenceError:
            return False
        self.notifier.success("Tasks imported successfully!")
        self._record("import", count=len(tasks))
        return True

    async def import_file(self, path: Path) -> bool:
        """Read a backup file without blocking the loop, then import it."""
        try:
            contents = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.exception("Failed to read import file %s", path)
            self.notifier.error("Failed to read the file.")
            return False
        # Applies to whatever the collection is now, not when the read started.
        return self.import_snapshot(contents)


__all__ = ["TaskStore", "STORAGE_KEY", "EXAMPLE_TASKS"]
