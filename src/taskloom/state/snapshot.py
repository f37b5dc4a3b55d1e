"""JSON encoding of task collections for the storage slot and backup files."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Iterable, Optional, Tuple

from ..errors import PersistenceError, ValidationError
from .tasks import Task

BACKUP_PREFIX = "taskloom"


def dumps_tasks(tasks: Iterable[Task], indent: Optional[int] = None) -> str:
    """Serialize tasks as a JSON array."""
    return json.dumps([task.to_dict() for task in tasks], indent=indent, ensure_ascii=False)


def loads_tasks(text: str) -> Tuple[Task, ...]:
    """
    Decode the storage slot.

    This is lenient about missing optional fields but raises
    ``PersistenceError`` when the slot does not hold a list of task objects.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PersistenceError(f"Stored tasks are not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise PersistenceError("Stored tasks are not a JSON array")
    try:
        return tuple(Task.from_dict(item) for item in data)
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise PersistenceError(f"Stored tasks are corrupted: {exc}") from exc


def parse_import(text: str) -> Tuple[Task, ...]:
    """
    Validate a user-supplied backup file.

    All-or-nothing: every element must be an object with a non-empty string
    ``id`` and ``title``, and ids must be unique.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc.msg}") from exc

    if not isinstance(data, list):
        raise ValidationError("Invalid file format: expected a JSON array of tasks")

    seen = set()
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValidationError(f"Invalid file format: item {index} is not an object")
        task_id = item.get("id")
        title = item.get("title")
        if not isinstance(task_id, str) or not task_id:
            raise ValidationError(f"Invalid file format: item {index} has no id")
        if not isinstance(title, str) or not title:
            raise ValidationError(f"Invalid file format: item {index} has no title")
        if task_id in seen:
            raise ValidationError(f"Invalid file format: duplicate id {task_id}")
        seen.add(task_id)

    try:
        return tuple(Task.from_dict(item) for item in data)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"Invalid file format: {exc}") from exc


def backup_filename(today: Optional[date] = None) -> str:
    """Name of the export file, e.g. ``taskloom_backup_2024-05-01.json``."""
    today = today or date.today()
    return f"{BACKUP_PREFIX}_backup_{today.isoformat()}.json"


__all__ = ["dumps_tasks", "loads_tasks", "parse_import", "backup_filename"]
