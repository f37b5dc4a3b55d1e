"""Task records and list filters."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class TaskFilter(Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Task:
    """A single to-do item. Changes produce a new record with the same id."""

    id: str
    title: str
    completed: bool = False
    created_at: int = 0
    due_date: Optional[int] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation (camelCase keys, epoch ms)."""
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "createdAt": self.created_at,
        }
        if self.due_date is not None:
            data["dueDate"] = self.due_date
        data["tags"] = list(self.tags)
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Task":
        """Create from the wire representation."""
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise TypeError("tags must be a list")
        due = data.get("dueDate")
        return Task(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            completed=bool(data.get("completed", False)),
            created_at=_epoch_ms(data.get("createdAt") or 0, "createdAt"),
            due_date=_epoch_ms(due, "dueDate") if due is not None else None,
            tags=normalize_tags(str(tag) for tag in tags),
        )

    def matches(self, search: str) -> bool:
        """Case-insensitive substring match on the title or any tag."""
        needle = search.lower()
        if needle in self.title.lower():
            return True
        return any(needle in tag.lower() for tag in self.tags)


def _epoch_ms(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite")
    return int(value)


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Trim, drop blanks and duplicates, keep first-seen order."""
    result: list[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return tuple(result)


def format_due(due_ms: int) -> str:
    """Render an epoch-ms due date as e.g. ``May 01, 2024`` in local time."""
    return datetime.fromtimestamp(due_ms / 1000).strftime("%b %d, %Y")


__all__ = ["Task", "TaskFilter", "format_due", "normalize_tags"]
