"""Namespaced key-value slots persisted as files, with atomic writes."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import PersistenceError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(frozen=True)
class StorageEvent:
    """A slot was changed by another writer."""

    key: str
    old_value: Optional[str]
    new_value: Optional[str]


StorageListener = Callable[[StorageEvent], None]


class LocalStorage:
    """
    File-backed key-value storage.

    Each key maps to one JSON file in ``root``. Writes go through a temp file
    and a move so a reader never observes a half-written slot.

    Changes made by other processes are picked up by ``poll()``, which
    compares file signatures with the last ones this instance saw and
    dispatches a ``StorageEvent`` to every listener. Writes made through this
    instance never produce events for itself.
    """

    def __init__(self, root: Path, quota_bytes: Optional[int] = None) -> None:
        self.root = Path(root)
        self.quota_bytes = quota_bytes
        self._listeners: List[StorageListener] = []
        self._seen: Dict[str, Tuple[Optional[Tuple[int, int]], Optional[str]]] = {}

    def path_for(self, key: str) -> Path:
        """Return the file backing ``key``."""
        return self.root / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    # ------------------------------------------------------------------ #
    # Slot access
    # ------------------------------------------------------------------ #
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored text for ``key`` or None if the slot is empty."""
        path = self.path_for(key)
        if not path.exists():
            self._seen[key] = (None, None)
            return None
        try:
            value = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Could not read {path}: {exc}") from exc
        self._seen[key] = (self._signature(path), value)
        return value

    def set_item(self, key: str, value: str) -> None:
        """Overwrite the slot for ``key``."""
        if self.quota_bytes is not None and len(value.encode("utf-8")) > self.quota_bytes:
            raise PersistenceError(
                f"Storage quota exceeded for {key!r} ({self.quota_bytes} bytes)"
            )
        path = self.path_for(key)
        try:
            self._atomic_write(path, value)
        except OSError as exc:
            raise PersistenceError(f"Could not write {path}: {exc}") from exc
        self._seen[key] = (self._signature(path), value)
        logger.debug("slot written key=%s bytes=%d", key, len(value))

    def remove_item(self, key: str) -> None:
        """Clear the slot for ``key``; a missing slot is not an error."""
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise PersistenceError(f"Could not remove {path}: {exc}") from exc
        self._seen[key] = (None, None)

    # ------------------------------------------------------------------ #
    # Change notification
    # ------------------------------------------------------------------ #
    def add_listener(self, listener: StorageListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StorageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def poll(self) -> List[StorageEvent]:
        """Dispatch events for slots another writer changed since last seen."""
        events: List[StorageEvent] = []
        for key, (signature, old_value) in list(self._seen.items()):
            path = self.path_for(key)
            current = self._signature(path)
            if current == signature:
                continue
            new_value: Optional[str] = None
            if current is not None:
                try:
                    new_value = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError):
                    logger.exception("Failed to read changed slot key=%s", key)
                    self._seen[key] = (current, old_value)
                    continue
            self._seen[key] = (current, new_value)
            if new_value == old_value:
                continue
            events.append(StorageEvent(key=key, old_value=old_value, new_value=new_value))

        for event in events:
            logger.info("external change detected key=%s", event.key)
            for listener in list(self._listeners):
                listener(event)
        return events

    # ------------------------------------------------------------------ #
    # File helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _signature(path: Path) -> Optional[Tuple[int, int]]:
        try:
            st = path.stat()
        except OSError:
            return None
        return (st.st_mtime_ns, st.st_size)

    @staticmethod
    def _atomic_write(file_path: Path, text: str) -> None:
        LocalStorage.ensure_dir(file_path.parent)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=file_path.parent, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as fp:
                fp.write(text)
                fp.flush()
                os.fsync(fp.fileno())
            shutil.move(tmp_path, file_path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    @staticmethod
    def ensure_dir(dir_path: Path) -> None:
        """Create directory if it doesn't exist."""
        dir_path.mkdir(parents=True, exist_ok=True)
