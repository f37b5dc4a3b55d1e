"""Logging setup and the per-store activity log."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union


class _ConsoleFilter(logging.Filter):
    """Keep taskloom logs on the console; third-party output only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "taskloom" or record.name.startswith("taskloom."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(level: Union[str, int] = "warning", log_file: Optional[Path] = None) -> None:
    """
    Configure the root logger with a console handler and an optional file.

    Call once from the entry point, before the store is constructed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleFilter())
    root.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)


class ActivityLog:
    """Appends store events as JSON lines to ``<log_dir>/activity.log``."""

    def __init__(self, log_dir: Path) -> None:
        self.logs_dir = Path(log_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.logs_dir / "activity.log"

    def _write(self, payload: dict) -> None:
        entry = {"timestamp": datetime.now(timezone.utc).isoformat(), **payload}
        with self.path.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def record(self, event: str, **details: Any) -> None:
        self._write({"event": event, **details})

    def read(self) -> list[dict]:
        """Return all recorded entries, oldest first."""
        if not self.path.exists():
            return []
        entries = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line:
                entries.append(json.loads(line))
        return entries
