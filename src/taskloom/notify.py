"""User-facing notifications for store outcomes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A single dismissible message for the user."""

    message: str
    severity: Severity = Severity.INFORMATION


class Notifier:
    """
    Collects success/warning/error reports and forwards them to a sink.

    The sink is whatever the presentation layer uses to show messages
    (textual toasts, click output). Without a sink, notices are only logged.
    """

    def __init__(self, sink: Optional[Callable[[Notice], None]] = None) -> None:
        self.sink = sink
        self.history: List[Notice] = []

    def success(self, message: str) -> None:
        self._emit(Notice(message, Severity.INFORMATION))

    def warning(self, message: str) -> None:
        self._emit(Notice(message, Severity.WARNING))

    def error(self, message: str) -> None:
        self._emit(Notice(message, Severity.ERROR))

    def _emit(self, notice: Notice) -> None:
        self.history.append(notice)
        level = {
            Severity.INFORMATION: logging.INFO,
            Severity.WARNING: logging.WARNING,
            Severity.ERROR: logging.ERROR,
        }[notice.severity]
        logger.log(level, "notice: %s", notice.message)
        if self.sink is not None:
            self.sink(notice)


__all__ = ["Notifier", "Notice", "Severity"]
