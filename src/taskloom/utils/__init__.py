"""Utility helpers."""

from .logger import ActivityLog, setup_logging

__all__ = ["ActivityLog", "setup_logging"]
