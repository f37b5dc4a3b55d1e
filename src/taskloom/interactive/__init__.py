"""Textual interactive mode."""

from .app import TaskloomApp

__all__ = ["TaskloomApp"]
