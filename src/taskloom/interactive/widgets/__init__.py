"""Interactive mode widgets."""

from .task_list import TaskListWidget
from .prompt_modal import PromptModal

__all__ = ["TaskListWidget", "PromptModal"]
