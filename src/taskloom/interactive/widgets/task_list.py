"""Task list widget for interactive mode."""

from __future__ import annotations

from typing import List, Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Label, ListItem, ListView

from ...state.tasks import Task, format_due


class TaskListWidget(Widget):
    """Widget displaying active tasks followed by completed ones."""

    DEFAULT_CSS = """
    TaskListWidget Vertical {
        height: 100%;
    }

    TaskListWidget ListView {
        height: 1fr;
    }
    """

    tasks: List[Task] = reactive([], layout=True, always_update=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.border_title = "Tasks"

    def compose(self) -> ComposeResult:
        with Vertical():
            yield ListView(id="task-list-view")

    def watch_tasks(self, tasks: List[Task]) -> None:
        list_view = self.query_one("#task-list-view", ListView)
        previous = list_view.index
        list_view.clear()

        for task in tasks:
            list_view.append(ListItem(Label(self.render_task(task))))

        done = sum(1 for task in tasks if task.completed)
        self.border_title = f"Tasks ({len(tasks) - done} active, {done} done)"
        if tasks and previous is not None:
            self.call_after_refresh(self._restore_index, min(previous, len(tasks) - 1))

    def _restore_index(self, index: int) -> None:
        self.query_one("#task-list-view", ListView).index = index

    @staticmethod
    def render_task(task: Task) -> Text:
        text = Text()
        if task.completed:
            text.append("● ", style="green")
            text.append(task.title, style="strike dim")
        else:
            text.append("○ ", style="#888888")
            text.append(task.title)
        if task.due_date is not None:
            text.append(f"  {format_due(task.due_date)}", style="dim")
        for tag in task.tags:
            text.append(f"  #{tag}", style="cyan")
        return text

    def update_tasks(self, tasks: List[Task]) -> None:
        self.tasks = tasks

    @property
    def selected(self) -> Optional[Task]:
        index = self.query_one("#task-list-view", ListView).index
        if index is None or index >= len(self.tasks):
            return None
        return self.tasks[index]
