"""Textual application for interactive mode."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Button, Footer, Input

from ..errors import TaskloomError
from ..notify import Notice
from ..state.store import TaskStore
from ..state.tasks import Task, TaskFilter
from .widgets import PromptModal, TaskListWidget


class TaskloomApp(App):
    """taskloom interactive mode TUI."""

    CSS = """
    Screen {
        layout: vertical;
    }

    .toolbar {
        height: auto;
        padding: 0 1;
    }

    .toolbar Input {
        width: 1fr;
    }

    .toolbar Button {
        min-width: 10;
        margin-left: 1;
    }

    #task-list-widget {
        height: 1fr;
        border: tall $primary;
    }
    """

    BINDINGS = [
        Binding("ctrl+n", "focus_composer", "New"),
        Binding("ctrl+f", "focus_search", "Search"),
        Binding("space", "toggle", "Done"),
        Binding("delete", "delete", "Delete"),
        Binding("shift+up", "move_up", "Move up"),
        Binding("shift+down", "move_down", "Move down"),
        Binding("e", "edit_title", "Edit"),
        Binding("t", "add_tag", "Tag"),
        Binding("u", "remove_tag", "Untag"),
        Binding("d", "set_due", "Due"),
        Binding("ctrl+s", "export", "Export"),
        Binding("ctrl+o", "import", "Import"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        store: TaskStore,
        *args,
        poll_interval: float = 1.0,
        quick_tags: Sequence[str] = ("Work", "Personal", "Urgent"),
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.store = store
        self.poll_interval = poll_interval
        self.quick_tags = list(quick_tags)
        self.pending_tags: List[str] = []
        self.task_filter = TaskFilter.ALL
        self.search_text = ""
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        with Horizontal(classes="toolbar"):
            yield Input(placeholder="What needs to be done?", id="composer")
            for index, tag in enumerate(self.quick_tags):
                yield Button(tag, id=f"quick-tag-{index}")
        with Horizontal(classes="toolbar"):
            yield Input(placeholder="Search tasks or tags...", id="search")
            for task_filter in TaskFilter:
                yield Button(
                    task_filter.value.title(),
                    id=f"filter-{task_filter.value}",
                    variant="primary" if task_filter is self.task_filter else "default",
                )
            yield Button("Examples", id="examples-button")

        self.task_list = TaskListWidget(id="task-list-widget")
        yield self.task_list
        yield Footer()

    def on_mount(self) -> None:
        self.store.notifier.sink = self._show_notice
        self._unsubscribe = self.store.subscribe(lambda _snapshot: self.refresh_tasks())
        self.set_interval(self.poll_interval, self.store.storage.poll)
        self.refresh_tasks()
        self.query_one("#composer", Input).focus()

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        self.store.notifier.sink = None

    def _show_notice(self, notice: Notice) -> None:
        self.notify(notice.message, severity=notice.severity.value)

    def visible_tasks(self) -> List[Task]:
        """Filtered tasks, active first then completed, each in list order."""
        tasks = self.store.filter(self.task_filter, self.search_text)
        return [t for t in tasks if not t.completed] + [t for t in tasks if t.completed]

    def refresh_tasks(self) -> None:
        self.task_list.update_tasks(self.visible_tasks())

    def _run(self, operation, *args, **kwargs) -> Optional[object]:
        """Call a store operation, showing failures as a toast."""
        try:
            return operation(*args, **kwargs)
        except TaskloomError as exc:
            self.notify(str(exc), severity="error")
            return None

    # ------------------------------------------------------------------ #
    # Composer, search, filters
    # ------------------------------------------------------------------ #
    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "composer":
            return
        title = event.value.strip()
        if not title:
            return
        task = self._run(self.store.create, title, list(self.pending_tags))
        if task is None:
            self.notify("Failed to create task.", severity="error")
            return
        self.notify(f'Task "{title[:20]}" added.')
        event.input.value = ""
        self.pending_tags = []
        for index in range(len(self.quick_tags)):
            self.query_one(f"#quick-tag-{index}", Button).variant = "default"

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self.search_text = event.value
            self.refresh_tasks()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("quick-tag-"):
            tag = self.quick_tags[int(button_id.rsplit("-", 1)[1])]
            if tag in self.pending_tags:
                self.pending_tags.remove(tag)
                event.button.variant = "default"
            else:
                self.pending_tags.append(tag)
                event.button.variant = "primary"
        elif button_id.startswith("filter-"):
            self.task_filter = TaskFilter(button_id[len("filter-") :])
            for task_filter in TaskFilter:
                button = self.query_one(f"#filter-{task_filter.value}", Button)
                button.variant = "primary" if task_filter is self.task_filter else "default"
            self.refresh_tasks()
        elif button_id == "examples-button":
            self._run(self.store.add_examples)

    # ------------------------------------------------------------------ #
    # Actions on the selected task
    # ------------------------------------------------------------------ #
    def action_focus_composer(self) -> None:
        self.query_one("#composer", Input).focus()

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_toggle(self) -> None:
        task = self.task_list.selected
        if task:
            self._run(self.store.toggle_complete, task.id)

    def action_delete(self) -> None:
        task = self.task_list.selected
        if task:
            self._run(self.store.delete, task.id)

    def action_move_up(self) -> None:
        self._move_selected(-1)

    def action_move_down(self) -> None:
        self._move_selected(1)

    def _move_selected(self, offset: int) -> None:
        """Swap places with the neighbouring visible task, like a drag onto it."""
        task = self.task_list.selected
        if not task:
            return
        visible = self.task_list.tasks
        position = visible.index(task) + offset
        if position < 0 or position >= len(visible):
            return
        target = visible[position]
        if target.completed != task.completed:
            return
        full_ids = [t.id for t in self.store.tasks]
        self._run(self.store.move, task.id, full_ids.index(target.id))

    def action_edit_title(self) -> None:
        task = self.task_list.selected
        if task:
            self.run_worker(self._prompt_and_apply(task, "edit"))

    def action_add_tag(self) -> None:
        task = self.task_list.selected
        if task:
            self.run_worker(self._prompt_and_apply(task, "tag"))

    def action_remove_tag(self) -> None:
        task = self.task_list.selected
        if task and task.tags:
            self.run_worker(self._prompt_and_apply(task, "untag"))

    def action_set_due(self) -> None:
        task = self.task_list.selected
        if task:
            self.run_worker(self._prompt_and_apply(task, "due"))

    async def _prompt_and_apply(self, task: Task, kind: str) -> None:
        """Show a prompt for the selected task and apply the answer."""
        if kind == "edit":
            value = await self.push_screen_wait(PromptModal("Edit title", value=task.title))
            if value:
                self._run(self.store.update, task.id, title=value)
        elif kind == "tag":
            value = await self.push_screen_wait(PromptModal("Add tag", placeholder="New tag..."))
            if value:
                self._run(self.store.add_tag, task.id, value)
        elif kind == "untag":
            value = await self.push_screen_wait(
                PromptModal("Remove tag", placeholder=", ".join(task.tags))
            )
            if value:
                self._run(self.store.remove_tag, task.id, value)
        elif kind == "due":
            value = await self.push_screen_wait(
                PromptModal("Due date (YYYY-MM-DD, empty to clear)", allow_empty=True)
            )
            if value is None:
                return
            if not value:
                self._run(self.store.set_due_date, task.id, None)
                return
            try:
                due = datetime.strptime(value, "%Y-%m-%d")
            except ValueError:
                self.notify(f"Not a date: {value}", severity="error")
                return
            self._run(self.store.set_due_date, task.id, int(due.timestamp() * 1000))

    # ------------------------------------------------------------------ #
    # Import / export
    # ------------------------------------------------------------------ #
    def action_export(self) -> None:
        self.store.export_snapshot()

    def action_import(self) -> None:
        self.run_worker(self._import_from_prompt())

    async def _import_from_prompt(self) -> None:
        value = await self.push_screen_wait(
            PromptModal("Import tasks from JSON file", placeholder="path/to/backup.json")
        )
        if value:
            await self.store.import_file(Path(value).expanduser())
