"""taskloom CLI entry point."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Tuple

import click

from . import __version__
from .config import Config
from .errors import NotFoundError, TaskloomError
from .notify import Notice, Notifier, Severity
from .state.store import TaskStore
from .state.tasks import Task, TaskFilter, format_due
from .utils.logger import setup_logging

SHORT_ID = 8


def _echo_notice(notice: Notice) -> None:
    click.echo(notice.message, err=notice.severity is not Severity.INFORMATION)


@contextmanager
def _operation() -> Iterator[None]:
    """Turn store errors into a one-line message and exit status 1."""
    try:
        yield
    except TaskloomError as exc:
        raise click.ClickException(str(exc)) from exc


def _resolve_id(store: TaskStore, prefix: str) -> str:
    """Accept a full id or any unique prefix of one."""
    if store.get(prefix):
        return prefix
    matches = [task.id for task in store.tasks if task.id.startswith(prefix)]
    if len(matches) != 1:
        raise NotFoundError(prefix)
    return matches[0]


def format_task(task: Task) -> str:
    """One-line rendering used by ``list`` and command echoes."""
    box = "[x]" if task.completed else "[ ]"
    parts = [box, task.id[:SHORT_ID], task.title]
    if task.due_date is not None:
        parts.append(f"(due {format_due(task.due_date)})")
    parts.extend(f"#{tag}" for tag in task.tags)
    return "  ".join(parts)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the task list (default: from config).",
)
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path]) -> None:
    """taskloom - a local, single-user task list."""
    config = Config()
    setup_logging(config.get("general.log_level", "warning"), config.get_path("general.log_file"))
    store = TaskStore.from_config(config, notifier=Notifier(sink=_echo_notice), data_dir=data_dir)
    ctx.obj = {"config": config, "store": store}
    ctx.call_on_close(store.close)

    if ctx.invoked_subcommand is None:
        _start_tui(config, store)


def _start_tui(config: Config, store: TaskStore) -> None:
    """Helper to launch the Textual TUI."""
    from .interactive import TaskloomApp

    app = TaskloomApp(
        store,
        poll_interval=config.get_float("ui.poll_interval", 1.0),
        quick_tags=config.get_list("ui.quick_tags", ["Work", "Personal", "Urgent"]),
    )
    app.run()


@main.command()
@click.pass_context
def tui(ctx: click.Context) -> None:
    """Start Textual TUI."""
    _start_tui(ctx.obj["config"], ctx.obj["store"])


@main.command()
@click.argument("title")
@click.option("-t", "--tag", "tags", multiple=True, help="Tag to attach (repeatable).")
@click.pass_obj
def add(obj: dict, title: str, tags: Tuple[str, ...]) -> None:
    """Add a task to the top of the list."""
    with _operation():
        task = obj["store"].create(title, list(tags))
    click.echo(f"Added {format_task(task)}")


@main.command(name="list")
@click.option(
    "--filter",
    "status",
    type=click.Choice([f.value for f in TaskFilter]),
    default=TaskFilter.ALL.value,
    show_default=True,
)
@click.option("--search", default="", help="Match title or tags (case-insensitive).")
@click.pass_obj
def list_tasks(obj: dict, status: str, search: str) -> None:
    """Show tasks in list order."""
    store: TaskStore = obj["store"]
    tasks = store.filter(TaskFilter(status), search)
    if not tasks:
        click.echo("No tasks match." if store.tasks else "No tasks yet. Try `taskloom examples`.")
        return
    for task in tasks:
        click.echo(format_task(task))


@main.command()
@click.argument("task_id")
@click.argument("title")
@click.pass_obj
def edit(obj: dict, task_id: str, title: str) -> None:
    """Change a task's title."""
    store: TaskStore = obj["store"]
    with _operation():
        task = store.update(_resolve_id(store, task_id), title=title)
    click.echo(format_task(task))


@main.command()
@click.argument("task_id")
@click.pass_obj
def toggle(obj: dict, task_id: str) -> None:
    """Mark a task done, or not done again."""
    store: TaskStore = obj["store"]
    with _operation():
        task = store.toggle_complete(_resolve_id(store, task_id))
    click.echo(format_task(task))


@main.command()
@click.argument("task_id")
@click.pass_obj
def rm(obj: dict, task_id: str) -> None:
    """Delete a task."""
    store: TaskStore = obj["store"]
    try:
        resolved = _resolve_id(store, task_id)
    except NotFoundError:
        click.echo(f"No task matches {task_id}; nothing deleted.")
        return
    with _operation():
        store.delete(resolved)
    click.echo(f"Deleted {resolved[:SHORT_ID]}")


@main.command()
@click.argument("task_id")
@click.argument("due_on", type=click.DateTime(formats=["%Y-%m-%d"]), required=False)
@click.option("--clear", is_flag=True, help="Remove the due date.")
@click.pass_obj
def due(obj: dict, task_id: str, due_on: Optional[datetime], clear: bool) -> None:
    """Set (YYYY-MM-DD) or clear a task's due date."""
    if due_on is None and not clear:
        raise click.UsageError("Give a date or --clear.")
    store: TaskStore = obj["store"]
    due_ms = None if clear or due_on is None else int(due_on.timestamp() * 1000)
    with _operation():
        task = store.set_due_date(_resolve_id(store, task_id), due_ms)
    click.echo(format_task(task))


@main.command(name="tag")
@click.argument("task_id")
@click.argument("tag")
@click.pass_obj
def tag_cmd(obj: dict, task_id: str, tag: str) -> None:
    """Attach a tag to a task."""
    store: TaskStore = obj["store"]
    with _operation():
        task = store.add_tag(_resolve_id(store, task_id), tag)
    click.echo(format_task(task))


@main.command()
@click.argument("task_id")
@click.argument("tag")
@click.pass_obj
def untag(obj: dict, task_id: str, tag: str) -> None:
    """Remove a tag from a task."""
    store: TaskStore = obj["store"]
    with _operation():
        task = store.remove_tag(_resolve_id(store, task_id), tag)
    click.echo(format_task(task))


@main.command()
@click.argument("task_id")
@click.argument("index", type=int)
@click.pass_obj
def move(obj: dict, task_id: str, index: int) -> None:
    """Move a task to a position in the list (0 is the top)."""
    store: TaskStore = obj["store"]
    with _operation():
        store.move(_resolve_id(store, task_id), index)
    for task in store.tasks:
        click.echo(format_task(task))


@main.command(name="export")
@click.argument(
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    required=False,
)
@click.pass_context
def export_cmd(ctx: click.Context, directory: Optional[Path]) -> None:
    """Write a dated JSON backup of all tasks."""
    if ctx.obj["store"].export_snapshot(directory) is None:
        ctx.exit(1)


@main.command(name="import")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def import_cmd(ctx: click.Context, file: Path) -> None:
    """Replace all tasks with the contents of a JSON backup."""
    if not asyncio.run(ctx.obj["store"].import_file(file)):
        ctx.exit(1)


@main.command()
@click.pass_obj
def examples(obj: dict) -> None:
    """Add a few example tasks."""
    with _operation():
        obj["store"].add_examples()
    for task in obj["store"].tasks:
        click.echo(format_task(task))


if __name__ == "__main__":
    main()
