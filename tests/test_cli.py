import logging
from datetime import date
from pathlib import Path

import pytest
from click.testing import CliRunner

from taskloom.cli import main
from taskloom.state.persistence import LocalStorage
from taskloom.state.snapshot import loads_tasks
from taskloom.state.store import STORAGE_KEY


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)

    # The CLI installs its own root handlers; put the test ones back afterwards
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def invoke(tmp_path: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(main, ["--data-dir", str(tmp_path / "data"), *args])


def stored_tasks(tmp_path: Path):
    raw = LocalStorage(tmp_path / "data").get_item(STORAGE_KEY)
    return loads_tasks(raw) if raw else ()


def test_add_and_list(tmp_path: Path) -> None:
    result = invoke(tmp_path, "add", "Buy milk", "-t", "Personal")
    assert result.exit_code == 0, result.output
    assert "Added [ ]" in result.output

    result = invoke(tmp_path, "list")
    assert "Buy milk" in result.output
    assert "#Personal" in result.output


def test_list_when_empty(tmp_path: Path) -> None:
    result = invoke(tmp_path, "list")
    assert result.exit_code == 0
    assert "No tasks yet" in result.output


def test_add_blank_title_fails(tmp_path: Path) -> None:
    result = invoke(tmp_path, "add", "   ")
    assert result.exit_code == 1
    assert "Error: Task title cannot be empty." in result.output
    assert stored_tasks(tmp_path) == ()


def test_toggle_by_id_prefix_and_filter(tmp_path: Path) -> None:
    invoke(tmp_path, "add", "first")
    invoke(tmp_path, "add", "second")
    first = stored_tasks(tmp_path)[1]

    result = invoke(tmp_path, "toggle", first.id[:8])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("[x]")

    completed = invoke(tmp_path, "list", "--filter", "completed").output
    active = invoke(tmp_path, "list", "--filter", "active").output
    assert "first" in completed and "second" not in completed
    assert "second" in active and "first" not in active


def test_unknown_id(tmp_path: Path) -> None:
    result = invoke(tmp_path, "toggle", "deadbeef")
    assert result.exit_code == 1
    assert "Task not found: deadbeef" in result.output


def test_rm_missing_is_not_an_error(tmp_path: Path) -> None:
    invoke(tmp_path, "add", "stay")
    result = invoke(tmp_path, "rm", "T2")
    assert result.exit_code == 0
    assert "nothing deleted" in result.output
    assert "Deleted" not in result.output
    assert len(stored_tasks(tmp_path)) == 1


def test_rm_by_prefix(tmp_path: Path) -> None:
    invoke(tmp_path, "add", "go away")
    task_id = stored_tasks(tmp_path)[0].id

    result = invoke(tmp_path, "rm", task_id[:6])
    assert result.exit_code == 0
    assert f"Deleted {task_id[:8]}" in result.output
    assert stored_tasks(tmp_path) == ()


def test_edit_due_tag_untag(tmp_path: Path) -> None:
    invoke(tmp_path, "add", "draft")
    task_id = stored_tasks(tmp_path)[0].id

    assert "final" in invoke(tmp_path, "edit", task_id, "final").output

    result = invoke(tmp_path, "due", task_id, "2024-05-01")
    assert "(due May 01, 2024)" in result.output
    result = invoke(tmp_path, "due", task_id, "--clear")
    assert "due" not in result.output
    assert invoke(tmp_path, "due", task_id).exit_code == 2

    assert "#Work" in invoke(tmp_path, "tag", task_id, "Work").output
    assert "#Work" not in invoke(tmp_path, "untag", task_id, "Work").output


def test_move(tmp_path: Path) -> None:
    for title in ("a", "b", "c"):
        invoke(tmp_path, "add", title)
    a = stored_tasks(tmp_path)[2]

    result = invoke(tmp_path, "move", a.id, "0")
    assert result.exit_code == 0, result.output
    assert [t.title for t in stored_tasks(tmp_path)] == ["a", "c", "b"]


def test_export_and_import(tmp_path: Path) -> None:
    invoke(tmp_path, "add", "keep me", "-t", "Work")
    before = stored_tasks(tmp_path)

    result = invoke(tmp_path, "export", str(tmp_path / "out"))
    assert result.exit_code == 0, result.output
    backup = tmp_path / "out" / f"taskloom_backup_{date.today().isoformat()}.json"
    assert backup.exists()

    invoke(tmp_path, "add", "scratch")
    result = invoke(tmp_path, "import", str(backup))
    assert result.exit_code == 0, result.output
    assert "Tasks imported successfully!" in result.output
    assert stored_tasks(tmp_path) == before


def test_import_rejects_bad_file(tmp_path: Path) -> None:
    invoke(tmp_path, "add", "keep me")
    bad = tmp_path / "bad.json"
    bad.write_text('[{"foo": "bar"}]', encoding="utf-8")

    result = invoke(tmp_path, "import", str(bad))
    assert result.exit_code == 1
    assert "Invalid JSON file or format." in result.output
    assert [t.title for t in stored_tasks(tmp_path)] == ["keep me"]


def test_examples(tmp_path: Path) -> None:
    result = invoke(tmp_path, "examples")
    assert result.exit_code == 0
    assert "Design new dashboard" in result.output
    assert len(stored_tasks(tmp_path)) == 3
