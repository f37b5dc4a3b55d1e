import json
from datetime import date

import pytest

from taskloom.errors import PersistenceError, ValidationError
from taskloom.state.snapshot import backup_filename, dumps_tasks, loads_tasks, parse_import
from taskloom.state.tasks import Task


def test_wire_format_uses_camel_case() -> None:
    task = Task(id="1", title="t", completed=True, created_at=5, due_date=9, tags=("a",))
    (data,) = json.loads(dumps_tasks([task]))

    assert data == {
        "id": "1",
        "title": "t",
        "completed": True,
        "createdAt": 5,
        "dueDate": 9,
        "tags": ["a"],
    }


def test_pretty_printed_export() -> None:
    text = dumps_tasks([Task(id="1", title="t")], indent=2)
    assert text.startswith("[\n  {")


def test_loads_tasks_is_lenient_about_optional_fields() -> None:
    (task,) = loads_tasks('[{"id": "1", "title": "t"}]')
    assert task == Task(id="1", title="t")


@pytest.mark.parametrize("raw", ["{", '{"tasks": []}', '[{"title": "no id"}]', '[{"id": "1", "tags": "x"}]'])
def test_loads_tasks_rejects_corrupt_slot(raw: str) -> None:
    with pytest.raises(PersistenceError):
        loads_tasks(raw)


def test_parse_import_errors_name_the_problem() -> None:
    with pytest.raises(ValidationError, match="item 1 has no title"):
        parse_import('[{"id": "1", "title": "ok"}, {"id": "2"}]')
    with pytest.raises(ValidationError, match="item 0 has no id"):
        parse_import('[{"id": 7, "title": "numeric id"}]')
    with pytest.raises(ValidationError):
        parse_import('[{"id": "1", "title": "bad date", "createdAt": "yesterday"}]')


def test_parse_import_empty_array() -> None:
    assert parse_import("[]") == ()


def test_backup_filename() -> None:
    assert backup_filename(date(2024, 1, 31)) == "taskloom_backup_2024-01-31.json"
