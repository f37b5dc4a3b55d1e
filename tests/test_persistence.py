from pathlib import Path

import pytest

from taskloom.errors import PersistenceError
from taskloom.state.persistence import LocalStorage


def test_slot_round_trip(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path / "slots")

    # Initially empty
    assert storage.get_item("taskloom:tasks:v1") is None

    storage.set_item("taskloom:tasks:v1", '[{"id": "1"}]')
    assert storage.get_item("taskloom:tasks:v1") == '[{"id": "1"}]'
    assert storage.path_for("taskloom:tasks:v1").name == "taskloom_tasks_v1.json"

    # Remove, twice
    storage.remove_item("taskloom:tasks:v1")
    storage.remove_item("taskloom:tasks:v1")
    assert storage.get_item("taskloom:tasks:v1") is None


def test_write_leaves_no_temp_files(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    storage.set_item("k", "one")
    storage.set_item("k", "two")

    assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]


def test_quota_exceeded(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path, quota_bytes=4)
    storage.set_item("k", "1234")

    with pytest.raises(PersistenceError):
        storage.set_item("k", "12345")
    assert storage.get_item("k") == "1234"


def test_poll_reports_changes_from_other_writers(tmp_path: Path) -> None:
    mine = LocalStorage(tmp_path)
    other = LocalStorage(tmp_path)
    events = []
    mine.add_listener(events.append)

    mine.set_item("k", "[]")
    # Own writes are not echoed back
    assert mine.poll() == []

    other.set_item("k", '[{"id": "x"}]')
    (event,) = mine.poll()
    assert event.key == "k"
    assert event.old_value == "[]"
    assert event.new_value == '[{"id": "x"}]'
    assert events == [event]

    # Nothing new since the last poll
    assert mine.poll() == []


def test_poll_reports_removal_and_listener_removal(tmp_path: Path) -> None:
    mine = LocalStorage(tmp_path)
    other = LocalStorage(tmp_path)
    events = []
    mine.add_listener(events.append)
    mine.set_item("k", "[]")

    other.remove_item("k")
    (event,) = mine.poll()
    assert event.new_value is None

    mine.remove_listener(events.append)
    other.set_item("k", "[1]")
    mine.poll()
    assert len(events) == 1


def test_undecodable_slot_raises_persistence_error(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    storage.path_for("k").write_bytes(b"\xff\xfe[]")

    with pytest.raises(PersistenceError):
        storage.get_item("k")


def test_poll_skips_undecodable_change(tmp_path: Path) -> None:
    mine = LocalStorage(tmp_path)
    events = []
    mine.add_listener(events.append)
    mine.set_item("k", "[]")

    mine.path_for("k").write_bytes(b"\xff\xfe[]")
    assert mine.poll() == []
    assert mine.poll() == []
    assert events == []
