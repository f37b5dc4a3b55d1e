from pathlib import Path

from taskloom.config import ConfigLoader


def test_defaults_written_on_first_run(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("TASKLOOM_STORAGE__KEY", raising=False)
    global_dir = tmp_path / "global"
    config = ConfigLoader(global_dir=global_dir, project_dir=tmp_path / "none")

    assert (global_dir / "config.toml").exists()
    assert config.get("storage.key") == "taskloom:tasks:v1"
    assert config.get_list("ui.quick_tags", []) == ["Work", "Personal", "Urgent"]
    assert config.get_float("ui.poll_interval", 0.0) == 1.0

    # Reloading the written file gives the same values
    again = ConfigLoader(global_dir=global_dir, project_dir=tmp_path / "none")
    assert again.get_int("storage.quota_bytes") == config.get_int("storage.quota_bytes")


def test_project_config_overrides_global(tmp_path: Path) -> None:
    project_dir = tmp_path / ".taskloom"
    project_dir.mkdir()
    (project_dir / "config.toml").write_text(
        '[storage]\ndata_dir = "' + (tmp_path / "data").as_posix() + '"\n'
        '[export]\ndirectory = "' + (tmp_path / "out").as_posix() + '"\n',
        encoding="utf-8",
    )

    config = ConfigLoader(global_dir=tmp_path / "global", project_dir=project_dir)

    assert config.data_dir == tmp_path / "data"
    assert config.export_dir == tmp_path / "out"
    # Untouched keys keep their defaults
    assert config.get("storage.key") == "taskloom:tasks:v1"


def test_env_overrides(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TASKLOOM_UI__POLL_INTERVAL", "2.5")
    monkeypatch.setenv("TASKLOOM_UI__QUICK_TAGS", "Home, Errands")
    monkeypatch.setenv("TASKLOOM_STORAGE__QUOTA_BYTES", "oops")

    config = ConfigLoader(global_dir=tmp_path / "global", project_dir=tmp_path / "none")

    assert config.get_float("ui.poll_interval", 1.0) == 2.5
    assert config.get_list("ui.quick_tags", []) == ["Home", "Errands"]
    assert config.get_int("storage.quota_bytes", 42) == 42


def test_get_missing_key_returns_default(tmp_path: Path) -> None:
    config = ConfigLoader(global_dir=tmp_path / "global", project_dir=tmp_path / "none")
    assert config.get("nope.nothing", "fallback") == "fallback"
    assert config.get_path("export.directory") is None
