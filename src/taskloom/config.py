"""Configuration loader for taskloom (global + project with TOML-based defaults)."""

from __future__ import annotations

import os
import platform
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional


class ConfigLoader:
    """
    Handles configuration loading from multiple sources with priority resolution.

    Priority (highest → lowest):
    1. Command-line arguments (not handled here)
    2. Environment variables (TASKLOOM_<SECTION>__<KEY>)
    3. Project config (.taskloom/config.toml)
    4. Global config (~/.config/taskloom/config.toml)
    5. Built-in defaults
    """

    ENV_PREFIX = "TASKLOOM_"

    def __init__(
        self,
        global_dir: Optional[Path] = None,
        project_dir: Optional[Path] = None,
    ) -> None:
        self.global_dir = Path(global_dir) if global_dir else self.get_global_config_dir()
        self.project_dir = Path(project_dir) if project_dir else self.get_project_config_dir()

        self.config: Dict[str, Any] = {}
        self._load_all()

    # ------------------------------------------------------------------ #
    # Public getters
    # ------------------------------------------------------------------ #
    def get(self, key: str, default: Any = None) -> Any:
        """Get config value by dot-separated key."""
        keys = key.split(".")
        value: Any = self.config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default

    def get_path(self, key: str, default: Optional[Path] = None) -> Optional[Path]:
        value = self.get(key)
        if value in (None, ""):
            return default
        return Path(str(value)).expanduser()

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(key)
        if value in (None, ""):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float) -> float:
        value = self.get(key)
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def get_list(self, key: str, default: List[str]) -> List[str]:
        value = self.get(key)
        if isinstance(value, list):
            return [str(v) for v in value]
        if isinstance(value, str) and value.strip():
            return [p.strip() for p in value.split(",") if p.strip()]
        return list(default)

    @property
    def data_dir(self) -> Path:
        return self.get_path("storage.data_dir") or self.get_data_dir()

    @property
    def export_dir(self) -> Path:
        return self.get_path("export.directory") or Path.cwd()

    # ------------------------------------------------------------------ #
    # Load/merge helpers
    # ------------------------------------------------------------------ #
    def _load_all(self) -> None:
        """Load all configuration files with proper priority."""
        self._load_global_config()
        if self.project_dir:
            self._load_project_config()
        self._apply_env_overrides()

    def _load_global_config(self) -> None:
        """Load global configuration."""
        self.config = self._get_default_config()
        config_file = self.global_dir / "config.toml"
        if config_file.exists():
            with open(config_file, "rb") as f:
                self._deep_merge(self.config, tomllib.load(f))
        else:
            self._create_default_config()

    def _load_project_config(self) -> None:
        """Load project-specific config and merge with global."""
        config_file = self.project_dir / "config.toml"
        if config_file.exists():
            with open(config_file, "rb") as f:
                project_config = tomllib.load(f)
                self._deep_merge(self.config, project_config)

    def _apply_env_overrides(self) -> None:
        """Apply TASKLOOM_SECTION__KEY environment overrides."""
        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue
            config_key = key[len(self.ENV_PREFIX) :].lower().replace("__", ".")
            if "." not in config_key:
                continue
            self._set_nested(self.config, config_key, value)

    # ------------------------------------------------------------------ #
    # Static paths/helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def get_global_config_dir() -> Path:
        """Get platform-specific global config directory following XDG spec."""
        system = platform.system()
        if system == "Windows":
            base = Path(os.environ.get("APPDATA", "~\\AppData\\Roaming")).expanduser()
        elif system == "Darwin":
            xdg = os.environ.get("XDG_CONFIG_HOME")
            base = Path(xdg) if xdg else Path.home() / ".config"
        else:
            base = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
        return base / "taskloom"

    @staticmethod
    def get_data_dir() -> Path:
        """Default directory for the task slot and activity log."""
        if platform.system() == "Windows":
            base = Path(os.environ.get("LOCALAPPDATA", "~\\AppData\\Local")).expanduser()
        else:
            base = Path(os.environ.get("XDG_DATA_HOME", "~/.local/share")).expanduser()
        return base / "taskloom"

    @staticmethod
    def get_project_config_dir() -> Path | None:
        """Find .taskloom directory in current or parent directories."""
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_dir = parent / ".taskloom"
            if config_dir.is_dir():
                return config_dir
        return None

    # ------------------------------------------------------------------ #
    # Defaults
    # ------------------------------------------------------------------ #
    def _create_default_config(self) -> None:
        try:
            self.global_dir.mkdir(parents=True, exist_ok=True)
            config_file = self.global_dir / "config.toml"
            with open(config_file, "w", encoding="utf-8") as f:
                f.write(self._get_default_config_toml())
        except OSError:
            # Read-only home: run on built-in defaults.
            return

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            "general": {
                "log_level": "warning",
                "log_file": "",
            },
            "storage": {
                "data_dir": "",
                "key": "taskloom:tasks:v1",
                "quota_bytes": 5 * 1024 * 1024,
            },
            "export": {
                "directory": "",
            },
            "ui": {
                "poll_interval": 1.0,
                "quick_tags": ["Work", "Personal", "Urgent"],
            },
        }

    def _get_default_config_toml(self) -> str:
        """Default config TOML text for first-run creation."""
        default = self._get_default_config()
        quick_tags = ", ".join(f'"{t}"' for t in default["ui"]["quick_tags"])
        return "\n".join(
            [
                "[general]",
                f'log_level = "{default["general"]["log_level"]}"',
                "# log_file = \"~/.local/share/taskloom/taskloom.log\"",
                "",
                "[storage]",
                "# data_dir = \"~/.local/share/taskloom\"",
                f'key = "{default["storage"]["key"]}"',
                f'quota_bytes = {default["storage"]["quota_bytes"]}',
                "",
                "[export]",
                "# directory = \"~/Downloads\"",
                "",
                "[ui]",
                f'poll_interval = {default["ui"]["poll_interval"]}',
                f"quick_tags = [{quick_tags}]",
                "",
            ]
        )

    # ------------------------------------------------------------------ #
    # Utility helpers
    # ------------------------------------------------------------------ #
    def _deep_merge(self, base: dict, override: dict) -> None:
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _set_nested(self, d: dict, path: str, value: Any) -> None:
        keys = path.split(".")
        for key in keys[:-1]:
            d = d.setdefault(key, {})
        d[keys[-1]] = value


Config = ConfigLoader

__all__ = ["ConfigLoader", "Config"]
