"""Layered settings with JSON files.

Three-level precedence: CLI overrides > project settings > global settings,
all on top of built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any

from qnav.keybindings import Keybinds
from qnav.text_editor import DEFAULT_WORD_BREAK_CHARS, EditMode

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".qnav"
CONFIG_DIR_ENV = "QNAV_CONFIG_DIR"


def _settings_defaults() -> dict[str, Any]:
    """Default settings values."""
    return {
        "editMode": EditMode.INSERT.value,
        "indent": 2,
        "noHint": False,
        "suggestionListLength": 3,
        "limitLength": 50,
        "chunkSize": 100,
        "maxSuggestions": 50000,
        "wordBreakChars": "".join(sorted(DEFAULT_WORD_BREAK_CHARS)),
        "keybindings": {},
    }


# --- Deep merge ---


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    For nested dicts, merge recursively. For primitives and arrays,
    override value wins completely. ``None`` overrides are skipped.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


# --- SettingsManager ---


class SettingsManager:
    """Resolves settings from defaults, global and project files, and CLI flags.

    Use factory methods (create, in_memory) instead of calling constructor directly.
    """

    def __init__(
        self,
        *,
        settings_path: str | None,
        project_settings_path: str | None,
        initial_settings: dict[str, Any],
        load_error: Exception | None = None,
    ) -> None:
        self._settings_path = settings_path
        self._project_settings_path = project_settings_path
        self._global_settings = dict(initial_settings)
        self._load_error = load_error

        project: dict[str, Any] = {}
        if self._project_settings_path:
            project, project_error = _load_from_file(self._project_settings_path)
            self._load_error = self._load_error or project_error

        merged = deep_merge_settings(_settings_defaults(), self._global_settings)
        self._settings = deep_merge_settings(merged, project)

    # --- Factory methods ---

    @classmethod
    def create(cls, cwd: str, config_dir: str | None = None) -> SettingsManager:
        """Create a settings manager reading the global and project files."""
        cdir = config_dir or _default_config_dir()
        settings_path = os.path.join(cdir, "settings.json")
        project_settings_path = os.path.join(cwd, CONFIG_DIR_NAME, "settings.json")

        settings, error = _load_from_file(settings_path)
        return cls(
            settings_path=settings_path,
            project_settings_path=project_settings_path,
            initial_settings=settings,
            load_error=error,
        )

    @classmethod
    def from_file(cls, path: str) -> SettingsManager:
        """Create a settings manager from one explicit file, ignoring the others."""
        settings, error = _load_from_file(path)
        if not os.path.exists(path):
            error = FileNotFoundError(f"Settings file not found: {path}")
        return cls(
            settings_path=path,
            project_settings_path=None,
            initial_settings=settings,
            load_error=error,
        )

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> SettingsManager:
        """Create an in-memory settings manager for testing."""
        return cls(
            settings_path=None,
            project_settings_path=None,
            initial_settings=settings or {},
        )

    # --- Core operations ---

    def apply_overrides(self, overrides: dict[str, Any]) -> None:
        """Apply CLI-level overrides on top of merged settings."""
        self._settings = deep_merge_settings(self._settings, overrides)

    @property
    def settings(self) -> dict[str, Any]:
        """Current merged settings (read-only view)."""
        return deepcopy(self._settings)

    @property
    def load_error(self) -> Exception | None:
        return self._load_error

    # --- Getters ---

    def get_edit_mode(self) -> EditMode:
        value = self._settings.get("editMode")
        try:
            return EditMode(value)
        except ValueError:
            logger.warning("Unknown edit mode %r, using insert", value)
            return EditMode.INSERT

    def get_indent(self) -> int:
        return _positive_int(self._settings.get("indent"), 2, allow_zero=True)

    def get_no_hint(self) -> bool:
        return bool(self._settings.get("noHint", False))

    def get_suggestion_list_length(self) -> int:
        return _positive_int(self._settings.get("suggestionListLength"), 3)

    def get_limit_length(self) -> int:
        return _positive_int(self._settings.get("limitLength"), 50)

    def get_chunk_size(self) -> int:
        return _positive_int(self._settings.get("chunkSize"), 100)

    def get_max_suggestions(self) -> int:
        return _positive_int(self._settings.get("maxSuggestions"), 50000)

    def get_word_break_chars(self) -> frozenset[str]:
        value = self._settings.get("wordBreakChars")
        if isinstance(value, str):
            return frozenset(value)
        if isinstance(value, list) and all(isinstance(c, str) for c in value):
            return frozenset(value)
        return DEFAULT_WORD_BREAK_CHARS

    def get_keybindings(self) -> dict[str, str]:
        value = self._settings.get("keybindings")
        return dict(value) if isinstance(value, dict) else {}

    def keybinds(self) -> Keybinds:
        """Build the keybinding table; raises ``KeybindingConfigError`` on bad config."""
        return Keybinds.from_config(self.get_keybindings())


def _positive_int(value: Any, default: int, *, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if value < 0 or (value == 0 and not allow_zero):
        return default
    return value


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return {}, e
    if not isinstance(settings, dict):
        error = ValueError(f"Settings file {path} must contain a JSON object")
        logger.warning("%s", error)
        return {}, error
    return settings, None


def _default_config_dir() -> str:
    """Default config directory ($QNAV_CONFIG_DIR or ~/.qnav)."""
    return os.environ.get(CONFIG_DIR_ENV) or os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
