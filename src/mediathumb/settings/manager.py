"""Settings file loading with validation."""

from __future__ import annotations

import json
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any

from jsonschema import ValidationError

from ..config import APP_DIR_NAME, SETTINGS_FILE_NAME
from ..errors import SettingsLoadError, SettingsValidationError
from .schema import DEFAULT_SETTINGS, merge_with_defaults


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_DIR_NAME / SETTINGS_FILE_NAME
        return Path.home() / "AppData" / "Roaming" / APP_DIR_NAME / SETTINGS_FILE_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME / SETTINGS_FILE_NAME
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_DIR_NAME / SETTINGS_FILE_NAME
    return Path.home() / ".config" / APP_DIR_NAME / SETTINGS_FILE_NAME


class SettingsManager:
    """Load and validate the per-tool option overrides.

    A missing file is not an error: the defaults apply.  The file is never
    written back.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)

    @property
    def path(self) -> Path:
        return self._path or default_settings_path()

    def load(self) -> "SettingsManager":
        """Load the settings JSON from disk, keeping defaults if it is missing."""

        path = self.path
        payload = None
        if path.exists():
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(f"Cannot read settings from {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"Settings file {path} must contain a JSON object")
        try:
            self._data = merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(f"{path}: {exc.message}") from exc
        return self

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        target: Any = self._data
        for part in key.split("."):
            if not isinstance(target, dict) or part not in target:
                return default
            target = target[part]
        return target

    def tool_options(self, tool: str) -> dict[str, Any]:
        """Return a copy of the option overrides stored for *tool*."""

        return dict(self.get(f"tools.{tool}", {}) or {})

    @property
    def log_level(self) -> str:
        return self.get("log_level", DEFAULT_SETTINGS["log_level"])


__all__ = ["SettingsManager", "default_settings_path"]
