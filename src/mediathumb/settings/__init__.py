"""User settings: per-tool option overrides read by the command line."""

from __future__ import annotations

from .manager import SettingsManager, default_settings_path

__all__ = ["SettingsManager", "default_settings_path"]
