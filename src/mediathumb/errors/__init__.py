"""Custom exception hierarchy for mediathumb."""

from __future__ import annotations


class MediaThumbError(Exception):
    """Base class for all custom errors raised by mediathumb."""


class ExternalToolError(MediaThumbError):
    """Raised when an external tool such as convert or ffmpeg cannot be run."""


class OptionsError(MediaThumbError):
    """Raised when command-line option overrides cannot be parsed."""


class SettingsError(MediaThumbError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
