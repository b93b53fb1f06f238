"""Thumbnail task generators backed by external media tools."""

from __future__ import annotations

__version__ = "0.1.0"
