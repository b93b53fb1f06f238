"""Task-invocation layer: launcher, process runners and task generators.

The Qt runner lives in :mod:`mediathumb.engine.qt` and is not imported here so
that headless callers do not pay for loading Qt.
"""

from __future__ import annotations

from .generators import (
    ebookmeta,
    epubthumbnailer,
    ffmpeg,
    ffmpegthumbnailer,
    fontmagick,
    magick,
    pdftoppm,
    unzip,
    zipinfo,
)
from .launcher import get_default_runner, primed_task, set_default_runner
from .options import TOOL_DEFAULTS, merge_options, options_as_dict
from .task import SubprocessRunner, Task, TaskResult, TaskSpec, TaskState

__all__ = [
    "SubprocessRunner",
    "TOOL_DEFAULTS",
    "Task",
    "TaskResult",
    "TaskSpec",
    "TaskState",
    "ebookmeta",
    "epubthumbnailer",
    "ffmpeg",
    "ffmpegthumbnailer",
    "fontmagick",
    "get_default_runner",
    "magick",
    "merge_options",
    "options_as_dict",
    "pdftoppm",
    "primed_task",
    "set_default_runner",
    "unzip",
    "zipinfo",
]
