"""Ready-made launcher shared by every task generator."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from .task import ExitCallback, ProcessRunner, SubprocessRunner, Task, TaskSpec

LOGGER = logging.getLogger(__name__)

_DEFAULT_RUNNER: ProcessRunner = SubprocessRunner()
_RUNNER_LOCK = threading.Lock()


def get_default_runner() -> ProcessRunner:
    return _DEFAULT_RUNNER


def set_default_runner(runner: ProcessRunner) -> ProcessRunner:
    """Install *runner* for generators called without one; return the old one."""

    global _DEFAULT_RUNNER
    with _RUNNER_LOCK:
        previous = _DEFAULT_RUNNER
        _DEFAULT_RUNNER = runner
    return previous


def primed_task(
    command: str,
    args: Iterable[str],
    on_exit: Optional[ExitCallback] = None,
    *,
    capture_output: bool = False,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Start *command* with *args* and return the running task.

    Interactive input and output capture are disabled unless the caller
    asks for the output explicitly.  The call never blocks on the process and
    never raises for tool failures; those reach *on_exit* instead.
    """

    spec = TaskSpec(
        command=command,
        args=tuple(args),
        on_exit=on_exit,
        interactive=False,
        capture_output=capture_output,
    )
    task = (runner or get_default_runner()).create(spec)

    LOGGER.debug(
        "primed_task(): started a task with command: %s and args: %s",
        spec.command,
        " ".join(spec.args),
    )
    task.start()
    return task
