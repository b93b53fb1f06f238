"""Task handles and the default :mod:`subprocess` based process runner."""

from __future__ import annotations

import concurrent.futures
import logging
import os
import queue
import subprocess
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from ..config import (
    EXIT_COMMAND_NOT_FOUND,
    EXIT_NOT_EXECUTABLE,
    EXIT_SIGNAL_BASE,
    EXIT_SPAWN_FAILED,
    TASK_POLL_INTERVAL,
)
from ..errors import ExternalToolError

LOGGER = logging.getLogger(__name__)

ExitCallback = Callable[["TaskResult"], Any]


class TaskState(Enum):
    IDLE = "idle"
    LAUNCHED = "launched"
    EXITED = "exited"


@dataclass(frozen=True)
class TaskSpec:
    """Everything a runner needs to launch one external tool."""

    command: str
    args: tuple[str, ...]
    on_exit: Optional[ExitCallback] = None
    interactive: bool = False
    capture_output: bool = False


@dataclass(frozen=True)
class TaskResult:
    """Exit information handed to the exit callback.

    ``stdout`` and ``stderr`` are only populated for tasks launched with
    output capture.  ``error`` is set when the tool could not be spawned.
    """

    command: str
    args: tuple[str, ...]
    exit_code: int
    signal: int = 0
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    error: Optional[ExternalToolError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0

    def stdout_lines(self) -> list[str]:
        """Return the non-empty lines of the captured standard output."""

        if not self.stdout:
            return []
        return [line for line in self.stdout.splitlines() if line]


class Task:
    """Handle for one external process.

    The handle moves from ``IDLE`` to ``LAUNCHED`` when :meth:`start` is called
    and to ``EXITED`` once the process has terminated.  The exit callback fires
    exactly once, after the result is recorded, so it may read
    :meth:`result` of its own task.
    """

    def __init__(self, spec: TaskSpec) -> None:
        self.spec = spec
        self.state = TaskState.IDLE
        self._future: Future[TaskResult] = Future()
        self._lock = threading.Lock()

    @property
    def command(self) -> str:
        return self.spec.command

    @property
    def args(self) -> tuple[str, ...]:
        return self.spec.args

    @property
    def pid(self) -> Optional[int]:
        return None

    def start(self) -> "Task":
        if self.state is not TaskState.IDLE:
            raise RuntimeError(f"Task for {self.spec.command} has already been started")
        self.state = TaskState.LAUNCHED
        self._launch()
        return self

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> TaskResult:
        """Block until the process exits and return its :class:`TaskResult`."""

        if not self.wait(timeout):
            raise concurrent.futures.TimeoutError(f"{self.spec.command} is still running")
        return self._future.result()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Return ``True`` when the task exited within *timeout* seconds."""

        try:
            self._future.result(timeout)
        except concurrent.futures.TimeoutError:
            return False
        return True

    def _launch(self) -> None:
        raise NotImplementedError

    def _finish(self, result: TaskResult) -> None:
        with self._lock:
            if self.state is TaskState.EXITED:
                return
            self.state = TaskState.EXITED
            self._future.set_result(result)

        LOGGER.debug("task %s exited with code %s", self.spec.command, result.exit_code)
        callback = self.spec.on_exit
        if callback is not None:
            try:
                callback(result)
            except Exception:
                LOGGER.exception("Exit callback failed for %s", self.spec.command)


class ProcessRunner(Protocol):
    """Execution substrate used by the launcher."""

    def create(self, spec: TaskSpec) -> Task: ...


def spawn_failure(spec: TaskSpec, exc: BaseException, *, exit_code: Optional[int] = None) -> TaskResult:
    """Build the result reported when *spec* could not be spawned."""

    if exit_code is None:
        if isinstance(exc, FileNotFoundError):
            exit_code = EXIT_COMMAND_NOT_FOUND
        elif isinstance(exc, PermissionError):
            exit_code = EXIT_NOT_EXECUTABLE
        else:
            exit_code = EXIT_SPAWN_FAILED
    if exit_code == EXIT_COMMAND_NOT_FOUND:
        message = f"{spec.command} executable not found on PATH"
    else:
        message = f"{spec.command} failed to start: {exc}"
    error = ExternalToolError(message)
    error.__cause__ = exc
    LOGGER.warning(message)
    return TaskResult(command=spec.command, args=spec.args, exit_code=exit_code, error=error)


def exit_result(
    spec: TaskSpec,
    returncode: int,
    stdout: Optional[str] = None,
    stderr: Optional[str] = None,
) -> TaskResult:
    """Translate a raw return code into a :class:`TaskResult`."""

    signal = 0
    exit_code = returncode
    # ``subprocess`` reports death by signal N as -N.
    if returncode < 0:
        signal = -returncode
        exit_code = EXIT_SIGNAL_BASE + signal
    return TaskResult(
        command=spec.command,
        args=spec.args,
        exit_code=exit_code,
        signal=signal,
        stdout=stdout,
        stderr=stderr,
    )


def _startup_kwargs() -> dict[str, Any]:
    # Hide the console window that Windows opens for every child process.
    if os.name != "nt":
        return {}
    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return {
        "startupinfo": startupinfo,
        "creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0),
    }


class SubprocessTask(Task):
    """Task backed by :class:`subprocess.Popen` and a daemon waiter thread.

    The waiter only records the exit with its runner; the exit callback runs
    when the runner is driven, never on the waiter thread.
    """

    def __init__(self, spec: TaskSpec, runner: "SubprocessRunner") -> None:
        super().__init__(spec)
        self.process: Optional[subprocess.Popen[str]] = None
        self._runner = runner

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Drive the runner until this task has exited or *timeout* passes."""

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self._runner.run_pending()
            if self.done():
                return True
            slice_ = TASK_POLL_INTERVAL
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                slice_ = min(slice_, remaining)
            self._runner.run_pending(timeout=slice_)

    def _launch(self) -> None:
        output = subprocess.PIPE if self.spec.capture_output else subprocess.DEVNULL
        try:
            self.process = subprocess.Popen(
                [self.spec.command, *self.spec.args],
                stdin=None if self.spec.interactive else subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                encoding="utf-8",
                errors="replace",
                **_startup_kwargs(),
            )
        except (OSError, ValueError) as exc:
            # ValueError covers arguments Popen rejects, such as embedded NUL bytes.
            self._runner._post(self, spawn_failure(self.spec, exc))
            return

        waiter = threading.Thread(
            target=self._wait,
            name=f"mediathumb-{self.spec.command}",
            daemon=True,
        )
        waiter.start()

    def _wait(self) -> None:
        process = self.process
        assert process is not None
        stdout: Optional[str] = None
        stderr: Optional[str] = None
        if self.spec.capture_output:
            stdout, stderr = process.communicate()
        else:
            process.wait()
        self._runner._post(self, exit_result(self.spec, process.returncode, stdout, stderr))


class SubprocessRunner:
    """Default runner: spawns with :mod:`subprocess`, completes when driven.

    Exits are queued by the waiter threads.  Exit callbacks run on whichever
    thread calls :meth:`run_pending` or blocks in :meth:`Task.result`, so a
    launch always returns its handle before any callback fires.
    """

    def __init__(self) -> None:
        self._completions: queue.Queue[tuple[Task, TaskResult]] = queue.Queue()

    def create(self, spec: TaskSpec) -> SubprocessTask:
        return SubprocessTask(spec, self)

    def pending(self) -> int:
        """Return the number of exits waiting for :meth:`run_pending`."""

        return self._completions.qsize()

    def run_pending(self, timeout: Optional[float] = 0) -> int:
        """Run the exit callbacks of every task that has exited so far.

        With a positive *timeout* (or ``None``) wait that long for the first
        exit when none is queued yet.  Returns the number of tasks finished.
        """

        block = timeout is None or timeout > 0
        try:
            task, result = self._completions.get(block=block, timeout=timeout if block else None)
        except queue.Empty:
            return 0
        finished = 0
        while True:
            task._finish(result)
            finished += 1
            try:
                task, result = self._completions.get_nowait()
            except queue.Empty:
                return finished

    def _post(self, task: Task, result: TaskResult) -> None:
        self._completions.put((task, result))
