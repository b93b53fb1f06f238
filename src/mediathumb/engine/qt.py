"""Qt event-loop runner built on :class:`QProcess`."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QProcess, QTimer

from ..config import EXIT_COMMAND_NOT_FOUND, EXIT_SIGNAL_BASE
from .task import Task, TaskResult, TaskSpec, exit_result, spawn_failure

LOGGER = logging.getLogger(__name__)


class QtTask(Task):
    """Task whose exit callback fires from the Qt event loop.

    The thread that starts the task must run a Qt event loop, otherwise the
    ``finished`` signal is never delivered.
    """

    def __init__(self, spec: TaskSpec, parent: Optional[QObject] = None) -> None:
        super().__init__(spec)
        self._on_release: Optional[Callable[[QtTask], None]] = None
        self._failure: Optional[TaskResult] = None
        self.process = QProcess(parent)
        self.process.setProgram(spec.command)
        self.process.setArguments(list(spec.args))
        if not spec.interactive:
            self.process.setStandardInputFile(QProcess.nullDevice())
        if not spec.capture_output:
            self.process.setStandardOutputFile(QProcess.nullDevice())
            self.process.setStandardErrorFile(QProcess.nullDevice())
        self.process.finished.connect(self._on_finished)
        self.process.errorOccurred.connect(self._on_error)

    @property
    def pid(self) -> Optional[int]:
        pid = self.process.processId()
        return pid or None

    def _launch(self) -> None:
        self.process.start()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block in ``waitForFinished`` so the signals are still delivered."""

        if not self.done() and self._failure is None:
            msecs = -1 if timeout is None else int(timeout * 1000)
            self.process.waitForFinished(msecs)
        self._report_failure()
        return self.done()

    def _read_output(self) -> tuple[Optional[str], Optional[str]]:
        if not self.spec.capture_output:
            return None, None
        stdout = bytes(self.process.readAllStandardOutput().data()).decode("utf-8", "replace")
        stderr = bytes(self.process.readAllStandardError().data()).decode("utf-8", "replace")
        return stdout, stderr

    def _on_finished(self, exit_code: int, exit_status: QProcess.ExitStatus) -> None:
        stdout, stderr = self._read_output()
        if exit_status == QProcess.ExitStatus.CrashExit:
            # QProcess does not report the signal number of a crashed child.
            LOGGER.debug("%s crashed", self.spec.command)
            result = TaskResult(
                command=self.spec.command,
                args=self.spec.args,
                exit_code=exit_code or EXIT_SIGNAL_BASE,
                stdout=stdout,
                stderr=stderr,
            )
        else:
            result = exit_result(self.spec, exit_code, stdout, stderr)
        self._finish(result)
        self._release()

    def _on_error(self, error: QProcess.ProcessError) -> None:
        # Only a failed start ends the task here; every other error is
        # followed by ``finished``.
        if error != QProcess.ProcessError.FailedToStart:
            return
        exc = OSError(self.process.errorString())
        self._failure = spawn_failure(self.spec, exc, exit_code=EXIT_COMMAND_NOT_FOUND)
        # A failed start is signalled from inside start(); report it on the
        # next loop iteration so the caller already holds the handle.
        QTimer.singleShot(0, self._report_failure)

    def _report_failure(self) -> None:
        if self._failure is None:
            return
        failure, self._failure = self._failure, None
        self._finish(failure)
        self._release()

    def _release(self) -> None:
        if self._on_release is not None:
            self._on_release(self)
            self._on_release = None


class QtProcessRunner:
    """Runner for GUI callers that already spin a Qt event loop.

    The runner keeps every running task alive until it exits; a ``QProcess``
    that is garbage collected while running kills its child.
    """

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        self._active: set[QtTask] = set()

    def create(self, spec: TaskSpec) -> QtTask:
        task = QtTask(spec, self._parent)
        task._on_release = self._active.discard
        self._active.add(task)
        return task

    def active_count(self) -> int:
        return len(self._active)
