"""Tests for the QProcess-backed runner."""

from __future__ import annotations

import sys

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for Qt runner tests", exc_type=ImportError)
pytest.importorskip("pytestqt", reason="pytest-qt is required for Qt runner tests")

from mediathumb.config import EXIT_COMMAND_NOT_FOUND
from mediathumb.engine.launcher import primed_task
from mediathumb.engine.qt import QtProcessRunner, QtTask
from mediathumb.engine.task import TaskState

PYTHON = sys.executable


@pytest.fixture
def qt_runner(qapp):
    return QtProcessRunner()


def test_exit_code_delivered_on_event_loop(qtbot, qt_runner):
    received = []
    task = primed_task(PYTHON, ["-c", "import sys; sys.exit(2)"], received.append, runner=qt_runner)

    assert isinstance(task, QtTask)
    assert task.state is TaskState.LAUNCHED
    qtbot.waitUntil(lambda: len(received) == 1, timeout=10_000)

    assert received[0].exit_code == 2
    assert received[0].stdout is None
    assert task.state is TaskState.EXITED
    assert qt_runner.active_count() == 0


def test_capture_records_stdout(qtbot, qt_runner):
    received = []
    primed_task(
        PYTHON,
        ["-c", "print('one.jpg'); print('two.jpg')"],
        received.append,
        capture_output=True,
        runner=qt_runner,
    )

    qtbot.waitUntil(lambda: len(received) == 1, timeout=10_000)

    assert received[0].stdout_lines() == ["one.jpg", "two.jpg"]


def test_failed_start_fires_continuation_once(qtbot, qt_runner):
    received = []
    primed_task("mediathumb-no-such-tool", [], received.append, runner=qt_runner)

    assert received == []
    qtbot.waitUntil(lambda: len(received) == 1, timeout=10_000)
    qtbot.wait(50)

    assert len(received) == 1
    assert received[0].exit_code == EXIT_COMMAND_NOT_FOUND
    assert received[0].error is not None


def test_wait_blocks_until_finished(qt_runner):
    task = primed_task(PYTHON, ["-c", "pass"], runner=qt_runner)

    assert task.wait(timeout=10) is True
    assert task.result(timeout=0).ok
