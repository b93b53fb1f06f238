"""Tests for ``primed_task`` and the subprocess runner."""

from __future__ import annotations

import logging
import sys

import pytest

from mediathumb.config import EXIT_COMMAND_NOT_FOUND, EXIT_SPAWN_FAILED
from mediathumb.engine import generators
from mediathumb.engine.launcher import get_default_runner, primed_task, set_default_runner
from mediathumb.engine.task import SubprocessRunner, SubprocessTask, TaskResult, TaskState
from mediathumb.errors import ExternalToolError

PYTHON = sys.executable
TIMEOUT = 30


def test_primed_task_disables_interaction_and_capture(runner):
    task = primed_task("convert", ["-strip", "a", "b"], runner=runner)

    assert task.spec.interactive is False
    assert task.spec.capture_output is False
    assert task.state is TaskState.LAUNCHED


def test_primed_task_logs_command_line(runner, caplog):
    caplog.set_level(logging.DEBUG, logger="mediathumb.engine.launcher")

    primed_task("ffmpegthumbnailer", ["-i", "in.mp4", "-o", "out.jpg"], runner=runner)

    assert (
        "primed_task(): started a task with command: ffmpegthumbnailer and args: -i in.mp4 -o out.jpg"
        in caplog.messages
    )


def test_task_cannot_be_started_twice(runner):
    task = primed_task("zipinfo", ["-1", "a.zip"], runner=runner)

    with pytest.raises(RuntimeError):
        task.start()


def test_callback_errors_are_logged_not_raised(runner, caplog):
    def explode(result):
        raise ValueError("boom")

    task = primed_task("unzip", ["-d", "out", "a.zip", "x"], explode, runner=runner)
    task.complete()

    assert task.result(timeout=0).exit_code == 0
    assert any("Exit callback failed" in message for message in caplog.messages)


def test_continuation_sees_result_already_recorded(runner):
    seen = []
    task = primed_task(
        "zipinfo",
        ["-1", "a.zip"],
        lambda result: seen.append(runner.last.result(timeout=0)),
        runner=runner,
    )

    result = task.complete(exit_code=2)

    assert seen == [result]


def test_set_default_runner_returns_previous(runner):
    previous = set_default_runner(runner)
    try:
        assert get_default_runner() is runner
    finally:
        assert set_default_runner(previous) is runner


class TestSubprocessRunner:
    def _launch(self, code, on_exit=None, capture_output=False):
        return primed_task(
            PYTHON,
            ["-c", code],
            on_exit,
            capture_output=capture_output,
            runner=SubprocessRunner(),
        )

    def test_exit_code_reaches_continuation(self):
        received = []
        task = self._launch("import sys; sys.exit(3)", received.append)

        result = task.result(timeout=TIMEOUT)

        assert isinstance(task, SubprocessTask)
        assert result.exit_code == 3
        assert received == [result]
        assert task.state is TaskState.EXITED
        assert result.stdout is None

    def test_output_is_discarded_without_capture(self):
        task = self._launch("print('hello')")

        result = task.result(timeout=TIMEOUT)

        assert result.ok
        assert result.stdout is None
        assert result.stderr is None

    def test_output_is_recorded_with_capture(self):
        task = self._launch("print('a.txt'); print('b/c.txt')", capture_output=True)

        result = task.result(timeout=TIMEOUT)

        assert result.stdout_lines() == ["a.txt", "b/c.txt"]

    def test_stdin_is_not_interactive(self):
        task = self._launch("import sys; sys.exit(0 if sys.stdin.read() == '' else 1)")

        assert task.result(timeout=TIMEOUT).exit_code == 0

    def test_missing_command_is_reported_asynchronously(self):
        received = []
        task = primed_task(
            "mediathumb-no-such-tool",
            ["--help"],
            received.append,
            runner=SubprocessRunner(),
        )

        result = task.result(timeout=TIMEOUT)

        assert result.exit_code == EXIT_COMMAND_NOT_FOUND
        assert isinstance(result.error, ExternalToolError)
        assert received == [result]
        assert task.pid is None

    def test_concurrent_tasks_complete_independently(self):
        runner = SubprocessRunner()
        received: list[TaskResult] = []
        tasks = [
            primed_task(PYTHON, ["-c", f"import sys; sys.exit({code})"], received.append, runner=runner)
            for code in range(8)
        ]
        for task in tasks:
            task.process.wait(TIMEOUT)

        assert len({task.pid for task in tasks}) == 8
        assert received == []
        assert all(task.state is TaskState.LAUNCHED for task in tasks)

        codes = sorted(task.result(timeout=TIMEOUT).exit_code for task in tasks)
        assert codes == list(range(8))
        assert sorted(result.exit_code for result in received) == list(range(8))
        assert runner.run_pending() == 0

    def test_handles_are_returned_before_any_continuation(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PATH", str(tmp_path))
        runner = SubprocessRunner()
        handles = []
        fired = []

        for index in range(20):
            handles.append(
                generators.ebookmeta(
                    f"book{index}.epub",
                    f"cover{index}.jpg",
                    on_exit=lambda result, index=index: fired.append((index, len(handles))),
                    runner=runner,
                )
            )

        assert fired == []
        assert runner.pending() == 20
        assert runner.run_pending() == 20
        assert sorted(fired) == [(index, 20) for index in range(20)]
        assert all(handle.result(timeout=0).exit_code == EXIT_COMMAND_NOT_FOUND for handle in handles)

    def test_run_pending_waits_for_the_first_exit(self):
        runner = SubprocessRunner()
        received = []
        primed_task(PYTHON, ["-c", "pass"], received.append, runner=runner)

        finished = 0
        while not finished:
            finished = runner.run_pending(timeout=TIMEOUT)

        assert finished == 1
        assert [result.exit_code for result in received] == [0]

    def test_embedded_nul_is_reported_through_continuation(self):
        received = []
        task = generators.magick("bad\0name.png", "out.jpg", None, received.append, runner=SubprocessRunner())

        result = task.result(timeout=TIMEOUT)

        assert result.exit_code == EXIT_SPAWN_FAILED
        assert isinstance(result.error, ExternalToolError)
        assert isinstance(result.error.__cause__, ValueError)
        assert received == [result]

    def test_continuation_can_read_its_own_result(self):
        handle = []
        seen = []

        def on_exit(result):
            seen.append(handle[0].result(timeout=TIMEOUT) is result)

        handle.append(self._launch("import sys; sys.exit(5)", on_exit))

        assert handle[0].result(timeout=TIMEOUT).exit_code == 5
        assert seen == [True]

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
    def test_signal_death_is_reported(self):
        task = self._launch("import os, signal; os.kill(os.getpid(), signal.SIGTERM)")

        result = task.result(timeout=TIMEOUT)

        assert result.signal == 15
        assert result.exit_code == 128 + 15

    def test_wait_times_out_while_running(self):
        task = self._launch("import time; time.sleep(0.5)")

        assert task.wait(timeout=0.01) is False
        assert task.wait(timeout=TIMEOUT) is True
