"""Shared test fixtures."""

from __future__ import annotations

import os
from typing import Optional

import pytest

from mediathumb.engine.launcher import set_default_runner
from mediathumb.engine.task import Task, TaskResult, TaskSpec, exit_result

# Qt runner tests must not need a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeTask(Task):
    """Task that never spawns anything and exits when told to."""

    def __init__(self, spec: TaskSpec) -> None:
        super().__init__(spec)
        self.launches = 0

    def _launch(self) -> None:
        self.launches += 1

    def complete(self, exit_code: int = 0, stdout: Optional[str] = None) -> TaskResult:
        captured = stdout if self.spec.capture_output else None
        self._finish(exit_result(self.spec, exit_code, captured))
        return self.result(timeout=0)


class FakeRunner:
    def __init__(self) -> None:
        self.tasks: list[FakeTask] = []

    def create(self, spec: TaskSpec) -> FakeTask:
        task = FakeTask(spec)
        self.tasks.append(task)
        return task

    @property
    def last(self) -> FakeTask:
        return self.tasks[-1]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def default_runner(runner: FakeRunner):
    """Install the fake runner for generators called without ``runner=``."""

    previous = set_default_runner(runner)
    yield runner
    set_default_runner(previous)
