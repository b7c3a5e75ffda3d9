"""Tests for background task execution."""

from __future__ import annotations

import threading
from typing import List

import pytest

from iconsmith.background import BackgroundTask, TaskBusyError, TaskRunner


def test_result_delivers_progress_on_calling_thread() -> None:
    def _work(report, cancel: threading.Event) -> str:
        for index in range(1, 4):
            report(index, 3)
        return "done"

    seen: List[tuple] = []
    threads: List[str] = []

    def _progress(done: int, total: int) -> None:
        seen.append((done, total))
        threads.append(threading.current_thread().name)

    task = BackgroundTask("count", _work).start()

    assert task.result(timeout=5, progress=_progress) == "done"
    assert seen == [(1, 3), (2, 3), (3, 3)]
    assert set(threads) == {threading.current_thread().name}
    assert task.done()


def test_result_reraises_worker_errors() -> None:
    def _work(report, cancel: threading.Event) -> None:
        raise ValueError("boom")

    task = BackgroundTask("fail", _work).start()

    with pytest.raises(ValueError, match="boom"):
        task.result(timeout=5)


def test_cancel_sets_event_seen_by_worker() -> None:
    started = threading.Event()

    def _work(report, cancel: threading.Event) -> bool:
        started.set()
        return cancel.wait(5)

    task = BackgroundTask("wait", _work).start()
    started.wait(5)
    task.cancel()

    assert task.result(timeout=5) is True
    assert task.cancelled


def test_runner_rejects_second_task_while_busy() -> None:
    release = threading.Event()
    runner = TaskRunner()
    first = runner.submit("first", lambda report, cancel: release.wait(5))

    with pytest.raises(TaskBusyError):
        runner.submit("second", lambda report, cancel: None)

    release.set()
    first.result(timeout=5)
    second = runner.submit("second", lambda report, cancel: 42)
    assert second.result(timeout=5) == 42
    assert runner.current is second
