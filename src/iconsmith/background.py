"""Cancellable background work with progress handed back to the caller's thread."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Reporter = Callable[..., None]
Work = Callable[[Reporter, threading.Event], T]


class TaskBusyError(RuntimeError):
    """Raised when a task is submitted while another is still running."""


class BackgroundTask(Generic[T]):
    """Run ``work`` on a worker thread.

    The worker receives a reporter and a cancel event. Reported values are
    queued and only delivered to callbacks from the thread that calls
    :meth:`drain` or :meth:`result`, so progress handling never runs on the
    worker.
    """

    def __init__(self, name: str, work: Work[T]) -> None:
        self.name = name
        self._work = work
        self._cancel = threading.Event()
        self._progress: queue.Queue[Tuple[Any, ...]] = queue.Queue()
        self._thread = threading.Thread(target=self._run, name=f"iconsmith-{name}", daemon=True)
        self._result: Optional[T] = None
        self._error: Optional[BaseException] = None

    def start(self) -> "BackgroundTask[T]":
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Ask the worker to stop before its next file; finished work is kept."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def done(self) -> bool:
        return self._thread.ident is not None and not self._thread.is_alive()

    def drain(self, callback: Optional[Reporter] = None) -> int:
        """Deliver queued progress to ``callback`` and return how many were delivered."""
        delivered = 0
        while True:
            try:
                values = self._progress.get_nowait()
            except queue.Empty:
                return delivered
            delivered += 1
            if callback is not None:
                callback(*values)

    def result(
        self,
        timeout: Optional[float] = None,
        progress: Optional[Reporter] = None,
        poll_interval: float = 0.05,
    ) -> T:
        """Wait for the worker, delivering progress along the way.

        Raises:
            TimeoutError: If the worker is still running after ``timeout`` seconds.
            Exception: Whatever the worker raised.
        """
        waited = 0.0
        while self._thread.is_alive():
            self._thread.join(poll_interval)
            self.drain(progress)
            waited += poll_interval
            if timeout is not None and waited >= timeout and self._thread.is_alive():
                raise TimeoutError(f"Task {self.name!r} still running after {timeout}s")
        self.drain(progress)
        if self._error is not None:
            raise self._error
        return self._result  # type: ignore[return-value]

    def _report(self, *values: Any) -> None:
        self._progress.put(values)

    def _run(self) -> None:
        try:
            self._result = self._work(self._report, self._cancel)
        except Exception as exc:
            LOGGER.exception("Background task %s failed", self.name)
            self._error = exc


class TaskRunner:
    """Allow at most one background task in flight at a time."""

    def __init__(self) -> None:
        self._current: Optional[BackgroundTask[Any]] = None

    @property
    def current(self) -> Optional[BackgroundTask[Any]]:
        return self._current

    def submit(self, name: str, work: Work[T]) -> BackgroundTask[T]:
        if self._current is not None and not self._current.done():
            raise TaskBusyError(f"Task {self._current.name!r} is still running.")
        task: BackgroundTask[T] = BackgroundTask(name, work)
        self._current = task
        return task.start()

    def cancel_current(self) -> None:
        if self._current is not None:
            self._current.cancel()


__all__ = ["BackgroundTask", "Reporter", "TaskBusyError", "TaskRunner"]
