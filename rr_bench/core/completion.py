"""
Countdown used to stop the primary simulator once every reader has finished.

The counter starts at 1 for the orchestrator's own handle. Each reader gets a
clone (increment) and releases it when it exits (decrement). The tracker only
reports done once the orchestrator has released its handle *and* every clone
has been released, so the writer can never observe "done" before all readers
exist.
"""

from __future__ import annotations

import threading
from typing import Tuple


class _SharedCounter:
    def __init__(self, initial: int) -> None:
        self._value = initial
        self._lock = threading.Lock()

    def add(self, delta: int) -> int:
        with self._lock:
            self._value += delta
            return self._value

    def load(self) -> int:
        with self._lock:
            return self._value


class TaskHandle:
    """
    One unit of "still running". Release it exactly once, typically via `with`.

    Releasing an already released handle is a no-op, so cleanup paths can call
    `release()` unconditionally.
    """

    def __init__(self, counter: _SharedCounter) -> None:
        self._counter = counter
        self._released = False
        self._lock = threading.Lock()

    def clone(self) -> "TaskHandle":
        if self._released:
            raise RuntimeError("cannot clone a released task handle")
        self._counter.add(1)
        return TaskHandle(self._counter)

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._counter.add(-1)

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> "TaskHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class CompletionTracker:
    def __init__(self, counter: _SharedCounter) -> None:
        self._counter = counter

    def outstanding(self) -> int:
        return self._counter.load()

    def is_done(self) -> bool:
        return self._counter.load() == 0


def new_task_handles() -> Tuple[TaskHandle, CompletionTracker]:
    """Create the orchestrator's handle (count = 1) and the matching tracker."""
    counter = _SharedCounter(1)
    return TaskHandle(counter), CompletionTracker(counter)


__all__ = ["CompletionTracker", "TaskHandle", "new_task_handles"]
