"""
Exception hierarchy for the read-replica benchmark.

Setup failures abort the run before any worker starts; worker failures abort the
run after the remaining workers have been told to stop. A closed sample queue is
not an error and has no exception here.
"""

from __future__ import annotations

from typing import Optional


class BenchmarkError(RuntimeError):
    """Base class for failures that end a benchmark run."""


class BackendSetupError(BenchmarkError):
    """A primary or replica connection could not be established."""


class WorkerFailedError(BenchmarkError):
    """A writer or reader worker raised while executing an operation."""

    def __init__(self, worker: str, error: Optional[BaseException] = None) -> None:
        self.worker = worker
        self.error = error
        detail = f"{type(error).__name__}: {error}" if error is not None else "unknown error"
        super().__init__(f"worker '{worker}' failed: {detail}")


class UnsupportedOperationError(BenchmarkError):
    """An adapter received a write operation it has no statement for."""


class EmptyMeasurementsError(ValueError):
    """A statistic was requested before any latency sample was recorded."""


__all__ = [
    "BackendSetupError",
    "BenchmarkError",
    "EmptyMeasurementsError",
    "UnsupportedOperationError",
    "WorkerFailedError",
]
