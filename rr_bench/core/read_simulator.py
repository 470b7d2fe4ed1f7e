"""
Read-replica (read-traffic) simulator.

Each reader walks the `ReadOperation` catalogue round-robin and times only the
replica call. Its stopping clock is the *experiment time*: the sum of measured
replica latencies. Time spent fetching keys from the primary does not count, so
the budget reflects replica work only.
"""

from __future__ import annotations

import itertools
import time
from datetime import timedelta
from typing import Callable, Iterator, Optional

from rr_bench.core.abstract import PrimaryDatabase, ReadReplica
from rr_bench.core.channel import SampleSender
from rr_bench.core.completion import TaskHandle
from rr_bench.domain.operations import ReadOperation
from rr_bench.utils.logging import get_logger

log = get_logger(__name__)

_ONE_SECOND = timedelta(seconds=1)
_ONE_MICROSECOND = timedelta(microseconds=1)


def _to_timedelta(elapsed_ns: int) -> timedelta:
    return timedelta(microseconds=elapsed_ns / 1000)


def read_cycle() -> Iterator[ReadOperation]:
    """Infinite round-robin over the read catalogue, in declaration order."""
    return itertools.cycle(ReadOperation)


class _ProgressTicker:
    """Forwards experiment time to a progress callback in whole seconds."""

    def __init__(self, advance: Optional[Callable[[int], None]]) -> None:
        self._advance = advance
        self._offset = timedelta()

    def add(self, elapsed: timedelta) -> None:
        if self._advance is None:
            return
        self._offset += elapsed
        whole = int(self._offset // _ONE_SECOND)
        if whole > 0:
            self._advance(whole)
            self._offset -= whole * _ONE_SECOND


class ReaderSimulator:
    """
    Runs read operations against a replica until the experiment time reaches
    `duration`, pushing every latency sample onto `timings`.

    The reader owns its `TaskHandle` and `SampleSender`; both are released when
    `run` returns or raises.
    """

    def __init__(
        self,
        reader: ReadReplica,
        primary: PrimaryDatabase,
        duration: timedelta,
        timings: SampleSender,
        handle: TaskHandle,
        name: str = "client-0",
        progress: Optional[Callable[[int], None]] = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        self.reader = reader
        self.primary = primary
        self.duration = duration
        self.name = name
        self.experiment_ns = 0
        self.samples = 0
        self._duration_ns = (duration // _ONE_MICROSECOND) * 1000
        self._timings = timings
        self._handle = handle
        self._progress = _ProgressTicker(progress)
        self._clock = clock

    @property
    def experiment_duration(self) -> timedelta:
        return _to_timedelta(self.experiment_ns)

    def run(self) -> int:
        """Returns the number of samples emitted."""
        with self._handle, self._timings:
            log.info("Reader started", extra={"client": self.name})
            operations = read_cycle()
            while self.experiment_ns < self._duration_ns:
                elapsed_ns = self.time_call(next(operations))
                self.experiment_ns += elapsed_ns
                measurement = _to_timedelta(elapsed_ns)
                self._progress.add(measurement)
                if not self._timings.send(measurement):
                    log.info("Sample queue closed; reader stopping early", extra={"client": self.name})
                    break
                self.samples += 1

        log.info(
            "Reader finished",
            extra={
                "client": self.name,
                "samples": self.samples,
                "experiment_seconds": self.experiment_duration.total_seconds(),
            },
        )
        return self.samples

    def execute(self, operation: ReadOperation) -> timedelta:
        """
        Fetch the operation's key (untimed), then time the replica call.

        Samples are `timedelta`s, so a call shorter than 0.5µs is reported as
        zero. The stopping clock does not lose that time: `run` accumulates the
        raw nanoseconds from `time_call`.
        """
        return _to_timedelta(self.time_call(operation))

    def time_call(self, operation: ReadOperation) -> int:
        """Run one read operation and return the replica call's latency in ns."""
        args = ()
        if operation.needs_parameter:
            args = (operation.parameter.fetch(self.primary),)

        call = getattr(self.reader, operation.query_name)
        start = self._clock()
        call(*args)
        return self._clock() - start


__all__ = ["ReaderSimulator", "read_cycle"]
