"""
Latency sample aggregation for the read workload.

`Measurements` is append-only: the orchestrator pushes one sample at a time
while draining the reader queue, and statistics are read once every producer
has stopped. Throughput uses the configured experiment duration rather than a
measured one so runs with different client counts stay comparable.
"""

from __future__ import annotations

import math
import statistics
from datetime import timedelta
from typing import Dict, List

from rr_bench.errors import EmptyMeasurementsError

_ONE_MICROSECOND = timedelta(microseconds=1)


class Measurements:
    def __init__(self, total_duration: timedelta) -> None:
        if total_duration <= timedelta():
            raise ValueError("total_duration must be positive")
        self.total_duration = total_duration
        self._samples: List[timedelta] = []

    def push(self, sample: timedelta) -> None:
        self._samples.append(sample)

    def __len__(self) -> int:
        return len(self._samples)

    def total_transactions(self) -> int:
        return len(self._samples)

    def throughput(self) -> float:
        """Transactions per second over the configured duration."""
        return self.total_transactions() / self.total_duration.total_seconds()

    def _require_samples(self) -> List[timedelta]:
        if not self._samples:
            raise EmptyMeasurementsError("no latency samples were recorded")
        return self._samples

    def _sorted(self) -> List[timedelta]:
        return sorted(self._require_samples())

    def min(self) -> timedelta:
        return min(self._require_samples())

    def max(self) -> timedelta:
        return max(self._require_samples())

    def average(self) -> timedelta:
        samples = self._require_samples()
        return sum(samples, timedelta()) / len(samples)

    def median(self) -> timedelta:
        return statistics.median(self._sorted())

    def standard_deviation_seconds(self) -> float:
        """Population standard deviation (divides by n, not n - 1), unrounded."""
        micros = [sample // _ONE_MICROSECOND for sample in self._require_samples()]
        return statistics.pstdev(micros) / 1_000_000

    def standard_deviation(self) -> timedelta:
        """
        Population standard deviation as a `timedelta`.

        Zero only when every sample is equal; a spread below the timedelta
        resolution is reported as one microsecond rather than rounded away.
        """
        spread = self.standard_deviation_seconds()
        if spread == 0:
            return timedelta()
        return max(timedelta(seconds=spread), _ONE_MICROSECOND)

    def percentile(self, p: float) -> timedelta:
        """
        Nearest-rank percentile.

        Parameters
        ----------
        p : float
            Percentile in ``[0, 100]``. The rank is ``ceil(p / 100 * n) - 1``,
            clamped to the valid index range.
        """
        if not 0 <= p <= 100:
            raise ValueError(f"percentile must be within [0, 100], got {p}")
        ordered = self._sorted()
        index = math.ceil(p * len(ordered) / 100) - 1
        return ordered[max(0, min(index, len(ordered) - 1))]

    def percentile_95(self) -> timedelta:
        return self.percentile(95)

    def percentile_99(self) -> timedelta:
        return self.percentile(99)

    def summary(self) -> Dict[str, float]:
        """Report-ready statistics; latencies in milliseconds."""

        def ms(value: timedelta) -> float:
            return value.total_seconds() * 1000.0

        return {
            "total_transactions": self.total_transactions(),
            "throughput_tps": self.throughput(),
            "max_ms": ms(self.max()),
            "min_ms": ms(self.min()),
            "average_ms": ms(self.average()),
            "median_ms": ms(self.median()),
            "p95_ms": ms(self.percentile_95()),
            "p99_ms": ms(self.percentile_99()),
            "stddev_ms": self.standard_deviation_seconds() * 1000.0,
        }


__all__ = ["Measurements"]
