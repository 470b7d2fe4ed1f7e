"""
Harness resource profiling for a benchmark run.

`profile_block` records wall time, peak RSS (sampled on a background thread with
psutil) and process CPU percent of the benchmark process itself. These numbers
describe the load generator, not the database under test.

Usage:
    from rr_bench.utils.profiler import profile_block

    with profile_block("sqlite") as stats:
        run()

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    thread_count: Optional[int] = field(default=None)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "duration_seconds": round(self.duration_seconds, 3),
            "peak_rss_bytes": self.peak_rss_bytes,
            "cpu_percent": round(self.cpu_percent, 1) if self.cpu_percent is not None else None,
            "thread_count": self.thread_count,
        }


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 100) -> Generator[ProfileStats, None, None]:
    """
    Profile the enclosed block.

    Parameters
    ----------
    label : str
        Name shown next to the numbers (usually the backend name).
    sample_interval_ms : int
        RSS sampling period. Peaks shorter than this can be missed.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    peak_threads = process.num_threads()
    stop_sampling = threading.Event()

    def _sample() -> None:
        nonlocal peak_rss, peak_threads
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
                peak_threads = max(peak_threads, process.num_threads())
            except psutil.Error:
                break
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    # First call only primes the counter.
    process.cpu_percent(interval=None)
    sampler = threading.Thread(target=_sample, name=f"profiler-{label}", daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stop_sampling.set()
        sampler.join(timeout=1.0)
        stats.peak_rss_bytes = peak_rss
        stats.thread_count = peak_threads
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["ProfileStats", "profile_block"]
