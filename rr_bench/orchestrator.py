"""
Orchestrator for a read-replica benchmark run.

Usage (example from CLI):
    from rr_bench.backends import resolve_backend
    from rr_bench.orchestrator import RunConfig, run_benchmark

    benchmark = resolve_backend("sqlite", {"db-path": "bench.db"})
    result = run_benchmark(RunConfig(duration=timedelta(seconds=10)), benchmark)
    print(result.measurements.throughput())

Lifecycle of one run:
1. Open every connection up front (writer primary, then one primary + one
   replica per client). Any failure aborts before a worker starts.
2. Start the primary simulator and N reader simulators on a thread pool; each
   reader holds a cloned completion handle and a cloned sample sender.
3. Release the orchestrator's own handle and sender, then drain samples with a
   bounded wait until every sender is closed.
4. If any worker fails, close the receiving side so the remaining readers stop,
   wait for everyone, and raise `WorkerFailedError`.
"""

from __future__ import annotations

import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from rr_bench.config import format_duration
from rr_bench.core.abstract import Benchmark, PrimaryDatabase, ReadReplica
from rr_bench.core.channel import ChannelClosed, SampleReceiver, sample_channel
from rr_bench.core.completion import new_task_handles
from rr_bench.core.primary_simulator import DEFAULT_SEED, OperationMix, PrimarySimulator, WriterStats
from rr_bench.core.read_simulator import ReaderSimulator
from rr_bench.domain.measurements import Measurements
from rr_bench.errors import BackendSetupError, WorkerFailedError
from rr_bench.utils.logging import get_logger
from rr_bench.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

WRITER_NAME = "writer"


class RunConfig(BaseModel):
    """Already-parsed inputs of one run."""

    duration: timedelta
    transactions_per_second: int = Field(10, ge=0)
    concurrency: int = Field(1, ge=1)
    seed: int = DEFAULT_SEED
    mix: OperationMix = Field(default_factory=OperationMix)
    poll_interval_seconds: float = Field(1.0, gt=0)
    show_progress: bool = True

    model_config = {"frozen": True}

    @field_validator("duration")
    @classmethod
    def _positive_duration(cls, value: timedelta) -> timedelta:
        if value <= timedelta():
            raise ValueError("duration must be positive")
        return value


@dataclass
class BenchmarkResult:
    backend: str
    config: RunConfig
    measurements: Measurements
    writer: WriterStats
    samples_per_client: Dict[str, int] = field(default_factory=dict)
    profile: Optional[ProfileStats] = None


@dataclass
class _Connections:
    writer: PrimaryDatabase
    clients: List[Tuple[PrimaryDatabase, ReadReplica]] = field(default_factory=list)

    def close(self) -> None:
        closables = [self.writer]
        for primary, replica in self.clients:
            closables.extend((primary, replica))
        _close_all(closables)


def _close_all(closables: List) -> None:
    """Close every connection, logging (not raising) individual close failures."""
    for conn in closables:
        try:
            conn.close()
        except Exception:  # noqa: BLE001
            log.warning("Failed to close connection", exc_info=True)


def _open_connections(benchmark: Benchmark, concurrency: int) -> _Connections:
    opened: List = []
    try:
        writer = benchmark.primary_database()
        opened.append(writer)
        connections = _Connections(writer=writer)
        for _ in range(concurrency):
            primary = benchmark.primary_database()
            opened.append(primary)
            replica = benchmark.read_replica()
            opened.append(replica)
            connections.clients.append((primary, replica))
    except Exception as exc:
        log.error(
            f"[SETUP FAILED] {benchmark.name}",
            extra={"backend": benchmark.name, "opened": len(opened), "error": str(exc)},
        )
        _close_all(opened)
        raise BackendSetupError(f"could not connect to backend '{benchmark.name}': {exc}") from exc

    log.info(
        "Connections ready",
        extra={"backend": benchmark.name, "primaries": 1 + concurrency, "replicas": concurrency},
    )
    return connections


def _progress(config: RunConfig) -> Progress:
    return Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed:.0f}/{task.total:.0f}s"),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        disable=not config.show_progress,
    )


def _drain(receiver: SampleReceiver, measurements: Measurements, abort: threading.Event, poll: float) -> None:
    """
    Collect samples until every sender is closed or a worker has failed.

    The receiver is closed on every exit path (including Ctrl-C), so readers stop
    at their next send instead of running out their whole budget.
    """
    try:
        while not abort.is_set():
            try:
                sample = receiver.recv(timeout=poll)
            except queue.Empty:
                log.debug("Waiting for samples", extra={"collected": len(measurements)})
                continue
            except ChannelClosed:
                return
            measurements.push(sample)

        log.warning("Worker failure detected; stopping readers", extra={"collected": len(measurements)})
    finally:
        receiver.close()


def _first_failure(futures: Dict[Future, str]) -> Optional[WorkerFailedError]:
    for future, name in futures.items():
        error = future.exception()
        if error is not None:
            failure = WorkerFailedError(name, error)
            failure.__cause__ = error
            return failure
    return None


def run_benchmark(
    config: RunConfig,
    benchmark: Benchmark,
    clock: Callable[[], int] = time.perf_counter_ns,
    sleep: Callable[[float], None] = time.sleep,
) -> BenchmarkResult:
    """
    Run one benchmark and return its measurements.

    Parameters
    ----------
    config : RunConfig
        Duration, write rate, concurrency and writer settings.
    benchmark : Benchmark
        Backend providing primary and replica connections. It is closed on return.
    clock : callable
        Monotonic nanosecond clock used to time replica calls.
    sleep : callable
        Pacing sleep of the primary simulator.

    Raises
    ------
    BackendSetupError
        A connection could not be opened; no worker was started.
    WorkerFailedError
        A writer or reader raised; partial measurements are discarded.
    """
    log.info(
        f"[RUN START] {benchmark.name}",
        extra={
            "backend": benchmark.name,
            "duration": format_duration(config.duration),
            "tps": config.transactions_per_second,
            "concurrency": config.concurrency,
        },
    )

    with profile_block(benchmark.name) as profile:
        try:
            connections = _open_connections(benchmark, config.concurrency)
            try:
                measurements, writer_stats, samples = _run_workers(config, connections, clock, sleep)
            finally:
                connections.close()
        finally:
            benchmark.close()

    log.info(
        f"[RUN COMPLETE] {benchmark.name}",
        extra={
            "backend": benchmark.name,
            "samples": measurements.total_transactions(),
            "writes_applied": writer_stats.applied,
            "writes_skipped": writer_stats.skipped,
            "profile": profile.as_dict(),
        },
    )
    return BenchmarkResult(
        backend=benchmark.name,
        config=config,
        measurements=measurements,
        writer=writer_stats,
        samples_per_client=samples,
        profile=profile,
    )


def _run_workers(
    config: RunConfig,
    connections: _Connections,
    clock: Callable[[], int],
    sleep: Callable[[float], None],
) -> Tuple[Measurements, WriterStats, Dict[str, int]]:
    handle, tracker = new_task_handles()
    sender, receiver = sample_channel()
    measurements = Measurements(config.duration)
    abort = threading.Event()
    total_seconds = config.duration.total_seconds()

    writer = PrimarySimulator(
        connections.writer,
        config.transactions_per_second,
        tracker,
        seed=config.seed,
        mix=config.mix,
        sleep=sleep,
    )

    def _watch(name: str, future: Future) -> None:
        error = future.exception()
        if error is not None:
            log.error(
                f"[WORKER FAILED] {name}",
                exc_info=error,
                extra={"worker": name, "error": str(error)},
            )
            abort.set()

    progress = _progress(config)
    with progress, ThreadPoolExecutor(
        max_workers=1 + config.concurrency, thread_name_prefix="rr-bench"
    ) as executor:
        readers: List[ReaderSimulator] = []
        for index, (primary, replica) in enumerate(connections.clients):
            name = f"client-{index}"
            task_id = progress.add_task(name, total=total_seconds)
            readers.append(
                ReaderSimulator(
                    replica,
                    primary,
                    config.duration,
                    sender.clone(),
                    handle.clone(),
                    name=name,
                    progress=lambda seconds, task_id=task_id: progress.advance(task_id, seconds),
                    clock=clock,
                )
            )

        futures: Dict[Future, str] = {executor.submit(writer.run): WRITER_NAME}
        for reader in readers:
            futures[executor.submit(reader.run)] = reader.name
        # Readers own every remaining producer side and handle from here on.
        sender.close()
        handle.release()
        for future, name in futures.items():
            future.add_done_callback(lambda f, name=name: _watch(name, f))

        _drain(receiver, measurements, abort, config.poll_interval_seconds)

    failure = _first_failure(futures)
    if failure is not None:
        raise failure

    samples = {reader.name: reader.samples for reader in readers}
    return measurements, writer.stats, samples


__all__ = ["BenchmarkResult", "RunConfig", "WRITER_NAME", "run_benchmark"]
