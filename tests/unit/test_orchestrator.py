from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError

from rr_bench import orchestrator
from rr_bench.domain.measurements import Measurements
from rr_bench.errors import BackendSetupError, WorkerFailedError
from rr_bench.orchestrator import WRITER_NAME, RunConfig, run_benchmark
from tests.fakes import FakeBenchmark, FakeClock, FakePrimary

TWO_SECONDS = timedelta(seconds=2)
LATENCY = timedelta(milliseconds=100)
POLL_SECONDS = 0.01


def _config(**overrides) -> RunConfig:
    values = {
        "duration": TWO_SECONDS,
        "transactions_per_second": 0,
        "concurrency": 1,
        "poll_interval_seconds": POLL_SECONDS,
        "show_progress": False,
    }
    values.update(overrides)
    return RunConfig(**values)


def _no_sleep(_: float) -> None:
    return None


def test_single_client_end_to_end(fake_benchmark: FakeBenchmark, fake_clock: FakeClock) -> None:
    result = run_benchmark(_config(), fake_benchmark, clock=fake_clock, sleep=_no_sleep)
    m = result.measurements

    assert m.total_transactions() == 20
    assert m.throughput() == pytest.approx(10.0)
    assert m.min() == m.max() == m.average() == m.median() == LATENCY
    assert m.percentile(95) == LATENCY
    assert m.standard_deviation() == timedelta()
    assert result.samples_per_client == {"client-0": 20}
    assert result.backend == "fake"
    assert result.profile is not None


def test_each_client_runs_its_own_budget(fake_benchmark: FakeBenchmark, fake_clock: FakeClock) -> None:
    result = run_benchmark(_config(concurrency=3), fake_benchmark, clock=fake_clock, sleep=_no_sleep)

    assert result.measurements.total_transactions() == 60
    assert result.measurements.throughput() == pytest.approx(30.0)
    assert result.samples_per_client == {"client-0": 20, "client-1": 20, "client-2": 20}
    # one writer primary plus one primary and one replica per client
    assert len(fake_benchmark.primaries) == 4
    assert len(fake_benchmark.replicas) == 3


def test_writer_runs_until_readers_finish(fake_benchmark: FakeBenchmark, fake_clock: FakeClock) -> None:
    result = run_benchmark(
        _config(transactions_per_second=1_000),
        fake_benchmark,
        clock=fake_clock,
        sleep=_no_sleep,
    )

    writer_primary = fake_benchmark.primaries[0]
    assert result.writer.total == len(writer_primary.executed)
    assert result.measurements.total_transactions() == 20


def test_connections_are_closed_after_the_run(fake_benchmark: FakeBenchmark, fake_clock: FakeClock) -> None:
    run_benchmark(_config(concurrency=2), fake_benchmark, clock=fake_clock, sleep=_no_sleep)

    assert all(primary.closed for primary in fake_benchmark.primaries)
    assert all(replica.closed for replica in fake_benchmark.replicas)
    assert fake_benchmark.closed


def test_reader_failure_aborts_the_run(fake_clock: FakeClock) -> None:
    benchmark = FakeBenchmark(fake_clock, replica_fail_after=5)

    with pytest.raises(WorkerFailedError) as excinfo:
        run_benchmark(_config(concurrency=2), benchmark, clock=fake_clock, sleep=_no_sleep)

    assert excinfo.value.worker.startswith("client-")
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert all(replica.closed for replica in benchmark.replicas)
    assert benchmark.closed


def test_writer_failure_stops_readers_and_aborts(fake_clock: FakeClock) -> None:
    benchmark = FakeBenchmark(fake_clock, fail_writes=True)

    with pytest.raises(WorkerFailedError) as excinfo:
        run_benchmark(
            _config(duration=timedelta(hours=1), transactions_per_second=1_000),
            benchmark,
            clock=fake_clock,
            sleep=_no_sleep,
        )

    assert excinfo.value.worker == WRITER_NAME
    assert "primary rejected write" in str(excinfo.value)


def test_setup_failure_starts_no_workers(fake_clock: FakeClock) -> None:
    benchmark = FakeBenchmark(fake_clock, fail_replica_connect=True)

    with pytest.raises(BackendSetupError, match="replica unreachable"):
        run_benchmark(_config(transactions_per_second=1_000), benchmark, clock=fake_clock)

    assert all(primary.executed == [] for primary in benchmark.primaries)
    assert all(primary.closed for primary in benchmark.primaries)
    assert benchmark.closed


class _UnclosablePrimary(FakePrimary):
    def close(self) -> None:
        raise OSError("close failed")


class _BrokenMeasurements(Measurements):
    error: BaseException = RuntimeError("aggregator broke")

    def push(self, sample: timedelta) -> None:
        raise self.error


def test_setup_failure_survives_failing_close(fake_clock: FakeClock) -> None:
    benchmark = FakeBenchmark(fake_clock, fail_replica_connect=True)
    benchmark.primary_database = lambda: _UnclosablePrimary()

    with pytest.raises(BackendSetupError, match="replica unreachable"):
        run_benchmark(_config(), benchmark, clock=fake_clock)

    assert benchmark.closed


@pytest.mark.parametrize("error", [RuntimeError("aggregator broke"), KeyboardInterrupt()])
def test_drain_failure_stops_readers_and_writer(
    error: BaseException,
    fake_benchmark: FakeBenchmark,
    fake_clock: FakeClock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(_BrokenMeasurements, "error", error)
    monkeypatch.setattr(orchestrator, "Measurements", _BrokenMeasurements)

    # A century-long budget only ends in time if closing the queue stops the readers.
    with pytest.raises(type(error)):
        run_benchmark(
            _config(duration=timedelta(days=36_500), transactions_per_second=1_000, concurrency=2),
            fake_benchmark,
            clock=fake_clock,
            sleep=_no_sleep,
        )

    assert all(primary.closed for primary in fake_benchmark.primaries)
    assert all(replica.closed for replica in fake_benchmark.replicas)
    assert fake_benchmark.closed


@pytest.mark.parametrize(
    "overrides",
    [
        {"duration": timedelta()},
        {"concurrency": 0},
        {"transactions_per_second": -1},
        {"poll_interval_seconds": 0},
    ],
)
def test_run_config_rejects_invalid_values(overrides) -> None:
    with pytest.raises(ValidationError):
        _config(**overrides)


def test_run_complete_log_carries_harness_profile(
    fake_benchmark: FakeBenchmark, fake_clock: FakeClock, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="rr_bench.orchestrator"):
        run_benchmark(_config(), fake_benchmark, clock=fake_clock, sleep=_no_sleep)

    complete = [r for r in caplog.records if r.getMessage() == "[RUN COMPLETE] fake"]
    assert len(complete) == 1
    assert complete[0].profile["label"] == "fake"
    assert complete[0].profile["duration_seconds"] >= 0
