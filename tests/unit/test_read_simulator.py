from __future__ import annotations

import itertools
import math
from collections import Counter
from datetime import timedelta

import pytest

from rr_bench.core.channel import ChannelClosed, sample_channel
from rr_bench.core.completion import new_task_handles
from rr_bench.core.read_simulator import ReaderSimulator, read_cycle
from rr_bench.domain.operations import ReadOperation
from tests.fakes import FakeClock, FakePrimary, FakeReplica

CATALOGUE_LENGTH = 16
LAPS = 3
SHORT_WAIT = 0.01


class _SlowLookupPrimary(FakePrimary):
    """Key lookups move the clock too; they must not count as replica time."""

    def __init__(self, clock: FakeClock) -> None:
        super().__init__()
        self._clock = clock

    def _lookup(self, kind, value):
        self._clock.advance(timedelta(seconds=5))
        return super()._lookup(kind, value)


def _reader(replica, primary, duration: timedelta, clock: FakeClock, progress=None):
    handle, tracker = new_task_handles()
    sender, receiver = sample_channel()
    reader = ReaderSimulator(
        replica,
        primary,
        duration,
        sender,
        handle.clone(),
        progress=progress,
        clock=clock,
    )
    handle.release()
    return reader, receiver, tracker


def _drain(receiver):
    samples = []
    while True:
        try:
            samples.append(receiver.recv(timeout=SHORT_WAIT))
        except ChannelClosed:
            return samples


def test_cycle_starts_in_canonical_order_and_wraps() -> None:
    draws = list(itertools.islice(read_cycle(), LAPS * CATALOGUE_LENGTH))

    assert len(ReadOperation) == CATALOGUE_LENGTH
    assert draws[:CATALOGUE_LENGTH] == list(ReadOperation)
    assert set(Counter(draws).values()) == {LAPS}


@pytest.mark.parametrize(
    ("duration", "latency"),
    [
        (timedelta(seconds=2), timedelta(milliseconds=100)),
        (timedelta(seconds=1), timedelta(milliseconds=300)),
        (timedelta(milliseconds=50), timedelta(milliseconds=70)),
    ],
)
def test_reader_stops_after_ceil_duration_over_latency(duration, latency, fake_clock) -> None:
    replica = FakeReplica(fake_clock, latency)
    reader, receiver, tracker = _reader(replica, FakePrimary(), duration, fake_clock)

    emitted = reader.run()
    expected = math.ceil(duration / latency)

    assert emitted == expected
    assert reader.experiment_duration == latency * expected
    assert reader.experiment_duration >= duration
    assert reader.experiment_duration - latency < duration
    assert _drain(receiver) == [latency] * expected
    assert tracker.is_done()


def test_sub_microsecond_calls_still_advance_experiment_time(fake_clock) -> None:
    replica = FakeReplica(fake_clock, latency_ns=400)
    reader, receiver, tracker = _reader(replica, FakePrimary(), timedelta(milliseconds=1), fake_clock)

    emitted = reader.run()

    assert emitted == 2500
    assert reader.experiment_ns == 1_000_000
    assert reader.experiment_duration == timedelta(milliseconds=1)
    assert set(_drain(receiver)) == {timedelta()}
    assert tracker.is_done()


def test_parameter_lookups_are_not_timed(fake_clock) -> None:
    replica = FakeReplica(fake_clock)
    primary = _SlowLookupPrimary(fake_clock)
    reader, receiver, _ = _reader(replica, primary, timedelta(seconds=2), fake_clock)

    assert reader.run() == 20
    assert set(_drain(receiver)) == {timedelta(milliseconds=100)}
    assert sum(primary.lookups.values()) > 0


def test_replica_receives_keys_from_the_primary(fake_clock) -> None:
    replica = FakeReplica(fake_clock)
    reader, _, _ = _reader(replica, FakePrimary(), timedelta(milliseconds=1600), fake_clock)
    reader.run()

    calls = dict(replica.calls)
    assert calls["customer_portfolio"] == (1,)
    assert calls["top_performers"] == ()
    assert calls["market_overview"] == ("Energy",)
    assert calls["recent_large_trades"] == (2,)
    assert calls["daily_market_movements"] == (3,)
    assert calls["pending_orders_summary"] == ("ABCD",)
    assert [name for name, _ in replica.calls] == [op.query_name for op in ReadOperation]


def test_reader_stops_quietly_when_queue_is_closed(fake_clock) -> None:
    replica = FakeReplica(fake_clock)
    reader, receiver, tracker = _reader(replica, FakePrimary(), timedelta(hours=1), fake_clock)
    receiver.close()

    assert reader.run() == 0
    assert len(replica.calls) == 1
    assert tracker.is_done()


def test_failure_releases_handle_and_sender(fake_clock) -> None:
    replica = FakeReplica(fake_clock, fail_after=3)
    reader, receiver, tracker = _reader(replica, FakePrimary(), timedelta(seconds=10), fake_clock)

    with pytest.raises(RuntimeError, match="replica failed"):
        reader.run()

    assert tracker.is_done()
    assert len(_drain(receiver)) == 3


def test_progress_advances_in_whole_seconds(fake_clock) -> None:
    ticks = []
    replica = FakeReplica(fake_clock)
    reader, _, _ = _reader(
        replica, FakePrimary(), timedelta(milliseconds=2500), fake_clock, progress=ticks.append
    )

    assert reader.run() == 25
    assert ticks == [1, 1]
