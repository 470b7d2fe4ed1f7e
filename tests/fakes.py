"""
In-memory capabilities shared by the unit tests.

Replica calls advance a per-thread fake nanosecond clock, so reader timing is
exact and independent of the machine running the tests.
"""

from __future__ import annotations

import threading
from collections import Counter
from datetime import timedelta
from typing import List, Optional, Tuple

from rr_bench.domain.operations import ReadOperation, UpdateMarketData, WriteOperation, WriteOutcome

DEFAULT_LATENCY = timedelta(milliseconds=100)

_QUERY_NAMES = frozenset(op.query_name for op in ReadOperation)


class FakeClock:
    """
    Nanosecond clock with one timeline per thread.

    Each reader runs on its own worker thread, so advancing the clock inside a
    replica call only moves that reader's time.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def __call__(self) -> int:
        return getattr(self._local, "now", 0)

    def advance(self, delta: timedelta) -> None:
        self.advance_ns((delta // timedelta(microseconds=1)) * 1000)

    def advance_ns(self, nanos: int) -> None:
        self._local.now = self() + nanos


class FakePrimary:
    def __init__(self, fail_writes: bool = False, skip_market_data_updates: bool = False) -> None:
        self.executed: List[WriteOperation] = []
        self.lookups: Counter = Counter()
        self.closed = False
        self._fail_writes = fail_writes
        self._skip_market_data_updates = skip_market_data_updates

    def _lookup(self, kind: str, value):
        self.lookups[kind] += 1
        return value

    def get_random_customer_id(self) -> int:
        return self._lookup("customer_id", 1)

    def get_random_account_id(self) -> int:
        return self._lookup("account_id", 2)

    def get_random_security_id(self) -> int:
        return self._lookup("security_id", 3)

    def get_random_trade_id(self) -> int:
        return self._lookup("trade_id", 4)

    def get_random_order_id(self) -> int:
        return self._lookup("order_id", 5)

    def get_random_market_data_id(self) -> int:
        return self._lookup("market_data_id", 6)

    def get_random_sector(self) -> str:
        return self._lookup("sector", "Energy")

    def get_random_ticker(self) -> str:
        return self._lookup("ticker", "ABCD")

    def execute(self, operation: WriteOperation) -> WriteOutcome:
        if self._fail_writes:
            raise RuntimeError("primary rejected write")
        self.executed.append(operation)
        if self._skip_market_data_updates and isinstance(operation, UpdateMarketData):
            return WriteOutcome.SKIPPED
        return WriteOutcome.APPLIED

    def close(self) -> None:
        self.closed = True


class FakeReplica:
    """Every read call advances the clock by `latency`; calls are recorded."""

    def __init__(
        self,
        clock: FakeClock,
        latency: timedelta = DEFAULT_LATENCY,
        fail_after: Optional[int] = None,
        latency_ns: Optional[int] = None,
    ) -> None:
        self.clock = clock
        self.latency = latency
        self.latency_ns = latency_ns
        self.calls: List[Tuple[str, tuple]] = []
        self.closed = False
        self._fail_after = fail_after

    def __getattr__(self, name: str):
        if name not in _QUERY_NAMES:
            raise AttributeError(name)

        def _call(*args):
            if self._fail_after is not None and len(self.calls) >= self._fail_after:
                raise RuntimeError(f"replica failed on {name}")
            self.calls.append((name, args))
            if self.latency_ns is not None:
                self.clock.advance_ns(self.latency_ns)
            else:
                self.clock.advance(self.latency)

        return _call

    def close(self) -> None:
        self.closed = True


class FakeBenchmark:
    name = "fake"
    description = "In-memory capabilities for tests."

    def __init__(
        self,
        clock: FakeClock,
        latency: timedelta = DEFAULT_LATENCY,
        fail_writes: bool = False,
        replica_fail_after: Optional[int] = None,
        fail_replica_connect: bool = False,
    ) -> None:
        self.clock = clock
        self.latency = latency
        self.fail_writes = fail_writes
        self.replica_fail_after = replica_fail_after
        self.fail_replica_connect = fail_replica_connect
        self.primaries: List[FakePrimary] = []
        self.replicas: List[FakeReplica] = []
        self.closed = False

    def primary_database(self) -> FakePrimary:
        primary = FakePrimary(fail_writes=self.fail_writes)
        self.primaries.append(primary)
        return primary

    def read_replica(self) -> FakeReplica:
        if self.fail_replica_connect:
            raise ConnectionError("replica unreachable")
        replica = FakeReplica(self.clock, self.latency, fail_after=self.replica_fail_after)
        self.replicas.append(replica)
        return replica

    def close(self) -> None:
        self.closed = True

