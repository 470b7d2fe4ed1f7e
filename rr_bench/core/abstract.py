"""
Capability interfaces consumed by the benchmark core.

Concrete backends (e.g. Postgres, SQLite) implement these protocols; the
simulators and orchestrator depend only on them and never on a connection type.
Every method either returns a value or raises; the core never retries.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from rr_bench.domain.operations import WriteOperation, WriteOutcome


@runtime_checkable
class PrimaryDatabase(Protocol):
    """
    Write-side connection, also used to look up random existing keys.

    Lookups raise when no row is available (e.g. the table is empty).
    """

    def get_random_customer_id(self) -> int: ...

    def get_random_account_id(self) -> int: ...

    def get_random_security_id(self) -> int: ...

    def get_random_trade_id(self) -> int: ...

    def get_random_order_id(self) -> int: ...

    def get_random_market_data_id(self) -> int: ...

    def get_random_sector(self) -> str: ...

    def get_random_ticker(self) -> str: ...

    def execute(self, operation: WriteOperation) -> WriteOutcome:
        """
        Execute a write operation.

        Returns
        -------
        WriteOutcome
            APPLIED when the statement ran, SKIPPED when the adapter deliberately
            does not support the variant. Failures raise.
        """
        ...

    def close(self) -> None: ...


@runtime_checkable
class ReadReplica(Protocol):
    """
    Read-side connection. One call per `ReadOperation`; rows are discarded.
    """

    def customer_portfolio(self, customer_id: int) -> None: ...

    def top_performers(self) -> None: ...

    def market_overview(self, sector: str) -> None: ...

    def recent_large_trades(self, account_id: int) -> None: ...

    def customer_order_book(self, customer_id: int) -> None: ...

    def sector_performance(self, sector: str) -> None: ...

    def account_activity_summary(self, account_id: int) -> None: ...

    def daily_market_movements(self, security_id: int) -> None: ...

    def high_value_customers(self) -> None: ...

    def pending_orders_summary(self, ticker: str) -> None: ...

    def trade_volume_by_hour(self) -> None: ...

    def top_securities_by_sector(self, sector: str) -> None: ...

    def recent_trades_by_account(self, account_id: int) -> None: ...

    def order_fulfillment_rates(self, customer_id: int) -> None: ...

    def sector_order_activity(self, sector: str) -> None: ...

    def cascading_order_cancellation_alert(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class Benchmark(Protocol):
    """
    Factory for primary and replica connections of one backend.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the backend.
    """

    name: str
    description: str

    def primary_database(self) -> PrimaryDatabase:
        """Open a primary client. May be called many times; may share a pool."""
        ...

    def read_replica(self) -> ReadReplica:
        """Open a replica client with its own connection."""
        ...

    def close(self) -> None: ...


class BenchmarkFactory(Protocol):
    def __call__(self, config: Mapping[str, str]) -> Benchmark: ...


__all__ = [
    "Benchmark",
    "BenchmarkFactory",
    "PrimaryDatabase",
    "ReadReplica",
]
