"""
SQL plumbing shared by the relational backends.

Both adapters speak the same schema, so statement text is built here from the
operation models and only the driver calls (and the parameter placeholder)
differ per backend. Table and column names come from the fixed maps below,
never from user input.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional, Sequence, Tuple

from rr_bench.domain.operations import (
    WRITE_OPERATION_TYPES,
    Entity,
    Intent,
    ReadOperation,
    WriteOperation,
    WriteOutcome,
)
from rr_bench.errors import UnsupportedOperationError

# entity -> (table, primary key column)
ENTITY_TABLES: Dict[Entity, Tuple[str, str]] = {
    Entity.CUSTOMER: ("customers", "customer_id"),
    Entity.ACCOUNT: ("accounts", "account_id"),
    Entity.SECURITY: ("securities", "security_id"),
    Entity.TRADE: ("trades", "trade_id"),
    Entity.ORDER: ("orders", "order_id"),
    Entity.MARKET_DATA: ("market_data", "market_data_id"),
}


def build_write_statement(operation: WriteOperation, placeholder: str) -> Tuple[str, Tuple[Any, ...]]:
    """
    Render a write operation as ``(sql, params)``.

    Inserts only list the columns that carry a value, so nullable parent ids
    are omitted unless set. Updates and deletes target the entity's own key.

    Raises
    ------
    UnsupportedOperationError
        If the operation is not one of the known write variants.
    """
    if type(operation) not in WRITE_OPERATION_TYPES:
        raise UnsupportedOperationError(f"cannot dispatch {type(operation).__name__}")

    table, key = ENTITY_TABLES[operation.entity]
    values = operation.model_dump(exclude_none=True)

    if operation.intent is Intent.INSERT:
        columns = ", ".join(values)
        marks = ", ".join([placeholder] * len(values))
        return f"INSERT INTO {table} ({columns}) VALUES ({marks})", tuple(values.values())

    key_value = values.pop(key)
    if operation.intent is Intent.UPDATE:
        assignments = ", ".join(f"{column} = {placeholder}" for column in values)
        sql = f"UPDATE {table} SET {assignments} WHERE {key} = {placeholder}"
        return sql, (*values.values(), key_value)

    return f"DELETE FROM {table} WHERE {key} = {placeholder}", (key_value,)


def build_read_statement(operation: ReadOperation, placeholder: str) -> str:
    """``SELECT * FROM <view>``, filtered on the parameter column when the kind takes one."""
    sql = f"SELECT * FROM {operation.query_name}"
    if operation.parameter is not None:
        sql += f" WHERE {operation.parameter.value} = {placeholder}"
    return sql


class SqlPrimary(abc.ABC):
    """
    Primary capability over any DB-API style driver.

    Subclasses provide `_fetch_one` and `_execute`. Variants listed in
    `skipped_operations` are acknowledged with `WriteOutcome.SKIPPED` and never
    reach the database.
    """

    placeholder: str = "?"
    skipped_operations: Tuple[type, ...] = ()

    @abc.abstractmethod
    def _fetch_one(self, sql: str) -> Optional[Sequence[Any]]:
        raise NotImplementedError

    @abc.abstractmethod
    def _execute(self, sql: str, params: Tuple[Any, ...]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def _random_value(self, table: str, column: str) -> Any:
        row = self._fetch_one(f"SELECT {column} FROM {table} ORDER BY random() LIMIT 1")
        if row is None:
            raise LookupError(f"no rows available in {table} to pick a random {column}")
        return row[0]

    def get_random_customer_id(self) -> int:
        return self._random_value("customers", "customer_id")

    def get_random_account_id(self) -> int:
        return self._random_value("accounts", "account_id")

    def get_random_security_id(self) -> int:
        return self._random_value("securities", "security_id")

    def get_random_trade_id(self) -> int:
        return self._random_value("trades", "trade_id")

    def get_random_order_id(self) -> int:
        return self._random_value("orders", "order_id")

    def get_random_market_data_id(self) -> int:
        return self._random_value("market_data", "market_data_id")

    def get_random_sector(self) -> str:
        return self._random_value("securities", "sector")

    def get_random_ticker(self) -> str:
        return self._random_value("securities", "ticker")

    def execute(self, operation: WriteOperation) -> WriteOutcome:
        if isinstance(operation, self.skipped_operations):
            return WriteOutcome.SKIPPED
        sql, params = build_write_statement(operation, self.placeholder)
        self._execute(sql, params)
        return WriteOutcome.APPLIED


class SqlReplica(abc.ABC):
    """
    Replica capability: one method per read kind, each a view scan whose rows
    are fetched and discarded.
    """

    placeholder: str = "?"

    @abc.abstractmethod
    def _query(self, sql: str, params: Tuple[Any, ...]) -> None:
        """Run the query and drain its rows."""
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def _read(self, operation: ReadOperation, *params: Any) -> None:
        self._query(build_read_statement(operation, self.placeholder), params)

    def customer_portfolio(self, customer_id: int) -> None:
        self._read(ReadOperation.CUSTOMER_PORTFOLIO, customer_id)

    def top_performers(self) -> None:
        self._read(ReadOperation.TOP_PERFORMERS)

    def market_overview(self, sector: str) -> None:
        self._read(ReadOperation.MARKET_OVERVIEW, sector)

    def recent_large_trades(self, account_id: int) -> None:
        self._read(ReadOperation.RECENT_LARGE_TRADES, account_id)

    def customer_order_book(self, customer_id: int) -> None:
        self._read(ReadOperation.CUSTOMER_ORDER_BOOK, customer_id)

    def sector_performance(self, sector: str) -> None:
        self._read(ReadOperation.SECTOR_PERFORMANCE, sector)

    def account_activity_summary(self, account_id: int) -> None:
        self._read(ReadOperation.ACCOUNT_ACTIVITY_SUMMARY, account_id)

    def daily_market_movements(self, security_id: int) -> None:
        self._read(ReadOperation.DAILY_MARKET_MOVEMENTS, security_id)

    def high_value_customers(self) -> None:
        self._read(ReadOperation.HIGH_VALUE_CUSTOMERS)

    def pending_orders_summary(self, ticker: str) -> None:
        self._read(ReadOperation.PENDING_ORDERS_SUMMARY, ticker)

    def trade_volume_by_hour(self) -> None:
        self._read(ReadOperation.TRADE_VOLUME_BY_HOUR)

    def top_securities_by_sector(self, sector: str) -> None:
        self._read(ReadOperation.TOP_SECURITIES_BY_SECTOR, sector)

    def recent_trades_by_account(self, account_id: int) -> None:
        self._read(ReadOperation.RECENT_TRADES_BY_ACCOUNT, account_id)

    def order_fulfillment_rates(self, customer_id: int) -> None:
        self._read(ReadOperation.ORDER_FULFILLMENT_RATES, customer_id)

    def sector_order_activity(self, sector: str) -> None:
        self._read(ReadOperation.SECTOR_ORDER_ACTIVITY, sector)

    def cascading_order_cancellation_alert(self) -> None:
        self._read(ReadOperation.CASCADING_ORDER_CANCELLATION_ALERT)


__all__ = [
    "ENTITY_TABLES",
    "SqlPrimary",
    "SqlReplica",
    "build_read_statement",
    "build_write_statement",
]
