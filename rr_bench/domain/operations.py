"""
Operation vocabulary for the read-replica benchmark.

`WriteOperation` subclasses are the complete set of write intents the primary
simulator may emit: Insert/Update/Delete over six trading entities. Models are
frozen Pydantic models so generated operations are validated once and can be
logged or compared safely.

`ReadOperation` is the fixed, ordered catalogue of analytical queries issued
against the replica. Each member carries the name of the replica call and the
kind of key (if any) that must first be fetched from the primary.
"""
from __future__ import annotations

from enum import Enum
from typing import ClassVar, Optional, Union

from pydantic import BaseModel, Field


class Entity(str, Enum):
    CUSTOMER = "customer"
    ACCOUNT = "account"
    SECURITY = "security"
    TRADE = "trade"
    ORDER = "order"
    MARKET_DATA = "market_data"


class Intent(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class WriteOutcome(str, Enum):
    """
    Result of executing a write against the primary.

    SKIPPED means the adapter deliberately does not perform this variant; it is
    neither a success that touched the database nor a failure.
    """

    APPLIED = "applied"
    SKIPPED = "skipped"


class WriteOperation(BaseModel):
    """
    Base class of every write intent.

    Subclasses pin `entity` and `intent` so adapters and tests can reason about
    an operation without isinstance chains.
    """

    entity: ClassVar[Entity]
    intent: ClassVar[Intent]

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


# Inserts


class InsertCustomer(WriteOperation):
    entity = Entity.CUSTOMER
    intent = Intent.INSERT

    name: str
    address: str


class InsertAccount(WriteOperation):
    entity = Entity.ACCOUNT
    intent = Intent.INSERT

    customer_id: int
    account_type: str
    balance: float
    parent_account_id: Optional[int] = Field(None, description="Nullable parent account.")


class InsertSecurity(WriteOperation):
    entity = Entity.SECURITY
    intent = Intent.INSERT

    ticker: str
    name: str
    sector: str


class InsertTrade(WriteOperation):
    entity = Entity.TRADE
    intent = Intent.INSERT

    account_id: int
    security_id: int
    trade_type: str
    quantity: int
    price: float
    parent_trade_id: Optional[int] = Field(None, description="Nullable parent trade.")


class InsertOrder(WriteOperation):
    entity = Entity.ORDER
    intent = Intent.INSERT

    account_id: int
    security_id: int
    order_type: str
    quantity: int
    limit_price: float
    status: str
    parent_order_id: Optional[int] = Field(None, description="Nullable parent order.")


class InsertMarketData(WriteOperation):
    entity = Entity.MARKET_DATA
    intent = Intent.INSERT

    security_id: int
    price: float
    volume: int


# Updates. Securities have no mutable fields in this workload.


class UpdateCustomer(WriteOperation):
    entity = Entity.CUSTOMER
    intent = Intent.UPDATE

    customer_id: int
    address: str


class UpdateAccount(WriteOperation):
    entity = Entity.ACCOUNT
    intent = Intent.UPDATE

    account_id: int
    balance: float


class UpdateTrade(WriteOperation):
    entity = Entity.TRADE
    intent = Intent.UPDATE

    trade_id: int
    price: float


class UpdateOrder(WriteOperation):
    entity = Entity.ORDER
    intent = Intent.UPDATE

    order_id: int
    status: str
    limit_price: float


class UpdateMarketData(WriteOperation):
    entity = Entity.MARKET_DATA
    intent = Intent.UPDATE

    market_data_id: int
    price: float
    volume: int


# Deletes


class DeleteCustomer(WriteOperation):
    entity = Entity.CUSTOMER
    intent = Intent.DELETE

    customer_id: int


class DeleteAccount(WriteOperation):
    entity = Entity.ACCOUNT
    intent = Intent.DELETE

    account_id: int


class DeleteSecurity(WriteOperation):
    entity = Entity.SECURITY
    intent = Intent.DELETE

    security_id: int


class DeleteTrade(WriteOperation):
    entity = Entity.TRADE
    intent = Intent.DELETE

    trade_id: int


class DeleteOrder(WriteOperation):
    entity = Entity.ORDER
    intent = Intent.DELETE

    order_id: int


class DeleteMarketData(WriteOperation):
    entity = Entity.MARKET_DATA
    intent = Intent.DELETE

    market_data_id: int


WRITE_OPERATION_TYPES = (
    InsertCustomer,
    InsertAccount,
    InsertSecurity,
    InsertTrade,
    InsertOrder,
    InsertMarketData,
    UpdateCustomer,
    UpdateAccount,
    UpdateTrade,
    UpdateOrder,
    UpdateMarketData,
    DeleteCustomer,
    DeleteAccount,
    DeleteSecurity,
    DeleteTrade,
    DeleteOrder,
    DeleteMarketData,
)


class ParameterKind(str, Enum):
    """Kind of key a read operation needs from the primary before it runs."""

    CUSTOMER_ID = "customer_id"
    ACCOUNT_ID = "account_id"
    SECURITY_ID = "security_id"
    SECTOR = "sector"
    TICKER = "ticker"

    def fetch(self, primary) -> Union[int, str]:
        """Ask the primary for a random existing key of this kind."""
        return getattr(primary, f"get_random_{self.value}")()


class ReadOperation(Enum):
    """
    Ordered catalogue of analytical queries run against the replica.

    Member order is the round-robin order used by every reader.
    """

    CUSTOMER_PORTFOLIO = ("customer_portfolio", ParameterKind.CUSTOMER_ID)
    TOP_PERFORMERS = ("top_performers", None)
    MARKET_OVERVIEW = ("market_overview", ParameterKind.SECTOR)
    RECENT_LARGE_TRADES = ("recent_large_trades", ParameterKind.ACCOUNT_ID)
    CUSTOMER_ORDER_BOOK = ("customer_order_book", ParameterKind.CUSTOMER_ID)
    SECTOR_PERFORMANCE = ("sector_performance", ParameterKind.SECTOR)
    ACCOUNT_ACTIVITY_SUMMARY = ("account_activity_summary", ParameterKind.ACCOUNT_ID)
    DAILY_MARKET_MOVEMENTS = ("daily_market_movements", ParameterKind.SECURITY_ID)
    HIGH_VALUE_CUSTOMERS = ("high_value_customers", None)
    PENDING_ORDERS_SUMMARY = ("pending_orders_summary", ParameterKind.TICKER)
    TRADE_VOLUME_BY_HOUR = ("trade_volume_by_hour", None)
    TOP_SECURITIES_BY_SECTOR = ("top_securities_by_sector", ParameterKind.SECTOR)
    RECENT_TRADES_BY_ACCOUNT = ("recent_trades_by_account", ParameterKind.ACCOUNT_ID)
    ORDER_FULFILLMENT_RATES = ("order_fulfillment_rates", ParameterKind.CUSTOMER_ID)
    SECTOR_ORDER_ACTIVITY = ("sector_order_activity", ParameterKind.SECTOR)
    CASCADING_ORDER_CANCELLATION_ALERT = ("cascading_order_cancellation_alert", None)

    def __init__(self, query_name: str, parameter: Optional[ParameterKind]) -> None:
        self.query_name = query_name
        self.parameter = parameter

    @property
    def needs_parameter(self) -> bool:
        return self.parameter is not None


__all__ = [
    "WRITE_OPERATION_TYPES",
    "DeleteAccount",
    "DeleteCustomer",
    "DeleteMarketData",
    "DeleteOrder",
    "DeleteSecurity",
    "DeleteTrade",
    "Entity",
    "InsertAccount",
    "InsertCustomer",
    "InsertMarketData",
    "InsertOrder",
    "InsertSecurity",
    "InsertTrade",
    "Intent",
    "ParameterKind",
    "ReadOperation",
    "UpdateAccount",
    "UpdateCustomer",
    "UpdateMarketData",
    "UpdateOrder",
    "UpdateTrade",
    "WriteOperation",
    "WriteOutcome",
]
