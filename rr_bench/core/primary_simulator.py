"""
Primary (write-traffic) simulator.

Emits randomly chosen inserts, updates, and deletes against the primary at a
fixed rate until the completion tracker reports that every reader is done.
The RNG is seeded so two runs with the same seed draw the same sequence of
operation kinds and field values (ids still come from the database).
"""

from __future__ import annotations

import random
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from rr_bench.core.abstract import PrimaryDatabase
from rr_bench.core.completion import CompletionTracker
from rr_bench.domain import fakes
from rr_bench.domain.operations import (
    DeleteAccount,
    DeleteCustomer,
    DeleteMarketData,
    DeleteOrder,
    DeleteSecurity,
    DeleteTrade,
    InsertAccount,
    InsertCustomer,
    InsertMarketData,
    InsertOrder,
    InsertSecurity,
    InsertTrade,
    Intent,
    UpdateAccount,
    UpdateCustomer,
    UpdateMarketData,
    UpdateOrder,
    UpdateTrade,
    WriteOperation,
    WriteOutcome,
)
from rr_bench.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_SEED = 42


class OperationMix(BaseModel):
    """
    Percentage split between inserts, updates, and deletes.

    Draws in ``[0, 100)`` map to cumulative bands ``[0, insert)``,
    ``[insert, insert + update)`` and ``[insert + update, 100)``. Every band must
    be non-empty, otherwise one intent class would silently never be generated.
    """

    insert_percentage: int = Field(45, gt=0, lt=100)
    update_percentage: int = Field(45, gt=0, lt=100)
    delete_percentage: int = Field(10, gt=0, lt=100)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_partition(self) -> "OperationMix":
        total = self.insert_percentage + self.update_percentage + self.delete_percentage
        if total != 100:
            raise ValueError(f"operation percentages must sum to 100, got {total}")
        return self

    @property
    def thresholds(self) -> Tuple[int, int, int]:
        insert = self.insert_percentage
        update = insert + self.update_percentage
        return insert, update, 100

    def classify(self, draw: int) -> Intent:
        insert, update, _ = self.thresholds
        if draw < insert:
            return Intent.INSERT
        if draw < update:
            return Intent.UPDATE
        return Intent.DELETE


@dataclass
class WriterStats:
    applied: int = 0
    skipped: int = 0
    by_type: Counter = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return self.applied + self.skipped


class PrimarySimulator:
    """
    Fixed-interval write generator.

    Each cycle generates one operation, executes it, then sleeps ``1 / rate``
    seconds regardless of how long the write took (no catch-up). Any exception
    from the primary ends the run.
    """

    def __init__(
        self,
        db: PrimaryDatabase,
        transactions_per_second: int,
        tracker: CompletionTracker,
        seed: int = DEFAULT_SEED,
        mix: Optional[OperationMix] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if transactions_per_second < 0:
            raise ValueError("transactions_per_second must be >= 0")
        self.db = db
        self.transactions_per_second = transactions_per_second
        self.tracker = tracker
        self.mix = mix or OperationMix()
        self.rng = random.Random(seed)
        self.stats = WriterStats()
        self._sleep = sleep

    def run(self) -> WriterStats:
        if self.transactions_per_second == 0:
            log.info("Write traffic disabled (0 transactions per second)")
            return self.stats

        interval = 1.0 / self.transactions_per_second
        log.info(
            "Primary simulator started",
            extra={"tps": self.transactions_per_second, "interval_seconds": interval},
        )
        while not self.tracker.is_done():
            operation = self.next_operation()
            outcome = self.db.execute(operation)
            self._record(operation, outcome)
            self._sleep(interval)

        log.info(
            "Primary simulator stopped",
            extra={"applied": self.stats.applied, "skipped": self.stats.skipped},
        )
        return self.stats

    def _record(self, operation: WriteOperation, outcome: WriteOutcome) -> None:
        self.stats.by_type[type(operation).__name__] += 1
        if outcome is WriteOutcome.SKIPPED:
            self.stats.skipped += 1
            log.debug("Write skipped by backend", extra={"operation": type(operation).__name__})
        else:
            self.stats.applied += 1

    def next_operation(self) -> WriteOperation:
        intent = self.mix.classify(self.rng.randrange(100))
        if intent is Intent.INSERT:
            return self._generate_insert()
        if intent is Intent.UPDATE:
            return self._generate_update()
        return self._generate_delete()

    def _generate_insert(self) -> WriteOperation:
        rng = self.rng
        choice = rng.randrange(6)
        if choice == 0:
            return InsertCustomer(name=fakes.person_name(rng), address=fakes.street_address(rng))
        if choice == 1:
            return InsertAccount(
                customer_id=self.db.get_random_customer_id(),
                account_type=rng.choice(fakes.ACCOUNT_TYPES),
                balance=fakes.balance(rng),
            )
        if choice == 2:
            return InsertSecurity(
                ticker=fakes.ticker(rng),
                name=fakes.company_name(rng),
                sector=fakes.sector(rng),
            )
        if choice == 3:
            return InsertTrade(
                account_id=self.db.get_random_account_id(),
                security_id=self.db.get_random_security_id(),
                trade_type=rng.choice(fakes.SIDES),
                quantity=fakes.quantity(rng),
                price=fakes.trade_price(rng),
            )
        if choice == 4:
            return InsertOrder(
                account_id=self.db.get_random_account_id(),
                security_id=self.db.get_random_security_id(),
                order_type=rng.choice(fakes.SIDES),
                quantity=fakes.quantity(rng),
                limit_price=float(rng.randrange(1, 1000)),
                status=rng.choice(fakes.ORDER_STATUSES),
            )
        return InsertMarketData(
            security_id=self.db.get_random_security_id(),
            price=fakes.trade_price(rng),
            volume=fakes.volume(rng),
        )

    def _generate_update(self) -> WriteOperation:
        rng = self.rng
        choice = rng.randrange(5)
        if choice == 0:
            return UpdateCustomer(
                customer_id=self.db.get_random_customer_id(),
                address=fakes.street_address(rng),
            )
        if choice == 1:
            return UpdateAccount(account_id=self.db.get_random_account_id(), balance=fakes.balance(rng))
        if choice == 2:
            return UpdateTrade(trade_id=self.db.get_random_trade_id(), price=fakes.trade_price(rng))
        if choice == 3:
            return UpdateOrder(
                order_id=self.db.get_random_order_id(),
                status=rng.choice(fakes.ORDER_STATUSES),
                limit_price=fakes.trade_price(rng),
            )
        return UpdateMarketData(
            market_data_id=self.db.get_random_market_data_id(),
            price=fakes.trade_price(rng),
            volume=fakes.volume(rng),
        )

    def _generate_delete(self) -> WriteOperation:
        choice = self.rng.randrange(6)
        if choice == 0:
            return DeleteCustomer(customer_id=self.db.get_random_customer_id())
        if choice == 1:
            return DeleteAccount(account_id=self.db.get_random_account_id())
        if choice == 2:
            return DeleteSecurity(security_id=self.db.get_random_security_id())
        if choice == 3:
            return DeleteTrade(trade_id=self.db.get_random_trade_id())
        if choice == 4:
            return DeleteOrder(order_id=self.db.get_random_order_id())
        return DeleteMarketData(market_data_id=self.db.get_random_market_data_id())


__all__ = ["DEFAULT_SEED", "OperationMix", "PrimarySimulator", "WriterStats"]
