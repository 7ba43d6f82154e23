"""Application service: Reserve Stock use case.

Holds units of a single product.  Lock contention is retried according
to the policy; a shortage is reported straight back to the caller.
When an order id is given it is bound to the log context for the call,
so every event the ledger emits while reserving carries it.
"""

from __future__ import annotations

from contextlib import nullcontext

import structlog

from stockledger.application.dto import InventoryRecordDTO
from stockledger.application.retry import RetryPolicy
from stockledger.domain.service.inventory_ledger import InventoryLedger


class ReserveStockHandler:

    def __init__(self, ledger: InventoryLedger, retry: RetryPolicy) -> None:
        self._ledger = ledger
        self._retry = retry

    def handle(
        self, product_id: str, quantity: int, order_id: str | None = None
    ) -> InventoryRecordDTO:
        context = (
            structlog.contextvars.bound_contextvars(order_id=order_id)
            if order_id is not None
            else nullcontext()
        )
        with context:
            record = self._retry.call(lambda: self._ledger.reserve(product_id, quantity))
        return InventoryRecordDTO.from_record(record)
