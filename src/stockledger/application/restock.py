"""Application service: Restock use case.

Stamps ``last_restocked`` with the injected clock unless the caller
supplies the replenishment time explicitly.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from stockledger.application.dto import InventoryRecordDTO
from stockledger.application.retry import RetryPolicy
from stockledger.domain.service.inventory_ledger import InventoryLedger


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RestockHandler:

    def __init__(
        self,
        ledger: InventoryLedger,
        retry: RetryPolicy,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._ledger = ledger
        self._retry = retry
        self._clock = clock

    def handle(
        self,
        product_id: str,
        quantity: int,
        timestamp: datetime | None = None,
    ) -> InventoryRecordDTO:
        when = timestamp if timestamp is not None else self._clock()
        record = self._retry.call(
            lambda: self._ledger.restock(product_id, quantity, when)
        )
        return InventoryRecordDTO.from_record(record)
