"""Application service: Commit Stock use case (shipment)."""

from __future__ import annotations

from stockledger.application.dto import InventoryRecordDTO
from stockledger.application.retry import RetryPolicy
from stockledger.domain.service.inventory_ledger import InventoryLedger


class CommitStockHandler:

    def __init__(self, ledger: InventoryLedger, retry: RetryPolicy) -> None:
        self._ledger = ledger
        self._retry = retry

    def handle(self, product_id: str, quantity: int) -> InventoryRecordDTO:
        record = self._retry.call(lambda: self._ledger.commit(product_id, quantity))
        return InventoryRecordDTO.from_record(record)
