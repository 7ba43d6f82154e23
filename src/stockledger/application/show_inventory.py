"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from stockledger.application.dto import InventoryRecordDTO
from stockledger.domain.service.inventory_ledger import InventoryLedger


class ShowInventoryHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, product_id: str | None = None) -> list[InventoryRecordDTO]:
        if product_id is not None:
            records = [self._ledger.get(product_id)]
        else:
            records = sorted(self._ledger.list_all(), key=lambda r: r.product_id)
        return [InventoryRecordDTO.from_record(r) for r in records]
