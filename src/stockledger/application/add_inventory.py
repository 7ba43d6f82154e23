"""Application service: Add Inventory use case.

Called when a product enters the catalog; the record starts empty.
"""

from __future__ import annotations

from stockledger.application.dto import InventoryRecordDTO
from stockledger.domain.service.inventory_ledger import InventoryLedger


class AddInventoryHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, product_id: str) -> InventoryRecordDTO:
        record = self._ledger.introduce(product_id)
        return InventoryRecordDTO.from_record(record)
