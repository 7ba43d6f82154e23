"""Application service: Remove Inventory use case.

Called when a product is destroyed in the catalog.
"""

from __future__ import annotations

from stockledger.domain.service.inventory_ledger import InventoryLedger


class RemoveInventoryHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, product_id: str) -> None:
        self._ledger.discontinue(product_id)
