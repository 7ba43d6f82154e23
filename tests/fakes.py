"""Test doubles for the inventory repository.

These build on the in-memory repository but let a test hold a
ledger operation in the middle of its critical section.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from stockledger.domain.model.inventory import InventoryRecord
from stockledger.infrastructure.persistence.memory_inventory_repository import (
    InMemoryInventoryRepository,
)


class BlockingInventoryRepository(InMemoryInventoryRepository):
    """Pauses every update of ``blocked_product`` until ``proceed`` is set."""

    def __init__(
        self,
        records: list[InventoryRecord] | None = None,
        blocked_product: str | None = None,
    ) -> None:
        super().__init__(records)
        self.blocked_product = blocked_product
        self.entered = threading.Event()
        self.proceed = threading.Event()

    def apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord | None:
        if product_id == self.blocked_product:
            self.entered.set()
            self.proceed.wait(timeout=5)
        return super().apply(product_id, mutate)


class CountingInventoryRepository(InMemoryInventoryRepository):
    """Counts writes so tests can assert that failures write nothing."""

    def __init__(self, records: list[InventoryRecord] | None = None) -> None:
        super().__init__(records)
        self.saves = 0

    def save(self, record: InventoryRecord) -> None:
        self.saves += 1
        super().save(record)

    def apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord | None:
        def counted(record: InventoryRecord) -> None:
            mutate(record)
            self.saves += 1

        return super().apply(product_id, counted)
