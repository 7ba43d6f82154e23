"""In-process implementation of InventoryRepository.

Records live in a dict keyed by product id.  Copies go in and out so
callers never share a live record with the store.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from stockledger.domain.model.inventory import InventoryRecord
from stockledger.domain.repository.inventory_repository import InventoryRepository


class InMemoryInventoryRepository(InventoryRepository):

    def __init__(self, records: list[InventoryRecord] | None = None) -> None:
        self._store: dict[str, InventoryRecord] = {}
        self._guard = threading.Lock()
        for record in records or []:
            self._store[record.product_id] = record.snapshot()

    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        with self._guard:
            record = self._store.get(product_id)
            return record.snapshot() if record is not None else None

    def list_all(self) -> list[InventoryRecord]:
        with self._guard:
            return [r.snapshot() for r in self._store.values()]

    def save(self, record: InventoryRecord) -> None:
        with self._guard:
            self._store[record.product_id] = record.snapshot()

    def add(self, record: InventoryRecord) -> bool:
        with self._guard:
            if record.product_id in self._store:
                return False
            self._store[record.product_id] = record.snapshot()
            return True

    def apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord | None:
        with self._guard:
            stored = self._store.get(product_id)
            if stored is None:
                return None
            record = stored.snapshot()
            mutate(record)
            self._store[product_id] = record.snapshot()
            return record

    def delete(self, product_id: str) -> InventoryRecord | None:
        with self._guard:
            return self._store.pop(product_id, None)
