"""Abstract repository for InventoryRecord aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (in-memory, JSON, SQL)
live in the infrastructure layer.

Implementations must return detached records: mutating a returned
record has no effect on the store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from stockledger.domain.model.inventory import InventoryRecord


class InventoryRepository(ABC):

    @abstractmethod
    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        """Return the inventory record for a product, or None."""

    @abstractmethod
    def list_all(self) -> list[InventoryRecord]:
        """Return every inventory record."""

    @abstractmethod
    def save(self, record: InventoryRecord) -> None:
        """Persist a new or updated inventory record unconditionally."""

    @abstractmethod
    def add(self, record: InventoryRecord) -> bool:
        """Store a new record. Return False if the product already has one."""

    @abstractmethod
    def apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord | None:
        """Load, mutate and store a record as one indivisible step.

        No other writer, in this process or another, can change the
        record between the load and the store.  If ``mutate`` raises,
        nothing is written and the error propagates.  Returns the stored
        record, or None if the product has no record.  Raises
        StoreContention when the store detects a conflicting writer.
        """

    @abstractmethod
    def delete(self, product_id: str) -> InventoryRecord | None:
        """Remove a product's record and return it, or None if there was none."""
