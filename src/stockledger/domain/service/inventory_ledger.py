"""Domain service: Inventory Ledger.

The ledger is the only writer of a product's stock and reservation
counters.  Every operation runs check → mutate while holding that
product's lock, and the repository applies the load/check/store as
one indivisible step, so concurrent reservations can never jointly
overdraw stock that each of them saw as available, whether they come
from this ledger or from another process sharing the store.

Locks are per product: operations on different products never wait
on each other.  Lock acquisition is bounded by the ledger's lock
timeout; when the bound is exceeded the operation fails with ``Busy``
and nothing changes.  A product's lock exists only while some caller
holds or waits for it.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from stockledger.domain.exceptions import (
    Busy,
    DuplicateProduct,
    InsufficientStock,
    ProductNotFound,
    ReservationUnderflow,
)
from stockledger.domain.model.inventory import InventoryRecord
from stockledger.domain.model.value_objects import Quantity
from stockledger.domain.repository.inventory_repository import InventoryRepository

logger = structlog.get_logger(__name__)

DEFAULT_LOCK_TIMEOUT = 2.0


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class InventoryLedger:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        if lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive, got {lock_timeout}")
        self._inventory_repo = inventory_repo
        self._lock_timeout = lock_timeout
        self._locks: dict[str, _LockEntry] = {}
        self._registry_lock = threading.Lock()

    # --- Catalog lifecycle ----------------------------------------------------

    def introduce(self, product_id: str) -> InventoryRecord:
        """Create an empty record for a product new to the catalog."""
        record = InventoryRecord(product_id=product_id)
        with self._locked(product_id):
            if not self._inventory_repo.add(record):
                raise DuplicateProduct(product_id)
        logger.info("Inventory record created", product_id=product_id)
        return record.snapshot()

    def discontinue(self, product_id: str) -> None:
        """Destroy a product's record along with any outstanding counters."""
        with self._locked(product_id):
            removed = self._inventory_repo.delete(product_id)
        if removed is None:
            logger.warning("Discontinue for unknown product", product_id=product_id)
            raise ProductNotFound(product_id)
        logger.info(
            "Inventory record removed",
            product_id=product_id,
            stock_qty=removed.stock_qty,
            reserved_qty=removed.reserved_qty,
        )

    # --- Queries --------------------------------------------------------------

    def get(self, product_id: str) -> InventoryRecord:
        record = self._inventory_repo.get_by_product_id(product_id)
        if record is None:
            raise ProductNotFound(product_id)
        return record.snapshot()

    def list_all(self) -> list[InventoryRecord]:
        return [r.snapshot() for r in self._inventory_repo.list_all()]

    # --- Stock movements ------------------------------------------------------

    def reserve(self, product_id: str, quantity: int) -> InventoryRecord:
        """Move ``quantity`` units from available stock to reserved.

        Raises InsufficientStock (no change) when not enough stock is
        available.
        """
        qty = Quantity(quantity)
        try:
            record = self._apply(product_id, lambda r: r.reserve(qty))
        except InsufficientStock as exc:
            logger.info(
                "Reservation rejected",
                product_id=product_id,
                requested=exc.requested,
                available=exc.available,
            )
            raise
        logger.info(
            "Stock reserved",
            product_id=product_id,
            quantity=qty.value,
            stock_qty=record.stock_qty,
            reserved_qty=record.reserved_qty,
        )
        return record

    def commit(self, product_id: str, quantity: int) -> InventoryRecord:
        """Permanently consume reserved units (order shipped)."""
        qty = Quantity(quantity)
        record = self._apply_reserved(product_id, "commit", lambda r: r.commit(qty))
        logger.info(
            "Reservation committed",
            product_id=product_id,
            quantity=qty.value,
            reserved_qty=record.reserved_qty,
        )
        return record

    def release(self, product_id: str, quantity: int) -> InventoryRecord:
        """Return reserved units to available stock (order cancelled)."""
        qty = Quantity(quantity)
        record = self._apply_reserved(product_id, "release", lambda r: r.release(qty))
        logger.info(
            "Reservation released",
            product_id=product_id,
            quantity=qty.value,
            stock_qty=record.stock_qty,
            reserved_qty=record.reserved_qty,
        )
        return record

    def restock(
        self, product_id: str, quantity: int, timestamp: datetime
    ) -> InventoryRecord:
        """Add replenished units and stamp ``last_restocked``."""
        qty = Quantity(quantity)
        record = self._apply(product_id, lambda r: r.restock(qty, timestamp))
        logger.info(
            "Stock replenished",
            product_id=product_id,
            quantity=qty.value,
            stock_qty=record.stock_qty,
            restocked_at=timestamp.isoformat(),
        )
        return record

    # --- Internal helpers -----------------------------------------------------

    def _apply_reserved(
        self,
        product_id: str,
        operation: str,
        mutate: Callable[[InventoryRecord], None],
    ) -> InventoryRecord:
        try:
            return self._apply(product_id, mutate)
        except ReservationUnderflow as exc:
            logger.error(
                "Reservation underflow",
                operation=operation,
                product_id=product_id,
                requested=exc.requested,
                reserved=exc.reserved,
            )
            raise

    def _apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord:
        """Mutate a record under its product lock as one repository step."""
        with self._locked(product_id):
            record = self._inventory_repo.apply(product_id, mutate)
        if record is None:
            logger.warning("No inventory record", product_id=product_id)
            raise ProductNotFound(product_id)
        return record.snapshot()

    @contextmanager
    def _locked(self, product_id: str) -> Iterator[None]:
        entry = self._checkout(product_id)
        try:
            if not entry.lock.acquire(timeout=self._lock_timeout):
                logger.warning(
                    "Inventory lock timed out",
                    product_id=product_id,
                    timeout=self._lock_timeout,
                )
                raise Busy(product_id, self._lock_timeout)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(product_id, entry)

    def _checkout(self, product_id: str) -> _LockEntry:
        with self._registry_lock:
            entry = self._locks.get(product_id)
            if entry is None:
                entry = self._locks[product_id] = _LockEntry()
            entry.users += 1
            return entry

    def _checkin(self, product_id: str, entry: _LockEntry) -> None:
        # The entry goes once nobody holds or waits on it, so a later
        # caller always gets the same lock as any current waiter.
        with self._registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[product_id]
