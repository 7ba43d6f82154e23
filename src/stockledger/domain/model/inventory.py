"""InventoryRecord aggregate — tracks stock and reservations per product.

Each product has one InventoryRecord holding the units still available
for sale (``stock_qty``) and the units held against open orders
(``reserved_qty``).  Reserving moves units from the first counter to the
second; committing removes them from the ledger; releasing moves them back.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from stockledger.domain.exceptions import (
    InsufficientStock,
    ReservationUnderflow,
    ValidationError,
)
from stockledger.domain.model.value_objects import Quantity


@dataclass
class InventoryRecord:
    """Aggregate root for inventory tracking.

    Invariants:
    - ``stock_qty`` is always >= 0
    - ``reserved_qty`` is always >= 0

    Every mutator checks before it writes, so a raised error leaves the
    record exactly as it was.
    """

    product_id: str
    stock_qty: int = 0
    reserved_qty: int = 0
    last_restocked: datetime | None = None

    def __post_init__(self) -> None:
        if self.stock_qty < 0 or self.reserved_qty < 0:
            raise ValidationError(
                f"Inventory for product '{self.product_id}' cannot be negative "
                f"(stock={self.stock_qty}, reserved={self.reserved_qty})"
            )

    @property
    def on_hand_qty(self) -> int:
        """Units physically present: available plus reserved."""
        return self.stock_qty + self.reserved_qty

    def reserve(self, quantity: Quantity) -> None:
        """Hold stock for an order.

        Raises InsufficientStock if fewer than ``quantity`` units are available.
        """
        qty = quantity.value
        if qty > self.stock_qty:
            raise InsufficientStock(self.product_id, qty, self.stock_qty)
        self.stock_qty -= qty
        self.reserved_qty += qty

    def commit(self, quantity: Quantity) -> None:
        """Permanently consume reserved stock (order shipped)."""
        qty = quantity.value
        if qty > self.reserved_qty:
            raise ReservationUnderflow(self.product_id, qty, self.reserved_qty)
        self.reserved_qty -= qty

    def release(self, quantity: Quantity) -> None:
        """Return reserved stock to the available pool (order cancelled)."""
        qty = quantity.value
        if qty > self.reserved_qty:
            raise ReservationUnderflow(self.product_id, qty, self.reserved_qty)
        self.reserved_qty -= qty
        self.stock_qty += qty

    def restock(self, quantity: Quantity, timestamp: datetime) -> None:
        """Add replenished units and record when they arrived."""
        self.stock_qty += quantity.value
        self.last_restocked = timestamp

    def snapshot(self) -> InventoryRecord:
        """Return a detached copy safe to hand to other callers."""
        return replace(self)
