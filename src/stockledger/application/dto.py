"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.model.inventory import InventoryRecord


@dataclass(frozen=True)
class OrderLineSpec:
    """Input: one order line (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class InventoryRecordDTO:
    """Output: a product's stock levels as displayed to the user."""

    product_id: str
    stock: int
    reserved: int
    on_hand: int
    last_restocked: str | None  # ISO-8601, or None if never restocked

    @staticmethod
    def from_record(record: InventoryRecord) -> InventoryRecordDTO:
        return InventoryRecordDTO(
            product_id=record.product_id,
            stock=record.stock_qty,
            reserved=record.reserved_qty,
            on_hand=record.on_hand_qty,
            last_restocked=(
                record.last_restocked.isoformat() if record.last_restocked else None
            ),
        )


@dataclass(frozen=True)
class OrderReservationDTO:
    """Output: the merged lines held, committed or released for an order."""

    order_id: str
    lines: list[OrderLineSpec]
