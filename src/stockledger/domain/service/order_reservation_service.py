"""Domain service: Order Reservation.

This service coordinates reserving, committing or releasing inventory
for every line of an order.  It is the explicit replacement for a
database trigger that moved stock on each order-line insert: the caller
learns synchronously whether the whole order could be held.

Reservation is all-or-nothing per order.  Lines are reserved one by one
through the ledger; if any line fails, the lines already reserved are
released again before the original error propagates.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from stockledger.domain.exceptions import (
    DomainException,
    ReservationUnderflow,
    ValidationError,
)
from stockledger.domain.model.value_objects import Quantity, ReservationRequest
from stockledger.domain.service.inventory_ledger import InventoryLedger

logger = structlog.get_logger(__name__)


class OrderReservationService:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def reserve_order(
        self, order_id: str, lines: Iterable[ReservationRequest]
    ) -> list[ReservationRequest]:
        """Reserve stock for every line of the order.

        Returns the merged lines that were reserved.  On failure nothing
        stays reserved for this order and the first error is re-raised.
        """
        merged = self._merge(order_id, lines)
        reserved: list[ReservationRequest] = []

        for line in merged:
            try:
                self._ledger.reserve(line.product_id, line.quantity.value)
            except DomainException as exc:
                logger.info(
                    "Order reservation failed, rolling back",
                    order_id=order_id,
                    product_id=line.product_id,
                    reason=type(exc).__name__,
                    rolled_back=len(reserved),
                )
                self._compensate(order_id, reserved)
                raise
            reserved.append(line)

        logger.info("Order reserved", order_id=order_id, lines=len(reserved))
        return reserved

    def commit_order(
        self, order_id: str, lines: Iterable[ReservationRequest]
    ) -> None:
        """Permanently consume the order's reservations (shipment).

        Every line is checked against its reserved count before any line
        is committed, so an unknown product or an over-commit fails with
        nothing changed.  The check and the commits are separate ledger
        calls: a concurrent commit or release of the same products in
        between can still leave the order partly committed.
        """
        merged = self._merge(order_id, lines)
        self._check_reserved(order_id, merged)
        for line in merged:
            self._ledger.commit(line.product_id, line.quantity.value)
        logger.info("Order committed", order_id=order_id)

    def release_order(
        self, order_id: str, lines: Iterable[ReservationRequest]
    ) -> None:
        """Return the order's reservations to stock (cancellation/expiry).

        Checked up front like ``commit_order``, with the same caveat.
        """
        merged = self._merge(order_id, lines)
        self._check_reserved(order_id, merged)
        for line in merged:
            self._ledger.release(line.product_id, line.quantity.value)
        logger.info("Order released", order_id=order_id)

    # --- Internal helpers -----------------------------------------------------

    def _check_reserved(
        self, order_id: str, lines: list[ReservationRequest]
    ) -> None:
        for line in lines:
            record = self._ledger.get(line.product_id)
            if record.reserved_qty < line.quantity.value:
                logger.error(
                    "Order exceeds reservation",
                    order_id=order_id,
                    product_id=line.product_id,
                    requested=line.quantity.value,
                    reserved=record.reserved_qty,
                )
                raise ReservationUnderflow(
                    line.product_id, line.quantity.value, record.reserved_qty
                )

    def _compensate(
        self, order_id: str, reserved: list[ReservationRequest]
    ) -> None:
        for line in reversed(reserved):
            try:
                self._ledger.release(line.product_id, line.quantity.value)
            except DomainException:
                # Stock stays held; an operator has to reconcile it.
                logger.exception(
                    "Could not roll back reservation",
                    order_id=order_id,
                    product_id=line.product_id,
                    quantity=line.quantity.value,
                )

    @staticmethod
    def _merge(
        order_id: str, lines: Iterable[ReservationRequest]
    ) -> list[ReservationRequest]:
        """Combine lines for the same product, keeping first-seen order."""
        totals: dict[str, int] = {}
        for line in lines:
            if line.order_id != order_id:
                raise ValidationError(
                    f"Line for product '{line.product_id}' belongs to order "
                    f"'{line.order_id}', not '{order_id}'"
                )
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity.value
        if not totals:
            raise ValidationError(f"Order '{order_id}' has no lines")
        return [
            ReservationRequest(product_id, Quantity(qty), order_id)
            for product_id, qty in totals.items()
        ]
