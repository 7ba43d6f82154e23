"""Application service: Reserve Order use case.

Orchestrates the order reservation domain service at checkout.  The
whole order is held or nothing is; a ``Busy`` failure rolls back the
attempt and the entire order is retried under the policy.
"""

from __future__ import annotations

from stockledger.application.dto import OrderLineSpec, OrderReservationDTO
from stockledger.application.retry import RetryPolicy
from stockledger.domain.model.value_objects import ReservationRequest
from stockledger.domain.service.inventory_ledger import InventoryLedger
from stockledger.domain.service.order_reservation_service import (
    OrderReservationService,
)


def to_requests(order_id: str, lines: list[OrderLineSpec]) -> list[ReservationRequest]:
    """Validate raw order lines into domain reservation requests."""
    return [
        ReservationRequest.of(line.product_id, line.quantity, order_id)
        for line in lines
    ]


def to_dto(order_id: str, requests: list[ReservationRequest]) -> OrderReservationDTO:
    return OrderReservationDTO(
        order_id=order_id,
        lines=[OrderLineSpec(r.product_id, r.quantity.value) for r in requests],
    )


class ReserveOrderHandler:

    def __init__(self, ledger: InventoryLedger, retry: RetryPolicy) -> None:
        self._service = OrderReservationService(ledger)
        self._retry = retry

    def handle(self, order_id: str, lines: list[OrderLineSpec]) -> OrderReservationDTO:
        requests = to_requests(order_id, lines)
        reserved = self._retry.call(
            lambda: self._service.reserve_order(order_id, requests)
        )
        return to_dto(order_id, reserved)
