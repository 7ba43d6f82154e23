"""Application service: Commit Order use case (order shipped)."""

from __future__ import annotations

from stockledger.application.dto import OrderLineSpec
from stockledger.application.reserve_order import to_requests
from stockledger.domain.service.inventory_ledger import InventoryLedger
from stockledger.domain.service.order_reservation_service import (
    OrderReservationService,
)


class CommitOrderHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._service = OrderReservationService(ledger)

    def handle(self, order_id: str, lines: list[OrderLineSpec]) -> None:
        self._service.commit_order(order_id, to_requests(order_id, lines))
