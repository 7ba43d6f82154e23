"""Application service: Release Order use case.

Returns every line of a cancelled or expired order to available stock.
"""

from __future__ import annotations

from stockledger.application.dto import OrderLineSpec
from stockledger.application.reserve_order import to_requests
from stockledger.domain.service.inventory_ledger import InventoryLedger
from stockledger.domain.service.order_reservation_service import (
    OrderReservationService,
)


class ReleaseOrderHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._service = OrderReservationService(ledger)

    def handle(self, order_id: str, lines: list[OrderLineSpec]) -> None:
        self._service.release_order(order_id, to_requests(order_id, lines))
