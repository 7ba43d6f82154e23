"""Integration tests for the per-product inventory use cases."""

from datetime import datetime, timezone

import pytest
import structlog
from structlog.testing import LogCapture

from stockledger.application.add_inventory import AddInventoryHandler
from stockledger.application.commit_stock import CommitStockHandler
from stockledger.application.release_stock import ReleaseStockHandler
from stockledger.application.remove_inventory import RemoveInventoryHandler
from stockledger.application.reserve_stock import ReserveStockHandler
from stockledger.application.restock import RestockHandler
from stockledger.application.retry import NO_RETRY, RetryPolicy
from stockledger.application.show_inventory import ShowInventoryHandler
from stockledger.domain.exceptions import (
    Busy,
    DuplicateProduct,
    InsufficientStock,
    ProductNotFound,
    ReservationUnderflow,
)
from stockledger.domain.model.inventory import InventoryRecord
from stockledger.domain.service.inventory_ledger import InventoryLedger
from stockledger.infrastructure.persistence.memory_inventory_repository import (
    InMemoryInventoryRepository,
)

FIXED_NOW = datetime(2025, 9, 30, 9, 30, tzinfo=timezone.utc)


def _setup() -> InventoryLedger:
    records = [
        InventoryRecord(product_id="widget", stock_qty=100),
        InventoryRecord(product_id="gadget", stock_qty=50, reserved_qty=5),
    ]
    return InventoryLedger(InMemoryInventoryRepository(records))


class _BusyOnce:
    """Ledger wrapper whose first reserve hits lock contention."""

    def __init__(self, ledger):
        self._ledger = ledger
        self.attempts = 0

    def reserve(self, product_id, quantity):
        self.attempts += 1
        if self.attempts == 1:
            raise Busy(product_id, 0.1)
        return self._ledger.reserve(product_id, quantity)


class TestAddAndRemove:

    def test_add_creates_empty_record(self):
        ledger = _setup()
        dto = AddInventoryHandler(ledger).handle("gizmo")
        assert (dto.product_id, dto.stock, dto.reserved) == ("gizmo", 0, 0)
        assert dto.last_restocked is None

    def test_add_existing_rejected(self):
        with pytest.raises(DuplicateProduct):
            AddInventoryHandler(_setup()).handle("widget")

    def test_remove(self):
        ledger = _setup()
        RemoveInventoryHandler(ledger).handle("widget")
        assert [d.product_id for d in ShowInventoryHandler(ledger).handle()] == ["gadget"]


class TestShowInventory:

    def test_lists_sorted_by_product(self):
        lines = ShowInventoryHandler(_setup()).handle()
        assert [(l.product_id, l.stock, l.reserved, l.on_hand) for l in lines] == [
            ("gadget", 50, 5, 55),
            ("widget", 100, 0, 100),
        ]

    def test_single_product(self):
        [line] = ShowInventoryHandler(_setup()).handle("gadget")
        assert line.reserved == 5

    def test_single_unknown_product(self):
        with pytest.raises(ProductNotFound):
            ShowInventoryHandler(_setup()).handle("ghost")


class TestReserveStock:

    def test_reserve(self):
        dto = ReserveStockHandler(_setup(), NO_RETRY).handle("widget", 30, order_id="o1")
        assert (dto.stock, dto.reserved) == (70, 30)

    def test_shortage_reported(self):
        with pytest.raises(InsufficientStock):
            ReserveStockHandler(_setup(), NO_RETRY).handle("gadget", 51)

    def test_busy_is_retried(self):
        ledger = _BusyOnce(_setup())
        handler = ReserveStockHandler(ledger, RetryPolicy(attempts=3, sleep=lambda _: None))

        dto = handler.handle("widget", 10)

        assert ledger.attempts == 2
        assert dto.reserved == 10

    def test_order_id_is_bound_to_ledger_events(self):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])

        ReserveStockHandler(_setup(), NO_RETRY).handle("widget", 3, order_id="o1")
        ReserveStockHandler(_setup(), NO_RETRY).handle("widget", 4)

        reserved = [e for e in capture.entries if e["event"] == "Stock reserved"]
        assert [(e["quantity"], e.get("order_id")) for e in reserved] == [(3, "o1"), (4, None)]
        assert structlog.contextvars.get_contextvars() == {}


class TestCommitAndReleaseStock:

    def test_commit(self):
        dto = CommitStockHandler(_setup(), NO_RETRY).handle("gadget", 5)
        assert (dto.stock, dto.reserved) == (50, 0)

    def test_release(self):
        dto = ReleaseStockHandler(_setup(), NO_RETRY).handle("gadget", 5)
        assert (dto.stock, dto.reserved) == (55, 0)

    def test_release_underflow(self):
        with pytest.raises(ReservationUnderflow):
            ReleaseStockHandler(_setup(), NO_RETRY).handle("gadget", 6)


class TestRestock:

    def test_uses_clock_when_no_timestamp(self):
        handler = RestockHandler(_setup(), NO_RETRY, clock=lambda: FIXED_NOW)
        dto = handler.handle("widget", 20)
        assert dto.stock == 120
        assert dto.last_restocked == FIXED_NOW.isoformat()

    def test_explicit_timestamp_wins(self):
        explicit = datetime(2024, 1, 1, tzinfo=timezone.utc)
        handler = RestockHandler(_setup(), NO_RETRY, clock=lambda: FIXED_NOW)
        dto = handler.handle("widget", 20, timestamp=explicit)
        assert dto.last_restocked == explicit.isoformat()
