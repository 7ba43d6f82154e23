"""Unit tests for the InventoryLedger domain service."""

import threading
from datetime import datetime, timezone

import pytest

from stockledger.domain.exceptions import (
    Busy,
    DuplicateProduct,
    InsufficientStock,
    InvalidQuantity,
    ProductNotFound,
    ReservationUnderflow,
    RetryableError,
)
from stockledger.domain.model.inventory import InventoryRecord
from stockledger.domain.service.inventory_ledger import InventoryLedger
from stockledger.infrastructure.persistence.memory_inventory_repository import (
    InMemoryInventoryRepository,
)
from tests.fakes import BlockingInventoryRepository, CountingInventoryRepository

T0 = datetime(2025, 9, 30, 8, 0, tzinfo=timezone.utc)


def _ledger(*specs: tuple[str, int, int], lock_timeout: float = 2.0) -> InventoryLedger:
    """Create a ledger over (product_id, stock, reserved) tuples."""
    records = [
        InventoryRecord(product_id=pid, stock_qty=stock, reserved_qty=reserved)
        for pid, stock, reserved in specs
    ]
    return InventoryLedger(InMemoryInventoryRepository(records), lock_timeout=lock_timeout)


def _levels(ledger: InventoryLedger, product_id: str) -> tuple[int, int]:
    rec = ledger.get(product_id)
    return rec.stock_qty, rec.reserved_qty


class TestScenarios:

    def test_scenario_a_reserve_then_shortage(self):
        ledger = _ledger(("p1", 10, 0))

        ledger.reserve("p1", 7)
        assert _levels(ledger, "p1") == (3, 7)

        with pytest.raises(InsufficientStock):
            ledger.reserve("p1", 5)
        assert _levels(ledger, "p1") == (3, 7)

    def test_scenario_b_reserve_rest_then_commit(self):
        ledger = _ledger(("p1", 3, 7))

        ledger.reserve("p1", 3)
        assert _levels(ledger, "p1") == (0, 10)

        ledger.commit("p1", 10)
        assert _levels(ledger, "p1") == (0, 0)

    def test_scenario_c_release_underflow(self):
        ledger = _ledger(("p1", 5, 2))

        with pytest.raises(ReservationUnderflow):
            ledger.release("p1", 3)
        assert _levels(ledger, "p1") == (5, 2)

    def test_scenario_d_restock(self):
        ledger = _ledger(("p1", 4, 1))

        ledger.restock("p1", 20, T0)

        rec = ledger.get("p1")
        assert rec.stock_qty == 24
        assert rec.reserved_qty == 1
        assert rec.last_restocked == T0


class TestReserve:

    def test_returns_snapshot_of_new_levels(self):
        ledger = _ledger(("p1", 10, 0))
        rec = ledger.reserve("p1", 4)
        assert (rec.stock_qty, rec.reserved_qty) == (6, 4)

    def test_returned_snapshot_is_detached(self):
        ledger = _ledger(("p1", 10, 0))
        rec = ledger.reserve("p1", 4)
        rec.stock_qty = 999
        assert _levels(ledger, "p1") == (6, 4)

    def test_unknown_product(self):
        ledger = _ledger()
        with pytest.raises(ProductNotFound, match="No inventory record for product 'ghost'"):
            ledger.reserve("ghost", 1)

    def test_does_not_create_missing_record(self):
        ledger = _ledger()
        with pytest.raises(ProductNotFound):
            ledger.reserve("ghost", 1)
        assert ledger.list_all() == []

    @pytest.mark.parametrize("qty", [0, -1])
    def test_invalid_quantity(self, qty):
        ledger = _ledger(("p1", 10, 0))
        with pytest.raises(InvalidQuantity):
            ledger.reserve("p1", qty)
        assert _levels(ledger, "p1") == (10, 0)

    def test_invalid_quantity_checked_before_existence(self):
        ledger = _ledger()
        with pytest.raises(InvalidQuantity):
            ledger.reserve("ghost", 0)

    def test_shortage_writes_nothing(self):
        repo = CountingInventoryRepository([InventoryRecord("p1", stock_qty=2)])
        ledger = InventoryLedger(repo)
        with pytest.raises(InsufficientStock):
            ledger.reserve("p1", 3)
        assert repo.saves == 0


class TestCommitAndRelease:

    def test_round_trip_restores_levels(self):
        ledger = _ledger(("p1", 10, 3))
        ledger.reserve("p1", 6)
        ledger.release("p1", 6)
        assert _levels(ledger, "p1") == (10, 3)

    def test_reserve_and_release_conserve_total(self):
        ledger = _ledger(("p1", 10, 3))
        ledger.reserve("p1", 5)
        assert sum(_levels(ledger, "p1")) == 13
        ledger.release("p1", 2)
        assert sum(_levels(ledger, "p1")) == 13

    def test_commit_removes_units_from_ledger(self):
        ledger = _ledger(("p1", 10, 0))
        ledger.reserve("p1", 4)
        ledger.commit("p1", 4)
        assert _levels(ledger, "p1") == (6, 0)

    def test_double_commit_underflows(self):
        ledger = _ledger(("p1", 10, 0))
        ledger.reserve("p1", 4)
        ledger.commit("p1", 4)
        with pytest.raises(ReservationUnderflow):
            ledger.commit("p1", 4)

    def test_commit_unknown_product(self):
        with pytest.raises(ProductNotFound):
            _ledger().commit("ghost", 1)

    def test_release_unknown_product(self):
        with pytest.raises(ProductNotFound):
            _ledger().release("ghost", 1)

    def test_commit_invalid_quantity(self):
        with pytest.raises(InvalidQuantity):
            _ledger(("p1", 0, 5)).commit("p1", 0)


class TestRestock:

    def test_unknown_product(self):
        with pytest.raises(ProductNotFound):
            _ledger().restock("ghost", 5, T0)

    def test_invalid_quantity(self):
        ledger = _ledger(("p1", 1, 0))
        with pytest.raises(InvalidQuantity):
            ledger.restock("p1", 0, T0)
        assert ledger.get("p1").last_restocked is None

    def test_latest_restock_wins(self):
        later = datetime(2025, 10, 1, tzinfo=timezone.utc)
        ledger = _ledger(("p1", 0, 0))
        ledger.restock("p1", 5, T0)
        ledger.restock("p1", 5, later)
        rec = ledger.get("p1")
        assert rec.stock_qty == 10
        assert rec.last_restocked == later


class TestCatalogLifecycle:

    def test_introduce_creates_empty_record(self):
        ledger = _ledger()
        rec = ledger.introduce("p9")
        assert (rec.stock_qty, rec.reserved_qty, rec.last_restocked) == (0, 0, None)
        assert _levels(ledger, "p9") == (0, 0)

    def test_introduce_twice_rejected(self):
        ledger = _ledger(("p1", 3, 0))
        with pytest.raises(DuplicateProduct):
            ledger.introduce("p1")
        assert _levels(ledger, "p1") == (3, 0)

    def test_discontinue_removes_record(self):
        ledger = _ledger(("p1", 3, 2))
        ledger.discontinue("p1")
        with pytest.raises(ProductNotFound):
            ledger.get("p1")

    def test_discontinue_unknown(self):
        with pytest.raises(ProductNotFound):
            _ledger().discontinue("ghost")

    def test_reintroduced_product_starts_empty(self):
        ledger = _ledger(("p1", 3, 2))
        ledger.discontinue("p1")
        ledger.introduce("p1")
        assert _levels(ledger, "p1") == (0, 0)


class TestLocking:

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            InventoryLedger(InMemoryInventoryRepository(), lock_timeout=0)

    def test_contended_product_reports_busy(self):
        repo = BlockingInventoryRepository(
            [InventoryRecord("p1", stock_qty=10)], blocked_product="p1"
        )
        ledger = InventoryLedger(repo, lock_timeout=0.05)
        holder = threading.Thread(target=ledger.reserve, args=("p1", 2))
        holder.start()
        try:
            assert repo.entered.wait(timeout=5)
            with pytest.raises(Busy) as exc_info:
                ledger.reserve("p1", 1)
            assert isinstance(exc_info.value, RetryableError)
            assert exc_info.value.product_id == "p1"
        finally:
            repo.proceed.set()
            holder.join(timeout=5)

        # Only the holder's reservation landed.
        assert _levels(ledger, "p1") == (8, 2)

    def test_other_products_are_not_blocked(self):
        repo = BlockingInventoryRepository(
            [InventoryRecord("p1", stock_qty=10), InventoryRecord("p2", stock_qty=10)],
            blocked_product="p1",
        )
        ledger = InventoryLedger(repo, lock_timeout=0.05)
        holder = threading.Thread(target=ledger.reserve, args=("p1", 2))
        holder.start()
        try:
            assert repo.entered.wait(timeout=5)
            rec = ledger.reserve("p2", 3)
            assert (rec.stock_qty, rec.reserved_qty) == (7, 3)
        finally:
            repo.proceed.set()
            holder.join(timeout=5)


class TestLockRegistry:

    def test_unknown_products_leave_no_locks(self):
        ledger = _ledger()
        for i in range(100):
            with pytest.raises(ProductNotFound):
                ledger.reserve(f"ghost-{i}", 1)
            with pytest.raises(ProductNotFound):
                ledger.discontinue(f"gone-{i}")
        assert ledger._locks == {}

    def test_completed_operations_leave_no_locks(self):
        ledger = _ledger(("p1", 5, 0))
        ledger.reserve("p1", 2)
        ledger.release("p1", 2)
        with pytest.raises(InsufficientStock):
            ledger.reserve("p1", 6)
        ledger.introduce("p2")
        ledger.discontinue("p2")
        assert ledger._locks == {}

    def test_busy_waiter_leaves_only_the_held_lock(self):
        repo = BlockingInventoryRepository(
            [InventoryRecord("p1", stock_qty=10)], blocked_product="p1"
        )
        ledger = InventoryLedger(repo, lock_timeout=0.05)
        holder = threading.Thread(target=ledger.reserve, args=("p1", 2))
        holder.start()
        try:
            assert repo.entered.wait(timeout=5)
            with pytest.raises(Busy):
                ledger.reserve("p1", 1)
            assert ledger._locks["p1"].users == 1
        finally:
            repo.proceed.set()
            holder.join(timeout=5)

        assert ledger._locks == {}
