"""JSON-file-backed implementation of InventoryRepository.

Every write is a whole-file read/modify/write done under an OS-level
lock on ``<file>.lock``, so ledgers in separate processes sharing the
file serialise their updates.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from filelock import FileLock, Timeout

from stockledger.domain.exceptions import StoreContention
from stockledger.domain.model.inventory import InventoryRecord
from stockledger.domain.repository.inventory_repository import InventoryRepository

DEFAULT_FILE_LOCK_TIMEOUT = 5.0


class JsonInventoryRepository(InventoryRepository):

    def __init__(
        self, file_path: Path, lock_timeout: float = DEFAULT_FILE_LOCK_TIMEOUT
    ) -> None:
        self._file_path = file_path
        self._thread_lock = threading.RLock()
        self._file_lock = FileLock(
            str(file_path.with_name(file_path.name + ".lock")), timeout=lock_timeout
        )
        self._ensure_file()

    # --- InventoryRepository interface ----------------------------------------

    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        for raw in self._load_raw():
            if raw["product_id"] == product_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[InventoryRecord]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, record: InventoryRecord) -> None:
        with self._exclusive(record.product_id):
            records = self._load_raw()
            index = self._index_of(records, record.product_id)
            if index is None:
                records.append(self._to_raw(record))
            else:
                records[index] = self._to_raw(record)
            self._persist_raw(records)

    def add(self, record: InventoryRecord) -> bool:
        with self._exclusive(record.product_id):
            records = self._load_raw()
            if self._index_of(records, record.product_id) is not None:
                return False
            records.append(self._to_raw(record))
            self._persist_raw(records)
            return True

    def apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord | None:
        with self._exclusive(product_id):
            records = self._load_raw()
            index = self._index_of(records, product_id)
            if index is None:
                return None
            record = self._to_domain(records[index])
            mutate(record)
            records[index] = self._to_raw(record)
            self._persist_raw(records)
            return record

    def delete(self, product_id: str) -> InventoryRecord | None:
        with self._exclusive(product_id):
            records = self._load_raw()
            index = self._index_of(records, product_id)
            if index is None:
                return None
            removed = records.pop(index)
            self._persist_raw(records)
            return self._to_domain(removed)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(record: InventoryRecord) -> dict:
        return {
            "product_id": record.product_id,
            "stock_qty": record.stock_qty,
            "reserved_qty": record.reserved_qty,
            "last_restocked": (
                record.last_restocked.isoformat() if record.last_restocked else None
            ),
        }

    @staticmethod
    def _to_domain(raw: dict) -> InventoryRecord:
        restocked = raw.get("last_restocked")
        return InventoryRecord(
            product_id=raw["product_id"],
            stock_qty=raw.get("stock_qty", 0),
            reserved_qty=raw.get("reserved_qty", 0),
            last_restocked=datetime.fromisoformat(restocked) if restocked else None,
        )

    @staticmethod
    def _index_of(records: list[dict], product_id: str) -> int | None:
        for i, raw in enumerate(records):
            if raw["product_id"] == product_id:
                return i
        return None

    # --- File helpers ---------------------------------------------------------

    @contextmanager
    def _exclusive(self, product_id: str) -> Iterator[None]:
        with self._thread_lock:
            try:
                self._file_lock.acquire()
            except Timeout as exc:
                raise StoreContention(product_id) from exc
            try:
                yield
            finally:
                self._file_lock.release()

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        # Each writer gets its own temp file; the rename is atomic, so
        # readers only ever see a complete file.
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=self._file_path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(records, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        with self._exclusive(""):
            if not self._file_path.exists():
                self._persist_raw([])
