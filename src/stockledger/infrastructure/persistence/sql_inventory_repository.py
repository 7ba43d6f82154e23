"""Relational implementation of InventoryRepository (SQLAlchemy).

The ``inventory`` table carries the same non-negativity CHECK
constraints as the ledger's invariants, so a row can never be stored
with negative counters even by a writer that bypasses the domain.
Timestamps are stored in UTC; naive values read back from backends
without timezone support (SQLite) are treated as UTC.

Updates lock the row with SELECT ... FOR UPDATE and are also guarded by
a version counter, so two ledgers in different processes sharing one
database can never both apply a change computed from the same row.
Backends that ignore FOR UPDATE (SQLite) fall back on the version
check: the losing writer gets StoreContention and may retry.  Lock
conflicts the database reports itself (SQLite's "database is locked",
PostgreSQL deadlocks) are reported the same way.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Integer, String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from stockledger.domain.exceptions import StoreContention
from stockledger.domain.model.inventory import InventoryRecord
from stockledger.domain.repository.inventory_repository import InventoryRepository

_LOCK_CONFLICT_MARKERS = ("database is locked", "deadlock", "could not obtain lock")


class Base(DeclarativeBase):
    pass


class InventoryRow(Base):
    __tablename__ = "inventory"

    __table_args__ = (
        CheckConstraint("stock_qty >= 0", name="ck_inventory_stock_non_negative"),
        CheckConstraint("reserved_qty >= 0", name="ck_inventory_reserved_non_negative"),
    )

    product_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    reserved_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_restocked: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


def create_inventory_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine and make sure the inventory table exists."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return engine


class SqlInventoryRepository(InventoryRepository):

    def __init__(self, engine: Engine) -> None:
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )

    # --- InventoryRepository interface ----------------------------------------

    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        with self._session_factory() as session:
            row = session.get(InventoryRow, product_id)
            return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[InventoryRecord]:
        with self._session_factory() as session:
            rows = session.scalars(select(InventoryRow).order_by(InventoryRow.product_id))
            return [self._to_domain(row) for row in rows]

    def save(self, record: InventoryRecord) -> None:
        with self._conflicts_as_contention(record.product_id):
            try:
                with self._session_factory.begin() as session:
                    row = self._locked_row(session, record.product_id)
                    if row is None:
                        session.add(self._to_row(record))
                    else:
                        self._copy_into(row, record)
            except IntegrityError as exc:
                raise StoreContention(record.product_id) from exc

    def add(self, record: InventoryRecord) -> bool:
        with self._conflicts_as_contention(record.product_id):
            try:
                with self._session_factory.begin() as session:
                    session.add(self._to_row(record))
            except IntegrityError:
                return False
        return True

    def apply(
        self, product_id: str, mutate: Callable[[InventoryRecord], None]
    ) -> InventoryRecord | None:
        with self._conflicts_as_contention(product_id):
            with self._session_factory.begin() as session:
                row = self._locked_row(session, product_id)
                if row is None:
                    return None
                record = self._to_domain(row)
                mutate(record)
                self._copy_into(row, record)
        return record

    def delete(self, product_id: str) -> InventoryRecord | None:
        with self._conflicts_as_contention(product_id):
            with self._session_factory.begin() as session:
                row = self._locked_row(session, product_id)
                if row is None:
                    return None
                removed = self._to_domain(row)
                session.delete(row)
        return removed

    # --- Transactions ---------------------------------------------------------

    @staticmethod
    @contextmanager
    def _conflicts_as_contention(product_id: str) -> Iterator[None]:
        try:
            yield
        except StaleDataError as exc:
            raise StoreContention(product_id) from exc
        except OperationalError as exc:
            message = str(exc.orig).lower()
            if not any(marker in message for marker in _LOCK_CONFLICT_MARKERS):
                raise
            raise StoreContention(product_id) from exc

    @staticmethod
    def _locked_row(session: Session, product_id: str) -> InventoryRow | None:
        return session.execute(
            select(InventoryRow)
            .where(InventoryRow.product_id == product_id)
            .with_for_update()
        ).scalar_one_or_none()

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _utc(value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value

    @classmethod
    def _to_row(cls, record: InventoryRecord) -> InventoryRow:
        return InventoryRow(
            product_id=record.product_id,
            stock_qty=record.stock_qty,
            reserved_qty=record.reserved_qty,
            last_restocked=cls._utc(record.last_restocked),
        )

    @classmethod
    def _copy_into(cls, row: InventoryRow, record: InventoryRecord) -> None:
        row.stock_qty = record.stock_qty
        row.reserved_qty = record.reserved_qty
        row.last_restocked = cls._utc(record.last_restocked)

    @staticmethod
    def _to_domain(row: InventoryRow) -> InventoryRecord:
        restocked = row.last_restocked
        if restocked is not None and restocked.tzinfo is None:
            restocked = restocked.replace(tzinfo=timezone.utc)
        return InventoryRecord(
            product_id=row.product_id,
            stock_qty=row.stock_qty,
            reserved_qty=row.reserved_qty,
            last_restocked=restocked,
        )
