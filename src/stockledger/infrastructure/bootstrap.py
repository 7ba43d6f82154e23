"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from stockledger.application.retry import RetryPolicy
from stockledger.config import Settings
from stockledger.domain.repository.inventory_repository import InventoryRepository
from stockledger.domain.service.inventory_ledger import InventoryLedger
from stockledger.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from stockledger.infrastructure.persistence.memory_inventory_repository import (
    InMemoryInventoryRepository,
)
from stockledger.infrastructure.persistence.sql_inventory_repository import (
    SqlInventoryRepository,
    create_inventory_engine,
)


def inventory_repository(settings: Settings) -> InventoryRepository:
    if settings.backend == "sql":
        if settings.database_url is None:
            settings.data_dir.mkdir(parents=True, exist_ok=True)
        engine = create_inventory_engine(settings.resolved_database_url)
        return SqlInventoryRepository(engine)
    if settings.backend == "memory":
        return InMemoryInventoryRepository()
    return JsonInventoryRepository(settings.inventory_file)


def inventory_ledger(settings: Settings) -> InventoryLedger:
    return InventoryLedger(
        inventory_repository(settings), lock_timeout=settings.lock_timeout
    )


def retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(attempts=settings.retry_attempts)
