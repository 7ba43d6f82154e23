"""CLI commands for per-product inventory operations."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from stockledger.application.add_inventory import AddInventoryHandler
from stockledger.application.commit_stock import CommitStockHandler
from stockledger.application.dto import InventoryRecordDTO
from stockledger.application.release_stock import ReleaseStockHandler
from stockledger.application.remove_inventory import RemoveInventoryHandler
from stockledger.application.reserve_stock import ReserveStockHandler
from stockledger.application.restock import RestockHandler
from stockledger.application.show_inventory import ShowInventoryHandler
from stockledger.config import Settings
from stockledger.domain.exceptions import DomainException
from stockledger.infrastructure.bootstrap import inventory_ledger, retry_policy


def _echo_levels(dto: InventoryRecordDTO) -> None:
    click.echo(f"  stock={dto.stock}  reserved={dto.reserved}  on_hand={dto.on_hand}")


@click.command("add")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.pass_obj
def inventory_add(settings: Settings, product_id: str) -> None:
    """Create an empty inventory record for a new product."""
    handler = AddInventoryHandler(inventory_ledger(settings))

    try:
        handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory record for '{product_id}' created (stock=0)")


@click.command("remove")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.pass_obj
def inventory_remove(settings: Settings, product_id: str) -> None:
    """Delete a product's inventory record."""
    handler = RemoveInventoryHandler(inventory_ledger(settings))

    try:
        handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory record for '{product_id}' removed")


@click.command("show")
@click.option("--product", "product_id", default=None, help="Show a single product.")
@click.pass_obj
def inventory_show(settings: Settings, product_id: str | None) -> None:
    """Show current inventory levels."""
    handler = ShowInventoryHandler(inventory_ledger(settings))

    try:
        lines = handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(
        f"{'Product':<20} {'Stock':>8} {'Reserved':>10} {'On hand':>10}  Last restocked"
    )
    click.echo("-" * 76)
    for line in lines:
        click.echo(
            f"{line.product_id:<20} {line.stock:>8} {line.reserved:>10} "
            f"{line.on_hand:>10}  {line.last_restocked or '-'}"
        )


@click.command("reserve")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units to hold.")
@click.option("--order", "order_id", default=None, help="Order the units are held for.")
@click.pass_obj
def inventory_reserve(
    settings: Settings, product_id: str, quantity: int, order_id: str | None
) -> None:
    """Hold stock for an order."""
    handler = ReserveStockHandler(inventory_ledger(settings), retry_policy(settings))

    try:
        dto = handler.handle(product_id, quantity, order_id=order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reserved {quantity} of '{product_id}'")
    _echo_levels(dto)


@click.command("commit")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Reserved units shipped.")
@click.pass_obj
def inventory_commit(settings: Settings, product_id: str, quantity: int) -> None:
    """Permanently consume reserved stock (shipment)."""
    handler = CommitStockHandler(inventory_ledger(settings), retry_policy(settings))

    try:
        dto = handler.handle(product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Committed {quantity} of '{product_id}'")
    _echo_levels(dto)


@click.command("release")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Reserved units to return.")
@click.pass_obj
def inventory_release(settings: Settings, product_id: str, quantity: int) -> None:
    """Return reserved stock to availability (cancellation)."""
    handler = ReleaseStockHandler(inventory_ledger(settings), retry_policy(settings))

    try:
        dto = handler.handle(product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Released {quantity} of '{product_id}'")
    _echo_levels(dto)


@click.command("restock")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units received.")
@click.option(
    "--at",
    "timestamp",
    default=None,
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"]),
    help="Replenishment time in UTC (default: now).",
)
@click.pass_obj
def inventory_restock(
    settings: Settings, product_id: str, quantity: int, timestamp: datetime | None
) -> None:
    """Add replenished stock."""
    handler = RestockHandler(inventory_ledger(settings), retry_policy(settings))
    if timestamp is not None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    try:
        dto = handler.handle(product_id, quantity, timestamp=timestamp)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Restocked {quantity} of '{product_id}' at {dto.last_restocked}")
    _echo_levels(dto)
