"""CLI commands for whole-order reservations."""

from __future__ import annotations

import click

from stockledger.application.commit_order import CommitOrderHandler
from stockledger.application.dto import OrderLineSpec
from stockledger.application.release_order import ReleaseOrderHandler
from stockledger.application.reserve_order import ReserveOrderHandler
from stockledger.config import Settings
from stockledger.domain.exceptions import DomainException
from stockledger.infrastructure.bootstrap import inventory_ledger, retry_policy
from stockledger.logging_config import bind_order


def _parse_items(raw: str) -> list[OrderLineSpec]:
    """Parse 'p1:3,p2:5' into OrderLineSpec list."""
    specs: list[OrderLineSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderLineSpec(product_id=product_id.strip(), quantity=qty))
    return specs


@click.command("reserve")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
@click.pass_obj
def order_reserve(settings: Settings, order_id: str, items: str) -> None:
    """Hold stock for every line of an order (all or nothing)."""
    lines = _parse_items(items)
    bind_order(order_id)
    handler = ReserveOrderHandler(inventory_ledger(settings), retry_policy(settings))

    try:
        dto = handler.handle(order_id, lines)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order '{dto.order_id}' reserved:")
    for line in dto.lines:
        click.echo(f"  {line.product_id:<20} {line.quantity:>5}")


@click.command("commit")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
@click.pass_obj
def order_commit(settings: Settings, order_id: str, items: str) -> None:
    """Consume an order's reservations (shipment)."""
    lines = _parse_items(items)
    bind_order(order_id)
    handler = CommitOrderHandler(inventory_ledger(settings))

    try:
        handler.handle(order_id, lines)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order '{order_id}' committed — reserved stock shipped.")


@click.command("release")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
@click.pass_obj
def order_release(settings: Settings, order_id: str, items: str) -> None:
    """Return an order's reservations to stock (cancellation)."""
    lines = _parse_items(items)
    bind_order(order_id)
    handler = ReleaseOrderHandler(inventory_ledger(settings))

    try:
        handler.handle(order_id, lines)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order '{order_id}' released — stock returned.")
