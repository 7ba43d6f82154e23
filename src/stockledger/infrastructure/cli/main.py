import click

from stockledger.config import ConfigurationError, Settings
from stockledger.infrastructure.cli.inventory_commands import (
    inventory_add,
    inventory_commit,
    inventory_release,
    inventory_remove,
    inventory_reserve,
    inventory_restock,
    inventory_show,
)
from stockledger.infrastructure.cli.order_commands import (
    order_commit,
    order_release,
    order_reserve,
)
from stockledger.logging_config import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Override STOCKLEDGER_LOG_LEVEL.")
@click.option("--json-logs", is_flag=True, default=False, help="Emit logs as JSON lines.")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, json_logs: bool) -> None:
    """stockledger — Inventory reservation ledger"""
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))
    configure_logging(log_level or settings.log_level, json_logs=json_logs)
    ctx.obj = settings


@cli.group()
def inventory() -> None:
    """Manage per-product stock."""


@cli.group()
def order() -> None:
    """Reserve, commit or release stock for whole orders."""


# Register subcommands
inventory.add_command(inventory_add)
inventory.add_command(inventory_commit)
inventory.add_command(inventory_release)
inventory.add_command(inventory_remove)
inventory.add_command(inventory_reserve)
inventory.add_command(inventory_restock)
inventory.add_command(inventory_show)
order.add_command(order_commit)
order.add_command(order_release)
order.add_command(order_reserve)
