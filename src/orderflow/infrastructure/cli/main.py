import click

from orderflow.infrastructure.cli.order_commands import (
    order_cancel,
    order_capture,
    order_create,
    order_export,
    order_list,
    order_pay,
    order_refund,
    order_show,
    order_stats,
    order_status,
    order_weights,
)
from orderflow.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_update,
)
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.logging_config import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """orderflow: grocery order lifecycle and payment reconciliation"""
    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    ctx.obj = settings


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Manage the SKU catalog."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_capture)
order.add_command(order_create)
order.add_command(order_export)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_refund)
order.add_command(order_show)
order.add_command(order_stats)
order.add_command(order_status)
order.add_command(order_weights)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
