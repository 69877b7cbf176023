"""CLI commands for the SKU catalog."""

from __future__ import annotations

import click

from orderflow.application.add_sku import AddSkuHandler
from orderflow.application.update_sku import UpdateSkuHandler
from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import product_repository
from orderflow.infrastructure.config import Settings


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--sku", "sku_name", required=True, help="SKU name (e.g. '500 g tray').")
@click.option("--price", required=True, help="Price, or price per kg for variable-weight SKUs.")
@click.option("--variable-weight", is_flag=True, default=False, help="Sold by weight.")
@click.pass_obj
def product_add(
    settings: Settings, name: str, sku_name: str, price: str, variable_weight: bool
) -> None:
    """Add a new SKU to the catalog."""
    handler = AddSkuHandler(product_repo=product_repository(settings), currency=settings.currency)

    try:
        sku = handler.handle(
            product_name=name, sku_name=sku_name, price=price, is_variable_weight=variable_weight
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    per = " per kg" if sku.is_variable_weight else ""
    click.echo(f"SKU #{sku.id} '{sku.product_name} ({sku.sku_name})' added at {sku.price}{per}")


@click.command("list")
@click.pass_obj
def product_list(settings: Settings) -> None:
    """List all SKUs in the catalog."""
    repo = product_repository(settings)
    skus = repo.list_all()

    if not skus:
        click.echo("No SKUs found.")
        return

    click.echo(f"{'ID':<6} {'Product':<20} {'SKU':<16} {'Price':>14} {'Sold by':<8} {'Active':<6}")
    click.echo("-" * 75)
    for s in skus:
        sold_by = "kg" if s.is_variable_weight else "unit"
        active = "yes" if s.is_active else "no"
        click.echo(
            f"{s.id:<6} {s.product_name:<20} {s.sku_name:<16} {str(s.price):>14} "
            f"{sold_by:<8} {active:<6}"
        )


@click.command("update")
@click.option("--id", "sku_id", required=True, help="SKU ID.")
@click.option("--price", default=None, help="New price.")
@click.option("--deactivate", is_flag=True, default=False, help="Withdraw the SKU from sale.")
@click.pass_obj
def product_update(
    settings: Settings, sku_id: str, price: str | None, deactivate: bool
) -> None:
    """Update a SKU's price or withdraw it from sale."""
    handler = UpdateSkuHandler(product_repo=product_repository(settings))

    try:
        sku = handler.handle(sku_id=sku_id, new_price=price, deactivate=deactivate)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    state = "" if sku.is_active else " (withdrawn from sale)"
    click.echo(f"SKU #{sku.id} now at {sku.price}{state}")
