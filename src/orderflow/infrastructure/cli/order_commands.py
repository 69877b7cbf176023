"""CLI commands for the Order aggregate."""

from __future__ import annotations

import io

import click

from orderflow.application.cancel_order import CancelOrderHandler
from orderflow.application.capture_payment import CapturePaymentHandler
from orderflow.application.create_order import CreateOrderHandler
from orderflow.application.dto import OrderDTO, OrderItemSpec
from orderflow.application.list_orders import ListOrdersHandler
from orderflow.application.order_statistics import PERIODS, OrderStatisticsHandler
from orderflow.application.record_payment import OUTCOMES, RecordPaymentHandler
from orderflow.application.refund_payment import RefundPaymentHandler
from orderflow.application.show_order import ShowOrderHandler
from orderflow.application.update_status import UpdateStatusHandler
from orderflow.application.update_weights import UpdateWeightsHandler
from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import (
    clock,
    event_emitter,
    order_repository,
    payment_reconciler,
    product_repository,
    status_machine,
    weight_finalizer,
)
from orderflow.infrastructure.config import Settings

actor_option = click.option(
    "--actor", default="admin", show_default=True, help="Who performs the action."
)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'SKU:Qty' or 'SKU:750g' pairs, e.g. '1:3,4:750g'.

    A bare SKU id uses the default estimated weight of a variable-weight SKU.
    """
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if ":" not in pair:
            specs.append(OrderItemSpec(sku_id=pair))
            continue
        sku_id, amount = (part.strip() for part in pair.rsplit(":", 1))
        by_weight = amount.lower().endswith("g")
        digits = amount[:-1] if by_weight else amount
        try:
            value = int(digits)
        except ValueError:
            raise click.BadParameter(
                f"Invalid amount '{amount}' for SKU '{sku_id}'. "
                f"Expected a quantity (3) or grams (750g)."
            )
        if by_weight:
            specs.append(OrderItemSpec(sku_id=sku_id, estimated_weight=value))
        else:
            specs.append(OrderItemSpec(sku_id=sku_id, quantity=value))
    if not specs:
        raise click.BadParameter("At least one item is required.")
    return specs


def _parse_weights(raw: str) -> dict[int, int]:
    """Parse 'ItemId:Grams' pairs, e.g. '1:620,3:480'."""
    weights: dict[int, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid weight format '{pair}'. Expected 'ItemId:Grams'."
            )
        item_str, grams_str = pair.split(":", 1)
        grams_str = grams_str.strip().removesuffix("g")
        try:
            weights[int(item_str)] = int(grams_str)
        except ValueError:
            raise click.BadParameter(f"Invalid weight '{pair}'. Use whole grams.")
    return weights


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} (#{dto.id})")
    click.echo(f"Status:   {dto.status_label} [{dto.status}]")
    click.echo(f"Payment:  {dto.payment_status_label} [{dto.payment_method}]")
    click.echo(f"Customer: {dto.customer_name}  {dto.customer_phone}")
    if dto.delivery_address:
        click.echo(f"Delivery: {dto.delivery_address}")
    else:
        click.echo(f"Delivery: {dto.delivery_method}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()

    click.echo(f"  {'#':>3} {'Product':<24} {'Qty/Weight':>10} {'Est.':>8} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*74}")
    for item in dto.items:
        estimate = f"{item.estimated_weight} g" if item.actual_weight is not None else ""
        name = f"{item.product_name} ({item.sku_name})"
        click.echo(
            f"  {item.id:>3} {name:<24} {item.quantity_or_weight:>10} {estimate:>8} "
            f"{item.unit_price:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*74}")
    click.echo(f"  {'Order Total':<40} {dto.total:>34}")

    if dto.requires_weight_confirmation:
        click.echo()
        if dto.weight_confirmed_at:
            click.echo(f"Weights confirmed at {dto.weight_confirmed_at}")
        else:
            click.echo("Awaiting weight confirmation (total is an estimate)")

    if dto.available_statuses:
        options = ", ".join(f"{o.status} ({o.label})" for o in dto.available_statuses)
        click.echo(f"Next statuses: {options}")

    if dto.notes:
        click.echo()
        click.echo("Notes:")
        for note in dto.notes:
            click.echo(f"  [{note.at}] {note.author}: {note.text}")


@click.command("create")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--phone", required=True, help="Customer phone number.")
@click.option("--email", default=None, help="Customer email.")
@click.option("--items", required=True, help="Items as 'SKU:Qty' or 'SKU:750g', comma separated.")
@click.option(
    "--delivery",
    "delivery_method",
    type=click.Choice(["pickup", "delivery"]),
    default="pickup",
    show_default=True,
)
@click.option("--address", default=None, help="Delivery address (required for delivery).")
@click.option(
    "--payment",
    "payment_method",
    type=click.Choice(["cash", "card", "mobile_money"]),
    default="cash",
    show_default=True,
)
@click.option("--authorization", default=None, help="Card pre-authorization reference.")
@click.pass_obj
def order_create(
    settings: Settings,
    customer: str,
    phone: str,
    email: str | None,
    items: str,
    delivery_method: str,
    address: str | None,
    payment_method: str,
    authorization: str | None,
) -> None:
    """Create a new order from catalog SKUs."""
    specs = _parse_items(items)

    handler = CreateOrderHandler(
        order_repo=order_repository(settings),
        product_repo=product_repository(settings),
        emitter=event_emitter(settings),
        clock=clock(),
        checkout_policy=settings.checkout_policy(),
        weight_policy=settings.weight_policy(),
    )

    try:
        dto = handler.handle(
            customer_name=customer,
            customer_phone=phone,
            item_specs=specs,
            delivery_method=delivery_method,
            payment_method=payment_method,
            customer_email=email,
            delivery_address=address,
            authorization_reference=authorization,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} created  (status={dto.status})")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(settings: Settings, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository(settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


def filter_options(command):
    """Filters shared by ``order list`` and ``order export``."""
    options = [
        click.option("--status", default=None, help="Only orders in this status."),
        click.option("--payment-status", default=None, help="Only orders with this payment status."),
        click.option("--delivery", "delivery_method", default=None, help="Only pickup or delivery orders."),
        click.option("--awaiting-weights", is_flag=True, default=False, help="Only orders awaiting weighing."),
        click.option("--from", "date_from", type=click.DateTime(["%Y-%m-%d"]), default=None,
                     help="Created on or after this day (YYYY-MM-DD)."),
        click.option("--to", "date_to", type=click.DateTime(["%Y-%m-%d"]), default=None,
                     help="Created on or before this day (YYYY-MM-DD)."),
        click.option("--search", default=None, help="Match order number, customer name, phone or email."),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def _filters(**kwargs) -> dict:
    for key in ("date_from", "date_to"):
        if kwargs[key] is not None:
            kwargs[key] = kwargs[key].date()
    return kwargs


@click.command("list")
@filter_options
@click.pass_obj
def order_list(settings: Settings, **filters) -> None:
    """List orders, newest first."""
    handler = ListOrdersHandler(order_repo=order_repository(settings))

    try:
        orders = handler.handle(**_filters(**filters))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<5} {'Number':<24} {'Customer':<18} {'Status':<11} {'Payment':<11} {'Total':>12}")
    click.echo("-" * 84)
    for o in orders:
        marker = " *" if o.awaiting_weights else ""
        click.echo(
            f"{o.id:<5} {o.order_number:<24} {o.customer_name:<18} "
            f"{o.status:<11} {o.payment_status:<11} {o.total:>12}{marker}"
        )


@click.command("export")
@filter_options
@click.option("--output", type=click.Path(dir_okay=False, allow_dash=True), default="-",
              help="CSV file to write (default: standard output).")
@click.pass_obj
def order_export(settings: Settings, output: str, **filters) -> None:
    """Export the filtered orders as CSV."""
    handler = ListOrdersHandler(order_repo=order_repository(settings))

    try:
        if output == "-":
            buffer = io.StringIO()
            handler.export_csv(buffer, **_filters(**filters))
            click.echo(buffer.getvalue(), nl=False)
            return
        with open(output, "w", encoding="utf-8", newline="") as out:
            count = handler.export_csv(out, **_filters(**filters))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Exported {count} order(s) to {output}")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "target", required=True, help="Target status.")
@click.option("--note", default=None, help="Optional note kept with the order.")
@actor_option
@click.pass_obj
def order_status(
    settings: Settings, order_id: int, target: str, note: str | None, actor: str
) -> None:
    """Move an order to another status."""
    repo = order_repository(settings)
    handler = UpdateStatusHandler(order_repo=repo, status_machine=status_machine(settings, repo))

    try:
        dto = handler.handle(order_id, target, actor, note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is now {dto.status_label}.")


@click.command("weights")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--weights", "raw_weights", required=True, help="Weighed grams as 'ItemId:Grams,...'.")
@actor_option
@click.pass_obj
def order_weights(settings: Settings, order_id: int, raw_weights: str, actor: str) -> None:
    """Record actual weights and finalize the order total."""
    weights = _parse_weights(raw_weights)
    repo = order_repository(settings)
    handler = UpdateWeightsHandler(order_repo=repo, finalizer=weight_finalizer(settings, repo))

    try:
        dto = handler.handle(order_id, weights, actor)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Weights recorded for order #{order_id}; final total {dto.total}.")


@click.command("capture")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--timeout", type=float, default=None, help="Gateway timeout in seconds.")
@actor_option
@click.pass_obj
def order_capture(settings: Settings, order_id: int, timeout: float | None, actor: str) -> None:
    """Capture an authorized card payment for the final total."""
    repo = order_repository(settings)
    handler = CapturePaymentHandler(order_repo=repo, reconciler=payment_reconciler(settings, repo))

    try:
        receipt = handler.handle(order_id, actor, timeout=timeout)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Captured {receipt.amount} for order {receipt.order_number} "
        f"(transaction {receipt.transaction_id})."
    )


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--outcome", required=True, type=click.Choice(OUTCOMES), help="Payment notification.")
@click.option("--reference", default=None, help="Payment or authorization reference.")
@click.option("--reason", default=None, help="Failure reason.")
@actor_option
@click.pass_obj
def order_pay(
    settings: Settings,
    order_id: int,
    outcome: str,
    reference: str | None,
    reason: str | None,
    actor: str,
) -> None:
    """Record a payment notification (authorized, paid or failed)."""
    repo = order_repository(settings)
    handler = RecordPaymentHandler(order_repo=repo, reconciler=payment_reconciler(settings, repo))

    try:
        dto = handler.handle(order_id, outcome, actor, reference=reference, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} payment is now {dto.payment_status_label}.")


@click.command("refund")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--timeout", type=float, default=None, help="Gateway timeout in seconds.")
@actor_option
@click.pass_obj
def order_refund(settings: Settings, order_id: int, timeout: float | None, actor: str) -> None:
    """Refund a captured or authorized card payment."""
    repo = order_repository(settings)
    handler = RefundPaymentHandler(order_repo=repo, reconciler=payment_reconciler(settings, repo))

    try:
        handler.handle(order_id, actor, timeout=timeout)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} refunded.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--reason", required=True, help="Why the order is cancelled.")
@actor_option
@click.pass_obj
def order_cancel(settings: Settings, order_id: int, reason: str, actor: str) -> None:
    """Cancel an order."""
    repo = order_repository(settings)
    handler = CancelOrderHandler(order_repo=repo, status_machine=status_machine(settings, repo))

    try:
        handler.handle(order_id, actor, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} cancelled.")


@click.command("stats")
@click.option("--period", type=click.Choice(PERIODS), default="today", show_default=True)
@click.pass_obj
def order_stats(settings: Settings, period: str) -> None:
    """Show order counts and revenue for a period."""
    handler = OrderStatisticsHandler(
        order_repo=order_repository(settings), clock=clock(), currency=settings.currency
    )

    try:
        stats = handler.handle(period)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Period:          {stats.period}")
    click.echo(f"Orders:          {stats.total_orders}")
    click.echo(f"Pending:         {stats.pending_orders}")
    click.echo(f"Completed:       {stats.completed_orders}")
    click.echo(f"Revenue:         {stats.total_revenue}")
    click.echo(f"Average (paid):  {stats.average_order_value}")
    click.echo(f"Needing action:  {stats.needing_action}")
