"""Application service: List Orders use case (query).

The same filters drive the on-screen listing and the CSV export.
"""

from __future__ import annotations

import csv
from datetime import date
from typing import TextIO

from orderflow.application.dto import OrderSummaryDTO, to_summary_dto
from orderflow.application.update_status import parse_order_status
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.order import Order
from orderflow.domain.model.status import DeliveryMethod, PaymentStatus
from orderflow.domain.repository.order_repository import OrderRepository

EXPORT_COLUMNS = (
    "order_number",
    "date",
    "time",
    "customer",
    "phone",
    "email",
    "items",
    "total",
    "currency",
    "delivery_method",
    "delivery_address",
    "status",
    "payment_status",
    "payment_method",
    "payment_reference",
    "variable_weight",
    "weight_confirmed",
    "notes",
)


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        status: str | None = None,
        payment_status: str | None = None,
        awaiting_weights: bool = False,
        delivery_method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> list[OrderSummaryDTO]:
        """Newest orders first, optionally filtered."""
        orders = self._select(
            status, payment_status, awaiting_weights, delivery_method, date_from, date_to, search
        )
        return [to_summary_dto(o) for o in orders]

    def export_csv(
        self,
        out: TextIO,
        status: str | None = None,
        payment_status: str | None = None,
        awaiting_weights: bool = False,
        delivery_method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> int:
        """Write the filtered orders to *out* as CSV; returns the row count."""
        orders = self._select(
            status, payment_status, awaiting_weights, delivery_method, date_from, date_to, search
        )
        writer = csv.writer(out)
        writer.writerow(EXPORT_COLUMNS)
        for order in orders:
            writer.writerow(_export_row(order))
        return len(orders)

    def _select(
        self,
        status: str | None,
        payment_status: str | None,
        awaiting_weights: bool,
        delivery_method: str | None,
        date_from: date | None,
        date_to: date | None,
        search: str | None,
    ) -> list[Order]:
        wanted_status = parse_order_status(status) if status else None
        wanted_payment = None
        if payment_status:
            try:
                wanted_payment = PaymentStatus(payment_status.strip().lower())
            except ValueError:
                raise ValidationError(f"Unknown payment status '{payment_status}'")
        wanted_delivery = None
        if delivery_method:
            try:
                wanted_delivery = DeliveryMethod(delivery_method.strip().lower())
            except ValueError:
                raise ValidationError(f"Unknown delivery method '{delivery_method}'")
        if date_from and date_to and date_from > date_to:
            raise ValidationError(f"Date range is empty: {date_from} is after {date_to}")
        needle = search.strip().lower() if search else ""

        orders = self._order_repo.list_all()
        if wanted_status is not None:
            orders = [o for o in orders if o.status is wanted_status]
        if wanted_payment is not None:
            orders = [o for o in orders if o.payment_status is wanted_payment]
        if wanted_delivery is not None:
            orders = [o for o in orders if o.delivery_method is wanted_delivery]
        if awaiting_weights:
            orders = [o for o in orders if o.needs_weight_confirmation]
        if date_from is not None:
            orders = [o for o in orders if o.created_at.date() >= date_from]
        if date_to is not None:
            orders = [o for o in orders if o.created_at.date() <= date_to]
        if needle:
            orders = [o for o in orders if _matches(o, needle)]

        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders


def _matches(order: Order, needle: str) -> bool:
    """Case-insensitive substring match on number, name, phone or email."""
    fields = (
        order.order_number,
        order.customer.name,
        order.customer.phone,
        order.customer.email or "",
    )
    return any(needle in value.lower() for value in fields)


def _export_row(order: Order) -> list:
    return [
        order.order_number,
        order.created_at.strftime("%Y-%m-%d"),
        order.created_at.strftime("%H:%M"),
        order.customer.name,
        order.customer.phone,
        order.customer.email or "",
        len(order.items),
        order.total_amount.minor_units,
        order.currency,
        order.delivery_method.value,
        order.delivery_address or "",
        order.status.value,
        order.payment_status.value,
        order.payment_method.value,
        order.payment_reference or "",
        "yes" if order.requires_weight_confirmation else "no",
        "yes" if order.weight_confirmed_at is not None else "no",
        " | ".join(note.text for note in order.notes),
    ]
