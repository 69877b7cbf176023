"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI (or an API layer) and the application
layer without exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.model.order import Order
from orderflow.domain.model.status import OrderStatus, PaymentStatus
from orderflow.domain.model.value_objects import Weight

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: one cart line.

    Fixed-price SKUs take a ``quantity``; variable-weight SKUs take an
    ``estimated_weight`` in grams (a default estimate is used when omitted).
    """

    sku_id: str
    quantity: int | None = None
    estimated_weight: int | None = None


@dataclass(frozen=True)
class OrderItemDTO:
    """Output: a single line item as displayed to the user."""

    id: int
    product_name: str
    sku_name: str
    quantity_or_weight: str  # "3", or the billed weight: "750 g", "1.005 kg"
    unit_price: str
    line_total: str
    is_variable_weight: bool
    estimated_weight: int | None
    actual_weight: int | None
    weight_difference: int


@dataclass(frozen=True)
class NoteDTO:
    at: str
    author: str
    text: str


@dataclass(frozen=True)
class StatusOptionDTO:
    status: str
    label: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order snapshot as displayed to the user."""

    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    customer_email: str | None
    status: str
    status_label: str
    payment_status: str
    payment_status_label: str
    payment_method: str
    delivery_method: str
    delivery_address: str | None
    items: list[OrderItemDTO]
    total: str
    total_minor_units: int
    requires_weight_confirmation: bool
    weight_confirmed_at: str | None
    payment_reference: str | None
    notes: list[NoteDTO]
    created_at: str
    available_statuses: list[StatusOptionDTO]
    can_update_weights: bool
    can_capture_payment: bool


@dataclass(frozen=True)
class OrderSummaryDTO:
    id: int
    order_number: str
    customer_name: str
    status: str
    payment_status: str
    total: str
    awaiting_weights: bool
    created_at: str


@dataclass(frozen=True)
class CaptureReceiptDTO:
    order_id: int
    order_number: str
    transaction_id: str
    amount: str
    captured_at: str


@dataclass(frozen=True)
class OrderStatisticsDTO:
    period: str
    total_orders: int
    pending_orders: int
    completed_orders: int
    total_revenue: str
    average_order_value: str
    needing_action: int = 0


# --- Mapping -----------------------------------------------------------------


def to_order_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        customer_name=order.customer.name,
        customer_phone=order.customer.phone,
        customer_email=order.customer.email,
        status=order.status.value,
        status_label=order.status.label,
        payment_status=order.payment_status.value,
        payment_status_label=order.payment_status.label,
        payment_method=order.payment_method.value,
        delivery_method=order.delivery_method.value,
        delivery_address=order.delivery_address,
        items=[
            OrderItemDTO(
                id=item.id,
                product_name=item.product_name,
                sku_name=item.sku_name,
                quantity_or_weight=(
                    str(Weight(item.billed_grams))
                    if item.is_variable_weight
                    else str(item.ordered_quantity_or_weight)
                ),
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                is_variable_weight=item.is_variable_weight,
                estimated_weight=(
                    item.ordered_quantity_or_weight if item.is_variable_weight else None
                ),
                actual_weight=item.actual_weight.grams if item.actual_weight else None,
                weight_difference=item.weight_difference,
            )
            for item in order.items
        ],
        total=str(order.total_amount),
        total_minor_units=order.total_amount.minor_units,
        requires_weight_confirmation=order.requires_weight_confirmation,
        weight_confirmed_at=(
            order.weight_confirmed_at.strftime(_TIMESTAMP_FORMAT)
            if order.weight_confirmed_at
            else None
        ),
        payment_reference=order.payment_reference,
        notes=[
            NoteDTO(at=n.at.strftime(_TIMESTAMP_FORMAT), author=n.author, text=n.text)
            for n in order.notes
        ],
        created_at=order.created_at.strftime(_TIMESTAMP_FORMAT),
        available_statuses=[
            StatusOptionDTO(status=s.value, label=s.label)
            for s in OrderStatus
            if order.can_transition_to(s)
        ],
        can_update_weights=order.needs_weight_confirmation and not order.status.is_terminal,
        can_capture_payment=(
            order.payment_status is PaymentStatus.AUTHORIZED
            and order.status is not OrderStatus.CANCELLED
            and not order.needs_weight_confirmation
        ),
    )


def to_summary_dto(order: Order) -> OrderSummaryDTO:
    return OrderSummaryDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        customer_name=order.customer.name,
        status=order.status.value,
        payment_status=order.payment_status.value,
        total=str(order.total_amount),
        awaiting_weights=order.needs_weight_confirmation,
        created_at=order.created_at.strftime(_TIMESTAMP_FORMAT),
    )
