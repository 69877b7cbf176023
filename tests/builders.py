"""Helpers to build valid orders for tests."""

from __future__ import annotations

from datetime import datetime, timezone

from orderflow.domain.model.order import CustomerSnapshot, Order, OrderItem
from orderflow.domain.model.policies import CheckoutPolicy
from orderflow.domain.model.status import DeliveryMethod, PaymentMethod
from orderflow.domain.model.value_objects import Money

CREATED_AT = datetime(2025, 7, 26, 9, 0, tzinfo=timezone.utc)


def fixed_item(item_id: int = 1, qty: int = 2, price: int = 500, name: str = "Rice") -> OrderItem:
    return OrderItem(
        id=item_id,
        product_sku_id=f"sku-{item_id}",
        product_name=name,
        sku_name="1 kg bag",
        unit_price=Money(price),
        ordered_quantity_or_weight=qty,
        line_total=Money(price) * qty,
    )


def variable_item(
    item_id: int = 1,
    estimated_grams: int = 500,
    price_per_kg: int = 2000,
    name: str = "Beef",
) -> OrderItem:
    return OrderItem(
        id=item_id,
        product_sku_id=f"sku-{item_id}",
        product_name=name,
        sku_name="Fillet",
        unit_price=Money(price_per_kg),
        ordered_quantity_or_weight=estimated_grams,
        line_total=Money(price_per_kg).multiply_by_ratio(estimated_grams, 1000),
        is_variable_weight=True,
    )


def make_order(
    items: list[OrderItem] | None = None,
    payment_method: PaymentMethod = PaymentMethod.CARD,
    authorization_reference: str | None = "AUTH-1",
    delivery_method: DeliveryMethod = DeliveryMethod.PICKUP,
    delivery_address: str | None = None,
) -> Order:
    """A new, unsaved order; card-authorized by default."""
    if payment_method is not PaymentMethod.CARD:
        authorization_reference = None
    return Order.create(
        order_number="CMD-20250726-0001-TEST",
        customer=CustomerSnapshot(name="Awa Diop", phone="+221 77 000 00 00"),
        delivery_method=delivery_method,
        payment_method=payment_method,
        items=items if items is not None else [variable_item()],
        created_at=CREATED_AT,
        policy=CheckoutPolicy(),
        delivery_address=delivery_address,
        authorization_reference=authorization_reference,
    )
