"""Application service: Create Order use case (checkout).

Orchestrates the flow between the SKU catalog and the Order aggregate.
This is the only place that coordinates multiple aggregates (SKU lookup
+ Order creation).
"""

from __future__ import annotations

import logging

from orderflow.application.dto import OrderDTO, OrderItemSpec, to_order_dto
from orderflow.domain.events import OrderCreated
from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.order import (
    CustomerSnapshot,
    Order,
    OrderItem,
    generate_order_number,
)
from orderflow.domain.model.policies import CheckoutPolicy, WeightPolicy
from orderflow.domain.model.product_sku import ProductSku
from orderflow.domain.model.status import DeliveryMethod, PaymentMethod
from orderflow.domain.model.value_objects import Quantity
from orderflow.domain.ports.clock import Clock
from orderflow.domain.ports.event_emitter import EventEmitter
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.repository.product_repository import ProductRepository
from orderflow.domain.service.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        emitter: EventEmitter,
        clock: Clock,
        checkout_policy: CheckoutPolicy | None = None,
        weight_policy: WeightPolicy | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._publisher = EventPublisher(emitter)
        self._clock = clock
        self._checkout_policy = checkout_policy or CheckoutPolicy()
        self._weight_policy = weight_policy or WeightPolicy()

    def handle(
        self,
        customer_name: str,
        customer_phone: str,
        item_specs: list[OrderItemSpec],
        delivery_method: str = "pickup",
        payment_method: str = "cash",
        customer_email: str | None = None,
        delivery_address: str | None = None,
        authorization_reference: str | None = None,
    ) -> OrderDTO:
        """Create a new order.

        Steps:
        1. Resolve each SKU (fail if unknown or withdrawn from sale).
        2. Build OrderItems with *current* prices (snapshot) and estimated
           weights for variable-weight SKUs.
        3. Let the Order aggregate validate all checkout rules.
        4. Persist, announce and return a DTO.
        """
        delivery = _parse_enum(DeliveryMethod, delivery_method, "delivery method")
        payment = _parse_enum(PaymentMethod, payment_method, "payment method")

        items = [
            self._build_item(index, spec)
            for index, spec in enumerate(item_specs, start=1)
        ]

        now = self._clock.now()
        order = Order.create(
            order_number=generate_order_number(self._order_repo.next_id(), now.date()),
            customer=CustomerSnapshot(
                name=customer_name or "",
                phone=customer_phone or "",
                email=customer_email or None,
            ),
            delivery_method=delivery,
            payment_method=payment,
            items=items,
            created_at=now,
            policy=self._checkout_policy,
            delivery_address=delivery_address,
            authorization_reference=authorization_reference,
        )
        self._order_repo.save(order)

        logger.info(
            "Order %s created for %s, total %s",
            order.order_number, order.customer.name, order.total_amount,
        )
        self._publisher.publish(
            OrderCreated(
                order_id=order.id,  # type: ignore[arg-type]
                order_number=order.order_number,
                total=order.total_amount.minor_units,
                requires_weight_confirmation=order.requires_weight_confirmation,
            )
        )
        return to_order_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _build_item(self, item_id: int, spec: OrderItemSpec) -> OrderItem:
        sku = self._product_repo.get_by_id(spec.sku_id)
        if sku is None:
            raise EntityNotFoundError(f"SKU not found: '{spec.sku_id}'")
        if not sku.is_active:
            raise ValidationError(f"'{sku.product_name}' is no longer available")

        if sku.is_variable_weight:
            amount = self._estimated_grams(sku, spec)
            line_total = sku.price.multiply_by_ratio(
                amount, self._weight_policy.reference_unit_grams
            )
        else:
            if spec.estimated_weight is not None:
                raise ValidationError(f"'{sku.product_name}' is not sold by weight")
            if spec.quantity is None:
                raise ValidationError(f"A quantity is required for '{sku.product_name}'")
            amount = Quantity(spec.quantity).value
            line_total = sku.price * amount

        return OrderItem(
            id=item_id,
            product_sku_id=sku.id,
            product_name=sku.product_name,
            sku_name=sku.sku_name,
            unit_price=sku.price,  # <-- price snapshot
            ordered_quantity_or_weight=amount,
            line_total=line_total,
            is_variable_weight=sku.is_variable_weight,
        )

    def _estimated_grams(self, sku: ProductSku, spec: OrderItemSpec) -> int:
        if spec.quantity is not None:
            raise ValidationError(
                f"'{sku.product_name}' is sold by weight; give an estimated weight "
                f"in grams instead of a quantity"
            )
        grams = spec.estimated_weight
        if grams is None:
            grams = self._weight_policy.default_estimate_grams
        if isinstance(grams, bool) or not isinstance(grams, int):
            raise ValidationError(f"Estimated weight for '{sku.product_name}' must be in grams")
        if not self._weight_policy.accepts(grams):
            raise ValidationError(
                f"Estimated weight {grams}g for '{sku.product_name}' is outside "
                f"{self._weight_policy.min_grams}-{self._weight_policy.max_grams}g"
            )
        return grams


def _parse_enum(enum_cls, raw: str, what: str):
    try:
        return enum_cls(raw.strip().lower())
    except (ValueError, AttributeError):
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Unknown {what} '{raw}' (expected one of: {allowed})")
