"""Integration tests for the CreateOrder use case.

Uses in-memory fakes, no file I/O.
"""

import pytest

from orderflow.application.create_order import CreateOrderHandler
from orderflow.application.dto import OrderItemSpec
from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.product_sku import ProductSku
from orderflow.domain.model.status import PaymentStatus
from orderflow.domain.model.value_objects import Money
from tests.fakes import FakeOrderRepository, FakeProductRepository, FixedClock, RecordingEmitter


def _setup(skus: list[ProductSku] | None = None):
    """Build handler with fakes, optionally pre-loaded with SKUs."""
    if skus is None:
        skus = [
            ProductSku(id="1", product_name="Rice", sku_name="5 kg bag", price=Money(4500)),
            ProductSku(id="2", product_name="Milk", sku_name="1 L", price=Money(900)),
            ProductSku(
                id="3", product_name="Beef", sku_name="Fillet",
                price=Money(2000), is_variable_weight=True,
            ),
            ProductSku(
                id="4", product_name="Bissap", sku_name="Bottle",
                price=Money(600), is_active=False,
            ),
        ]
    order_repo = FakeOrderRepository()
    product_repo = FakeProductRepository(skus)
    emitter = RecordingEmitter()
    handler = CreateOrderHandler(order_repo, product_repo, emitter, FixedClock())
    return handler, order_repo, product_repo, emitter


def _create(handler, specs, **kwargs):
    return handler.handle(
        customer_name="Awa Diop",
        customer_phone="+221 77 000 00 00",
        item_specs=specs,
        **kwargs,
    )


class TestCreateOrderHappyPath:

    def test_creates_pending_order(self):
        handler, order_repo, _, emitter = _setup()
        dto = _create(handler, [OrderItemSpec("1", quantity=2), OrderItemSpec("2", quantity=1)])

        assert dto.status == "pending"
        assert dto.payment_status == "pending"
        assert dto.total_minor_units == 2 * 4500 + 900
        assert dto.order_number.startswith("CMD-20250726-0001-")
        assert order_repo.load(dto.id).total_amount == Money(9900)
        assert emitter.names == ["OrderCreated"]

    def test_variable_weight_item_uses_estimate(self):
        handler, order_repo, _, emitter = _setup()
        dto = _create(handler, [OrderItemSpec("3", estimated_weight=750)])

        assert dto.total_minor_units == 1500
        assert dto.requires_weight_confirmation is True
        assert dto.items[0].quantity_or_weight == "750 g"
        assert dto.can_update_weights is True
        assert emitter.events[0][1]["requires_weight_confirmation"] is True

    def test_variable_weight_default_estimate(self):
        handler, _, _, _ = _setup()
        dto = _create(handler, [OrderItemSpec("3")])
        assert dto.items[0].estimated_weight == 1000
        assert dto.total_minor_units == 2000

    def test_price_is_snapshot(self):
        handler, order_repo, product_repo, _ = _setup()
        dto = _create(handler, [OrderItemSpec("1", quantity=1)])
        product_repo.get_by_id("1").update_price(Money(9999))
        assert order_repo.load(dto.id).items[0].unit_price == Money(4500)

    def test_card_authorization_at_checkout(self):
        handler, _, _, _ = _setup()
        dto = _create(
            handler,
            [OrderItemSpec("1", quantity=1)],
            payment_method="card",
            authorization_reference="AUTH-42",
        )
        assert dto.payment_status == PaymentStatus.AUTHORIZED.value
        assert dto.can_capture_payment is True

    def test_delivery_order(self):
        handler, _, _, _ = _setup()
        dto = _create(
            handler,
            [OrderItemSpec("1", quantity=1)],
            delivery_method="delivery",
            delivery_address="Rue 10, Dakar",
        )
        assert dto.delivery_method == "delivery"
        assert dto.delivery_address == "Rue 10, Dakar"


class TestCreateOrderFailures:

    def test_unknown_sku(self):
        handler, order_repo, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="SKU not found"):
            _create(handler, [OrderItemSpec("99", quantity=1)])
        assert order_repo.list_all() == []

    def test_inactive_sku(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="no longer available"):
            _create(handler, [OrderItemSpec("4", quantity=1)])

    def test_quantity_required_for_fixed_sku(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="quantity is required"):
            _create(handler, [OrderItemSpec("1")])

    def test_weight_not_allowed_for_fixed_sku(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="not sold by weight"):
            _create(handler, [OrderItemSpec("1", estimated_weight=500)])

    def test_estimate_outside_bounds(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="outside 100-50000g"):
            _create(handler, [OrderItemSpec("3", estimated_weight=50)])

    def test_zero_quantity(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            _create(handler, [OrderItemSpec("1", quantity=0)])

    def test_delivery_below_minimum(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="Minimum amount for delivery"):
            _create(
                handler,
                [OrderItemSpec("2", quantity=1)],
                delivery_method="delivery",
                delivery_address="Rue 10, Dakar",
            )

    def test_unknown_payment_method(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="Unknown payment method"):
            _create(handler, [OrderItemSpec("1", quantity=1)], payment_method="cheque")

    def test_authorization_only_for_card(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="pre-authorization"):
            _create(
                handler,
                [OrderItemSpec("1", quantity=1)],
                payment_method="mobile_money",
                authorization_reference="AUTH-1",
            )

    def test_empty_cart(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="at least one item"):
            _create(handler, [])
