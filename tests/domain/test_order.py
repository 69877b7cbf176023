"""Unit tests for the Order aggregate and its business rules."""

import pytest

from orderflow.domain.exceptions import (
    IllegalPaymentTransitionError,
    IllegalTransitionError,
    ValidationError,
)
from orderflow.domain.model.order import CustomerSnapshot, Order, generate_order_number
from orderflow.domain.model.policies import CheckoutPolicy
from orderflow.domain.model.status import (
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from orderflow.domain.model.value_objects import Money, Weight
from tests.builders import CREATED_AT, fixed_item, make_order, variable_item


def _create(items, **overrides):
    kwargs = dict(
        order_number="CMD-20250726-0001-TEST",
        customer=CustomerSnapshot(name="Awa", phone="770000000"),
        delivery_method=DeliveryMethod.PICKUP,
        payment_method=PaymentMethod.CASH,
        items=items,
        created_at=CREATED_AT,
        policy=CheckoutPolicy(),
    )
    kwargs.update(overrides)
    return Order.create(**kwargs)


class TestOrderCreation:

    def test_happy_path(self):
        order = _create([fixed_item(qty=2, price=500)])
        assert order.status is OrderStatus.PENDING
        assert order.payment_status is PaymentStatus.PENDING
        assert order.total_amount == Money(1000)
        assert order.requires_weight_confirmation is False

    def test_id_is_none_for_new_orders(self):
        order = _create([fixed_item()])
        assert order.id is None  # assigned by repository

    def test_total_is_sum_of_line_items(self):
        order = _create([fixed_item(1, qty=3, price=500), variable_item(2, estimated_grams=750)])
        assert order.total_amount == Money(1500 + 1500)

    def test_variable_weight_item_requires_confirmation(self):
        order = _create([fixed_item(1), variable_item(2)])
        assert order.requires_weight_confirmation is True
        assert order.needs_weight_confirmation is True

    def test_card_authorization_starts_authorized(self):
        order = make_order(authorization_reference="AUTH-9")
        assert order.payment_status is PaymentStatus.AUTHORIZED
        assert order.payment_reference == "AUTH-9"

    def test_authorization_rejected_for_cash(self):
        with pytest.raises(ValidationError, match="pre-authorization"):
            _create([fixed_item()], authorization_reference="AUTH-1")


class TestOrderValidation:

    def test_empty_customer_name_rejected(self):
        with pytest.raises(ValidationError, match="Customer name"):
            _create([fixed_item()], customer=CustomerSnapshot(name="  ", phone="770000000"))

    def test_missing_phone_rejected(self):
        with pytest.raises(ValidationError, match="phone"):
            _create([fixed_item()], customer=CustomerSnapshot(name="Awa", phone=""))

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _create([])

    def test_51_items_rejected(self):
        items = [fixed_item(i, qty=1) for i in range(1, 52)]
        with pytest.raises(ValidationError, match="Maximum 50 items"):
            _create(items)

    def test_50_items_accepted(self):
        items = [fixed_item(i, qty=1) for i in range(1, 51)]
        assert len(_create(items).items) == 50

    def test_duplicate_item_ids_rejected(self):
        with pytest.raises(ValidationError, match="unique"):
            _create([fixed_item(1), fixed_item(1)])

    def test_delivery_requires_address(self):
        with pytest.raises(ValidationError, match="delivery address"):
            _create([fixed_item(qty=10)], delivery_method=DeliveryMethod.DELIVERY)

    def test_delivery_below_minimum_rejected(self):
        with pytest.raises(ValidationError, match="Minimum amount for delivery"):
            _create(
                [fixed_item(qty=2, price=500)],
                delivery_method=DeliveryMethod.DELIVERY,
                delivery_address="Rue 10, Dakar",
            )

    def test_delivery_at_minimum_accepted(self):
        order = _create(
            [fixed_item(qty=6, price=500)],
            delivery_method=DeliveryMethod.DELIVERY,
            delivery_address="Rue 10, Dakar",
        )
        assert order.delivery_address == "Rue 10, Dakar"


class TestOrderItem:

    def test_fixed_line_total(self):
        assert fixed_item(qty=3, price=500).compute_line_total(1000) == Money(1500)

    def test_variable_line_total_uses_actual_weight(self):
        item = variable_item(estimated_grams=500, price_per_kg=2000)
        item.record_actual_weight(Weight(620), 1000)
        assert item.line_total == Money(1240)
        assert item.weight_difference == 120
        assert item.price_adjustment(1000) == 240

    def test_weight_difference_is_zero_until_weighed(self):
        assert variable_item().weight_difference == 0

    def test_cannot_weigh_fixed_item(self):
        with pytest.raises(ValidationError, match="fixed-price"):
            fixed_item().record_actual_weight(Weight(500), 1000)


class TestStatusAndPayment:

    def test_apply_status_records_history_and_note(self):
        order = make_order()
        order.apply_status(OrderStatus.CONFIRMED, actor_id="admin", at=CREATED_AT, note="ok")
        assert order.status is OrderStatus.CONFIRMED
        assert order.history[-1].from_status is OrderStatus.PENDING
        assert order.history[-1].actor_id == "admin"
        assert order.notes[-1].text == "ok"

    def test_apply_status_rejects_illegal_move(self):
        order = make_order()
        with pytest.raises(IllegalTransitionError, match="from pending to ready"):
            order.apply_status(OrderStatus.READY, actor_id="admin", at=CREATED_AT)

    def test_authorized_requires_card(self):
        order = _create([fixed_item()], payment_method=PaymentMethod.MOBILE_MONEY)
        with pytest.raises(ValidationError, match="pre-authorization"):
            order.apply_payment_status(PaymentStatus.AUTHORIZED, reference="X")

    def test_refunded_is_terminal(self):
        order = make_order()
        order.apply_payment_status(PaymentStatus.REFUNDED)
        with pytest.raises(IllegalPaymentTransitionError):
            order.apply_payment_status(PaymentStatus.PAID)

    def test_notes_are_appended(self):
        order = make_order()
        order.add_note("first", author="a", at=CREATED_AT)
        order.add_note("second", author="b", at=CREATED_AT)
        assert [n.text for n in order.notes] == ["first", "second"]


class TestConsistency:

    def test_assert_consistent_detects_total_mismatch(self):
        order = make_order()
        order.total_amount = Money(1)
        with pytest.raises(ValidationError, match="does not match"):
            order.assert_consistent()

    def test_assert_consistent_detects_weight_without_confirmation(self):
        order = make_order()
        order.items[0].record_actual_weight(Weight(500), 1000)
        with pytest.raises(ValidationError, match="inconsistent"):
            order.assert_consistent()


def test_order_number_format():
    number = generate_order_number(42, CREATED_AT.date())
    prefix, day, seq, suffix = number.split("-")
    assert (prefix, day, seq) == ("CMD", "20250726", "0042")
    assert len(suffix) == 4 and suffix.isalnum()
