"""Closed enumerations for order and payment state, and their transition tables.

The tables are the single authority on which moves are legal.  Guards that
depend on other order data (weights, payment) live in the domain services.
"""

from __future__ import annotations

from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY = "ready"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return _ORDER_STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return not ORDER_TRANSITIONS[self]


class PaymentStatus(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

    @property
    def label(self) -> str:
        return _PAYMENT_STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return not PAYMENT_TRANSITIONS[self]


class DeliveryMethod(Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"

    @property
    def label(self) -> str:
        return "Store pickup" if self is DeliveryMethod.PICKUP else "Home delivery"


class PaymentMethod(Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"

    @property
    def supports_pre_authorization(self) -> bool:
        return self is PaymentMethod.CARD


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERING, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.AUTHORIZED, PaymentStatus.PAID, PaymentStatus.FAILED}
    ),
    PaymentStatus.AUTHORIZED: frozenset(
        {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}

# Statuses that mean production work has started; gated on weight finalization.
WEIGHT_GATED_STATUSES = frozenset(
    {
        OrderStatus.PROCESSING,
        OrderStatus.READY,
        OrderStatus.DELIVERING,
        OrderStatus.COMPLETED,
    }
)

_ORDER_STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PROCESSING: "Being prepared",
    OrderStatus.READY: "Ready",
    OrderStatus.DELIVERING: "Out for delivery",
    OrderStatus.COMPLETED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

_PAYMENT_STATUS_LABELS = {
    PaymentStatus.PENDING: "Pending",
    PaymentStatus.AUTHORIZED: "Authorized",
    PaymentStatus.PAID: "Paid",
    PaymentStatus.FAILED: "Failed",
    PaymentStatus.REFUNDED: "Refunded",
}


def is_legal_order_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target != current and target in ORDER_TRANSITIONS[current]


def is_legal_payment_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target != current and target in PAYMENT_TRANSITIONS[current]
