"""Domain service: Order Status State Machine.

The authority every caller defers to before changing ``Order.status``.
Legality comes from the transition table; on top of it two guard
predicates are checked before anything is mutated:

- weight gate: production work (processing and beyond) cannot start while
  variable-weight items are still awaiting their actual weights;
- payment gate: an order cannot be completed until it is paid (can be
  relaxed through ``LifecyclePolicy``).
"""

from __future__ import annotations

import logging

from orderflow.domain.events import DomainEvent, OrderCancelled, StatusChanged
from orderflow.domain.exceptions import (
    IllegalTransitionError,
    PaymentRequiredError,
    WeightConfirmationRequiredError,
)
from orderflow.domain.model.order import Order
from orderflow.domain.model.policies import LifecyclePolicy
from orderflow.domain.model.status import (
    WEIGHT_GATED_STATUSES,
    OrderStatus,
    PaymentStatus,
)
from orderflow.domain.ports.clock import Clock
from orderflow.domain.ports.event_emitter import EventEmitter
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class OrderStatusMachine:

    def __init__(
        self,
        order_repo: OrderRepository,
        emitter: EventEmitter,
        clock: Clock,
        policy: LifecyclePolicy | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._publisher = EventPublisher(emitter)
        self._clock = clock
        self._policy = policy or LifecyclePolicy()

    # --- Queries --------------------------------------------------------------

    def can_transition_to(self, order: Order, target: OrderStatus) -> bool:
        return order.can_transition_to(target)

    def available_statuses(self, order: Order) -> list[tuple[OrderStatus, str]]:
        """Statuses the order may move to next, in lifecycle order."""
        return [
            (status, status.label)
            for status in OrderStatus
            if self.can_transition_to(order, status)
        ]

    def check_guards(self, order: Order, target: OrderStatus) -> None:
        """Raise if *target* is illegal or blocked for this order."""
        if not self.can_transition_to(order, target):
            raise IllegalTransitionError(order.status.value, target.value)

        if target in WEIGHT_GATED_STATUSES and order.needs_weight_confirmation:
            raise WeightConfirmationRequiredError(
                f"Order {order.order_number} contains variable-weight items; "
                f"finalize the actual weights before moving it to {target.value}"
            )

        if (
            target is OrderStatus.COMPLETED
            and self._policy.require_payment_before_completion
            and order.payment_status is not PaymentStatus.PAID
        ):
            raise PaymentRequiredError(
                f"Order {order.order_number} cannot be completed while payment "
                f"is {order.payment_status.value}"
            )

    # --- Commands -------------------------------------------------------------

    def transition(
        self,
        order: Order,
        target: OrderStatus,
        actor_id: str,
        note: str | None = None,
    ) -> Order:
        return self._transition(order, target, actor_id, note=note, reason=note)

    def cancel(self, order: Order, actor_id: str, reason: str | None = None) -> Order:
        note = f"Cancelled: {reason}" if reason else None
        return self._transition(
            order, OrderStatus.CANCELLED, actor_id, note=note, reason=reason
        )

    def _transition(
        self,
        order: Order,
        target: OrderStatus,
        actor_id: str,
        note: str | None,
        reason: str | None,
    ) -> Order:
        self.check_guards(order, target)

        previous = order.status
        working = order.working_copy()
        working.apply_status(target, actor_id=actor_id, at=self._clock.now(), note=note)
        self._order_repo.save(working)
        order.adopt(working)

        logger.info(
            "Order %s moved from %s to %s by %s",
            order.order_number, previous.value, target.value, actor_id,
        )

        events: list[DomainEvent] = [
            StatusChanged(
                order_id=order.id,  # type: ignore[arg-type]
                from_status=previous.value,
                to_status=target.value,
                actor=actor_id,
            )
        ]
        if target is OrderStatus.CANCELLED:
            events.append(OrderCancelled(order_id=order.id, reason=reason))  # type: ignore[arg-type]
        self._publisher.publish(*events)
        return order
