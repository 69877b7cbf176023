"""Domain service: Variable-Weight Finalization.

Once the variable-weight items have been weighed (after picking, before
dispatch), the actual weights replace the estimates taken at checkout and
the order total is recomputed.  Finalization is one-shot.

The same two-phase approach as elsewhere in the domain applies:
  Phase 1: validate every submitted weight and the order's state.
           Fails fast before any mutation.
  Phase 2: mutate a working copy of the order and persist it as one unit.
           The caller's order only takes the new state once it is saved.

Rounding: each line total is ``unit_price * grams / reference_unit``
rounded half-up to the currency's minor unit, once per line; the order
total is the exact sum of the rounded line totals.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from orderflow.domain.events import WeightsFinalized
from orderflow.domain.exceptions import (
    AlreadyFinalizedError,
    IncompleteWeightsError,
    NotApplicableError,
    UnknownItemError,
    ValidationError,
    WeightOutOfRangeError,
)
from orderflow.domain.model.order import Order
from orderflow.domain.model.policies import WeightPolicy
from orderflow.domain.model.value_objects import Weight
from orderflow.domain.ports.clock import Clock
from orderflow.domain.ports.event_emitter import EventEmitter
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class WeightFinalizer:

    def __init__(
        self,
        order_repo: OrderRepository,
        emitter: EventEmitter,
        clock: Clock,
        policy: WeightPolicy | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._publisher = EventPublisher(emitter)
        self._clock = clock
        self._policy = policy or WeightPolicy()

    def finalize(
        self,
        order: Order,
        weights_by_item_id: Mapping[int, int],
        actor_id: str,
    ) -> Order:
        """Record actual weights (grams per item id) and recompute totals."""
        weights = self._validate(order, weights_by_item_id)

        # Phase 2: mutate a working copy and persist it
        reference = self._policy.reference_unit_grams
        estimated_total = order.total_amount
        working = order.working_copy()
        for item in working.variable_weight_items:
            item.record_actual_weight(weights[item.id], reference)
        working.recalculate_total()

        now = self._clock.now()
        working.weight_confirmed_at = now
        working.add_note(
            f"Weights confirmed, total adjusted from {estimated_total} "
            f"to {working.total_amount}",
            author=actor_id,
            at=now,
        )
        self._order_repo.save(working)
        order.adopt(working)

        delta = order.total_amount.signed_difference(estimated_total)
        logger.info(
            "Variable weight order %s finalized: %s -> %s (delta %+d)",
            order.order_number, estimated_total, order.total_amount, delta,
        )
        self._publisher.publish(
            WeightsFinalized(
                order_id=order.id,  # type: ignore[arg-type]
                estimated_total=estimated_total.minor_units,
                final_total=order.total_amount.minor_units,
                delta=delta,
            )
        )
        return order

    # --- Phase 1 --------------------------------------------------------------

    def _validate(
        self,
        order: Order,
        weights_by_item_id: Mapping[int, int],
    ) -> dict[int, Weight]:
        if not order.requires_weight_confirmation:
            raise NotApplicableError(
                f"Order {order.order_number} has no variable-weight items to weigh"
            )
        if order.weight_confirmed_at is not None:
            raise AlreadyFinalizedError(
                f"Weights for order {order.order_number} were already confirmed "
                f"at {order.weight_confirmed_at:%Y-%m-%d %H:%M}"
            )
        if order.status.is_terminal:
            raise NotApplicableError(
                f"Order {order.order_number} is {order.status.value}; "
                f"weights can no longer be recorded"
            )

        variable_ids = {item.id for item in order.variable_weight_items}
        for item_id in sorted(weights_by_item_id):
            if item_id not in variable_ids:
                raise UnknownItemError(item_id, order.order_number)

        weights: dict[int, Weight] = {}
        for item_id in sorted(weights_by_item_id):
            grams = weights_by_item_id[item_id]
            if isinstance(grams, bool) or not isinstance(grams, int):
                raise ValidationError(
                    f"Item #{item_id} weight must be a whole number of grams"
                )
            if not self._policy.accepts(grams):
                raise WeightOutOfRangeError(
                    item_id, grams, self._policy.min_grams, self._policy.max_grams
                )
            weights[item_id] = Weight(grams)

        missing = sorted(variable_ids - weights.keys())
        if missing:
            raise IncompleteWeightsError(missing)
        return weights
