"""Application service: Update Weights use case.

Records the weighed grams of every variable-weight item and finalizes
the order total.
"""

from __future__ import annotations

from orderflow.application.conflict_retry import retry_on_conflict
from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.weight_finalization import WeightFinalizer


class UpdateWeightsHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        finalizer: WeightFinalizer,
    ) -> None:
        self._order_repo = order_repo
        self._finalizer = finalizer

    def handle(self, order_id: int, weights: dict[int, int], actor_id: str) -> OrderDTO:
        if not weights:
            raise ValidationError("At least one item weight is required")

        def attempt() -> OrderDTO:
            order = self._order_repo.load(order_id)
            self._finalizer.finalize(order, weights, actor_id)
            return to_order_dto(order)

        return retry_on_conflict(attempt)
