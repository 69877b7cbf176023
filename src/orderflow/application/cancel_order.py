"""Application service: Cancel Order use case.

Cancellation is a status, never a deletion.  Restocking and customer
notification are left to the collaborators listening for the
OrderCancelled event; refunds are a separate, explicit operation.
"""

from __future__ import annotations

from orderflow.application.conflict_retry import retry_on_conflict
from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.order_status_machine import OrderStatusMachine

MAX_REASON_LENGTH = 500


class CancelOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        status_machine: OrderStatusMachine,
    ) -> None:
        self._order_repo = order_repo
        self._status_machine = status_machine

    def handle(self, order_id: int, actor_id: str, reason: str) -> OrderDTO:
        if not reason or not reason.strip():
            raise ValidationError("A cancellation reason is required")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(
                f"Cancellation reason is limited to {MAX_REASON_LENGTH} characters"
            )

        def attempt() -> OrderDTO:
            order = self._order_repo.load(order_id)
            self._status_machine.cancel(order, actor_id, reason=reason.strip())
            return to_order_dto(order)

        return retry_on_conflict(attempt)
