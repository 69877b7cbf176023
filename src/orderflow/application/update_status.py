"""Application service: Update Order Status use case."""

from __future__ import annotations

from orderflow.application.conflict_retry import retry_on_conflict
from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.status import OrderStatus
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.order_status_machine import OrderStatusMachine


def parse_order_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Unknown order status '{raw}' (expected one of: {allowed})")


class UpdateStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        status_machine: OrderStatusMachine,
    ) -> None:
        self._order_repo = order_repo
        self._status_machine = status_machine

    def handle(
        self,
        order_id: int,
        target: str,
        actor_id: str,
        note: str | None = None,
    ) -> OrderDTO:
        """Move an order to *target*; a conflicting write is retried once."""
        status = parse_order_status(target)

        def attempt() -> OrderDTO:
            order = self._order_repo.load(order_id)
            self._status_machine.transition(order, status, actor_id, note=note)
            return to_order_dto(order)

        return retry_on_conflict(attempt)
