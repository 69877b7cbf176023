"""Application service: Refund Payment use case."""

from __future__ import annotations

from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.payment_reconciler import PaymentReconciler


class RefundPaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        reconciler: PaymentReconciler,
    ) -> None:
        self._order_repo = order_repo
        self._reconciler = reconciler

    def handle(self, order_id: int, actor_id: str, timeout: float | None = None) -> OrderDTO:
        order = self._order_repo.load(order_id)
        self._reconciler.refund(order, actor_id, timeout=timeout)
        return to_order_dto(order)
