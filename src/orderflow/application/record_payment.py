"""Application service: Record Payment use case.

Entry point for payment notifications (gateway webhook, cash received at
the counter): a pre-authorization, a direct payment or a failure.
"""

from __future__ import annotations

from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.payment_reconciler import PaymentReconciler

OUTCOMES = ("authorized", "paid", "failed")


class RecordPaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        reconciler: PaymentReconciler,
    ) -> None:
        self._order_repo = order_repo
        self._reconciler = reconciler

    def handle(
        self,
        order_id: int,
        outcome: str,
        actor_id: str,
        reference: str | None = None,
        reason: str | None = None,
    ) -> OrderDTO:
        if outcome not in OUTCOMES:
            raise ValidationError(
                f"Unknown payment outcome '{outcome}' (expected one of: {', '.join(OUTCOMES)})"
            )

        order = self._order_repo.load(order_id)
        if outcome == "authorized":
            if not reference:
                raise ValidationError("An authorization reference is required")
            self._reconciler.authorize(order, reference, actor_id)
        elif outcome == "paid":
            self._reconciler.record_payment(order, reference, actor_id)
        else:
            self._reconciler.mark_failed(order, reason, actor_id)
        return to_order_dto(order)
