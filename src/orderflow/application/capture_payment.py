"""Application service: Capture Payment use case.

Never retried here: the gateway must not be asked twice.  A write that
conflicts after an accepted capture is settled inside the reconciler.
"""

from __future__ import annotations

from orderflow.application.dto import CaptureReceiptDTO
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.payment_reconciler import PaymentReconciler


class CapturePaymentHandler:

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
        actor_id: str,
        timeout: float | None = None,
    ) -> CaptureReceiptDTO:
        order = self._order_repo.load(order_id)
        receipt = self._reconciler.capture(order, actor_id, timeout=timeout)
        return CaptureReceiptDTO(
            order_id=receipt.order_id,
            order_number=receipt.order_number,
            transaction_id=receipt.transaction_id,
            amount=str(receipt.amount),
            captured_at=receipt.captured_at.strftime("%Y-%m-%d %H:%M UTC"),
        )
