"""Domain service: Payment Status Reconciler.

Payment status follows its own table, independent of the order status:

    pending    -> authorized, paid, failed
    authorized -> paid, failed, refunded
    paid       -> refunded

The central operation is ``capture``: turning a card pre-authorization into
an actual charge once the final amount is known.  A capture is only ever
attempted from ``authorized``, so a second call after a successful capture
fails with PaymentNotAuthorizedError before the gateway is contacted, and a
save that conflicts after the gateway accepted the charge is settled on the
latest stored version instead of charging again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from orderflow.domain.events import (
    PaymentAuthorized,
    PaymentCaptured,
    PaymentFailed,
    PaymentRecorded,
    PaymentRefunded,
)
from orderflow.domain.exceptions import (
    CaptureError,
    ConcurrentModificationError,
    IllegalPaymentTransitionError,
    PaymentGatewayError,
    PaymentGatewayTimeout,
    PaymentNotAuthorizedError,
    RefundError,
    ValidationError,
    WeightConfirmationRequiredError,
)
from orderflow.domain.model.order import Order
from orderflow.domain.model.status import OrderStatus, PaymentStatus
from orderflow.domain.model.value_objects import Money
from orderflow.domain.ports.clock import Clock
from orderflow.domain.ports.event_emitter import EventEmitter
from orderflow.domain.ports.payment_gateway import (
    GatewayRequest,
    GatewayResult,
    PaymentGateway,
)
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.event_publisher import EventPublisher

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_TIMEOUT = 30.0


@dataclass(frozen=True)
class CaptureReceipt:
    order_id: int
    order_number: str
    transaction_id: str
    amount: Money
    captured_at: datetime


class PaymentReconciler:

    def __init__(
        self,
        order_repo: OrderRepository,
        gateway: PaymentGateway,
        emitter: EventEmitter,
        clock: Clock,
        default_timeout: float = DEFAULT_GATEWAY_TIMEOUT,
    ) -> None:
        self._order_repo = order_repo
        self._gateway = gateway
        self._publisher = EventPublisher(emitter)
        self._clock = clock
        self._default_timeout = default_timeout

    # --- Capture --------------------------------------------------------------

    def capture(
        self,
        order: Order,
        actor_id: str,
        timeout: float | None = None,
    ) -> CaptureReceipt:
        """Charge the pre-authorized amount.

        Gateway declines, transport errors and timeouts leave the payment
        ``authorized`` and raise CaptureError, which is safe to retry.
        """
        if order.status is OrderStatus.CANCELLED:
            raise PaymentNotAuthorizedError(
                f"Order {order.order_number} is cancelled; its payment cannot be captured"
            )
        if order.payment_status is not PaymentStatus.AUTHORIZED:
            raise PaymentNotAuthorizedError(
                f"Order {order.order_number} has no pre-authorized payment to capture "
                f"(payment is {order.payment_status.value})"
            )
        if order.needs_weight_confirmation:
            raise WeightConfirmationRequiredError(
                f"Order {order.order_number} must have its weights finalized "
                f"before the payment is captured"
            )

        timeout = self._default_timeout if timeout is None else timeout
        request = self._request_for(order)
        try:
            result = self._gateway.authorize_capture(request, timeout)
        except PaymentGatewayTimeout as exc:
            logger.warning("Capture for order %s timed out: %s", order.order_number, exc)
            raise CaptureError(
                f"Payment gateway did not answer within {timeout:g}s; "
                f"capture for order {order.order_number} can be retried"
            ) from exc
        except PaymentGatewayError as exc:
            logger.warning("Capture for order %s failed: %s", order.order_number, exc)
            raise CaptureError(f"Payment capture failed: {exc}") from exc

        if not result.success:
            logger.warning(
                "Capture for order %s declined: %s", order.order_number, result.message
            )
            raise CaptureError(
                f"Payment capture failed: {result.message or 'declined by gateway'}"
            )

        transaction_id = result.transaction_id or order.payment_reference
        if not transaction_id:
            raise CaptureError(
                f"Gateway accepted the capture for order {order.order_number} "
                f"without a transaction id"
            )

        now = self._clock.now()
        self._record_capture(order, transaction_id, actor_id, now)

        logger.info(
            "Payment captured for order %s: %s (transaction %s)",
            order.order_number, order.total_amount, transaction_id,
        )
        self._publisher.publish(
            PaymentCaptured(order_id=order.id, transaction_id=transaction_id)  # type: ignore[arg-type]
        )
        return CaptureReceipt(
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            transaction_id=transaction_id,
            amount=order.total_amount,
            captured_at=now,
        )

    # --- Notifications from the payment flow ----------------------------------

    def authorize(self, order: Order, reference: str, actor_id: str) -> Order:
        """Record a card pre-authorization obtained at checkout."""
        if not reference:
            raise ValidationError("An authorization reference is required")
        if order.status is OrderStatus.CANCELLED:
            raise ValidationError(
                f"Order {order.order_number} is cancelled; payment cannot be authorized"
            )

        def mark_authorized(target: Order) -> None:
            target.apply_payment_status(PaymentStatus.AUTHORIZED, reference=reference)
            target.add_note(
                f"Payment authorized ({reference})", author=actor_id, at=self._clock.now()
            )

        self._commit(order, mark_authorized)

        logger.info("Payment authorized for order %s (%s)", order.order_number, reference)
        self._publisher.publish(PaymentAuthorized(order_id=order.id, reference=reference))  # type: ignore[arg-type]
        return order

    def record_payment(self, order: Order, reference: str | None, actor_id: str) -> Order:
        """Record a direct payment (cash on delivery, mobile money)."""
        if order.payment_status is not PaymentStatus.PENDING:
            raise IllegalPaymentTransitionError(
                order.payment_status.value, PaymentStatus.PAID.value
            )

        def mark_paid(target: Order) -> None:
            target.apply_payment_status(PaymentStatus.PAID, reference=reference)
            target.add_note(
                f"Payment of {target.total_amount} received"
                + (f" ({reference})" if reference else ""),
                author=actor_id,
                at=self._clock.now(),
            )

        self._commit(order, mark_paid)

        logger.info("Direct payment recorded for order %s", order.order_number)
        self._publisher.publish(PaymentRecorded(order_id=order.id, reference=reference))  # type: ignore[arg-type]
        return order

    def mark_failed(self, order: Order, reason: str | None, actor_id: str) -> Order:

        def mark(target: Order) -> None:
            target.apply_payment_status(PaymentStatus.FAILED)
            target.add_note(
                f"Payment failed: {reason}" if reason else "Payment failed",
                author=actor_id,
                at=self._clock.now(),
            )

        self._commit(order, mark)

        logger.info("Payment failed for order %s: %s", order.order_number, reason)
        self._publisher.publish(PaymentFailed(order_id=order.id, reason=reason))  # type: ignore[arg-type]
        return order

    # --- Refund ---------------------------------------------------------------

    def refund(
        self,
        order: Order,
        actor_id: str,
        timeout: float | None = None,
    ) -> Order:
        """Refund a paid order or release an authorization through the gateway."""
        if order.payment_status not in (PaymentStatus.AUTHORIZED, PaymentStatus.PAID):
            raise IllegalPaymentTransitionError(
                order.payment_status.value, PaymentStatus.REFUNDED.value
            )

        timeout = self._default_timeout if timeout is None else timeout
        try:
            result: GatewayResult = self._gateway.refund(self._request_for(order), timeout)
        except PaymentGatewayError as exc:
            logger.warning("Refund for order %s failed: %s", order.order_number, exc)
            raise RefundError(f"Refund failed: {exc}") from exc
        if not result.success:
            raise RefundError(f"Refund failed: {result.message or 'declined by gateway'}")

        def mark_refunded(target: Order) -> None:
            target.apply_payment_status(PaymentStatus.REFUNDED)
            target.add_note(
                f"Payment of {target.total_amount} refunded",
                author=actor_id,
                at=self._clock.now(),
            )

        self._commit(order, mark_refunded)

        logger.info("Payment refunded for order %s", order.order_number)
        self._publisher.publish(
            PaymentRefunded(
                order_id=order.id,  # type: ignore[arg-type]
                transaction_id=result.transaction_id or order.payment_reference,
                amount=order.total_amount.minor_units,
            )
        )
        return order

    # --- Internal helpers -----------------------------------------------------

    def _commit(self, order: Order, change: Callable[[Order], None]) -> None:
        """Apply *change* to a working copy; *order* follows only once it is saved."""
        working = order.working_copy()
        change(working)
        self._order_repo.save(working)
        order.adopt(working)

    def _record_capture(
        self,
        order: Order,
        transaction_id: str,
        actor_id: str,
        at: datetime,
    ) -> None:
        """Persist a capture the gateway has already accepted.

        The charge cannot be taken back, so a conflicting write is resolved
        by recording the capture on the latest stored version, as long as
        that version still holds the authorization.
        """

        def mark_captured(target: Order) -> None:
            target.apply_payment_status(PaymentStatus.PAID, reference=transaction_id)
            target.add_note(
                f"Payment of {target.total_amount} captured (transaction {transaction_id})",
                author=actor_id,
                at=at,
            )

        try:
            self._commit(order, mark_captured)
        except ConcurrentModificationError:
            latest = self._order_repo.load(order.id)  # type: ignore[arg-type]
            if latest.payment_status is not PaymentStatus.AUTHORIZED:
                logger.error(
                    "Order %s was captured at the gateway (transaction %s) but its "
                    "payment is now %s; reconcile manually",
                    order.order_number, transaction_id, latest.payment_status.value,
                )
                raise
            logger.warning(
                "Order %s changed during capture; recording transaction %s on version %d",
                order.order_number, transaction_id, latest.version,
            )
            try:
                self._commit(latest, mark_captured)
            except ConcurrentModificationError:
                logger.error(
                    "Order %s was captured at the gateway (transaction %s) but changed "
                    "concurrently twice; reconcile manually",
                    order.order_number, transaction_id,
                )
                raise
            order.adopt(latest)

    @staticmethod
    def _request_for(order: Order) -> GatewayRequest:
        return GatewayRequest(
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            transaction_reference=order.payment_reference,
            amount=order.total_amount.minor_units,
            currency=order.currency,
        )
