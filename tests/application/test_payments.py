"""Integration tests for the capture, record-payment and refund use cases."""

import pytest

from orderflow.application.capture_payment import CapturePaymentHandler
from orderflow.application.record_payment import RecordPaymentHandler
from orderflow.application.refund_payment import RefundPaymentHandler
from orderflow.domain.exceptions import (
    CaptureError,
    ConcurrentModificationError,
    PaymentNotAuthorizedError,
    ValidationError,
)
from orderflow.domain.model.status import PaymentMethod, PaymentStatus
from orderflow.domain.ports.payment_gateway import GatewayResult
from orderflow.domain.service.payment_reconciler import PaymentReconciler
from tests.builders import fixed_item, make_order
from tests.fakes import (
    FakeOrderRepository,
    FakePaymentGateway,
    FixedClock,
    RecordingEmitter,
)


def _setup(order=None, gateway=None):
    repo = FakeOrderRepository()
    gateway = gateway or FakePaymentGateway()
    reconciler = PaymentReconciler(repo, gateway, RecordingEmitter(), FixedClock())
    order = order or make_order(items=[fixed_item(qty=2, price=500)])
    repo.save(order)
    return repo, reconciler, gateway, order.id


class TestCapturePayment:

    def test_returns_receipt(self):
        repo, reconciler, _, order_id = _setup()
        receipt = CapturePaymentHandler(repo, reconciler).handle(order_id, "cashier")
        assert receipt.order_id == order_id
        assert receipt.transaction_id == "TX-1"
        assert receipt.amount == "1,000 XOF"
        assert receipt.captured_at == "2025-07-26 10:00 UTC"

    def test_passes_timeout(self):
        repo, reconciler, gateway, order_id = _setup()
        CapturePaymentHandler(repo, reconciler).handle(order_id, "cashier", timeout=2.5)
        assert gateway.captures[0][1] == 2.5

    def test_decline_can_be_retried(self):
        gateway = FakePaymentGateway(result=GatewayResult(success=False, message="Declined"))
        repo, reconciler, _, order_id = _setup(gateway=gateway)
        handler = CapturePaymentHandler(repo, reconciler)
        with pytest.raises(CaptureError):
            handler.handle(order_id, "cashier")

        gateway.result = GatewayResult(success=True, transaction_id="TX-2")
        assert handler.handle(order_id, "cashier").transaction_id == "TX-2"
        assert len(gateway.captures) == 2

    def test_repeat_capture_rejected(self):
        repo, reconciler, gateway, order_id = _setup()
        handler = CapturePaymentHandler(repo, reconciler)
        handler.handle(order_id, "cashier")
        with pytest.raises(PaymentNotAuthorizedError):
            handler.handle(order_id, "cashier")
        assert len(gateway.captures) == 1

    def test_conflict_is_not_retried(self, monkeypatch):
        repo, reconciler, gateway, order_id = _setup()

        def conflict(order):
            raise ConcurrentModificationError("changed underneath")

        monkeypatch.setattr(repo, "save", conflict)
        with pytest.raises(ConcurrentModificationError):
            CapturePaymentHandler(repo, reconciler).handle(order_id, "cashier")
        assert len(gateway.captures) == 1


class TestRecordPayment:

    def test_cash_payment(self):
        order = make_order(items=[fixed_item()], payment_method=PaymentMethod.CASH)
        repo, reconciler, _, order_id = _setup(order=order)
        dto = RecordPaymentHandler(repo, reconciler).handle(
            order_id, "paid", "cashier", reference="CASH-1"
        )
        assert dto.payment_status == "paid"
        assert dto.payment_status_label == "Paid"

    def test_authorization_needs_reference(self):
        order = make_order(items=[fixed_item()], authorization_reference=None)
        repo, reconciler, _, order_id = _setup(order=order)
        with pytest.raises(ValidationError, match="authorization reference"):
            RecordPaymentHandler(repo, reconciler).handle(order_id, "authorized", "webhook")

    def test_authorization(self):
        order = make_order(items=[fixed_item()], authorization_reference=None)
        repo, reconciler, _, order_id = _setup(order=order)
        dto = RecordPaymentHandler(repo, reconciler).handle(
            order_id, "authorized", "webhook", reference="AUTH-5"
        )
        assert dto.payment_status == "authorized"
        assert dto.payment_reference == "AUTH-5"

    def test_failure(self):
        order = make_order(items=[fixed_item()], payment_method=PaymentMethod.MOBILE_MONEY)
        repo, reconciler, _, order_id = _setup(order=order)
        dto = RecordPaymentHandler(repo, reconciler).handle(
            order_id, "failed", "webhook", reason="cancelled by payer"
        )
        assert dto.payment_status == "failed"
        assert dto.notes[-1].text == "Payment failed: cancelled by payer"

    def test_unknown_outcome(self):
        repo, reconciler, _, order_id = _setup()
        with pytest.raises(ValidationError, match="Unknown payment outcome"):
            RecordPaymentHandler(repo, reconciler).handle(order_id, "settled", "webhook")


class TestRefundPayment:

    def test_refund_after_capture(self):
        repo, reconciler, gateway, order_id = _setup()
        CapturePaymentHandler(repo, reconciler).handle(order_id, "cashier")
        dto = RefundPaymentHandler(repo, reconciler).handle(order_id, "manager")
        assert dto.payment_status == PaymentStatus.REFUNDED.value
        assert gateway.refunds[0][0].transaction_reference == "TX-1"
