"""Stand-in used when no gateway credentials are configured.

Every call fails as a gateway error, so captures and refunds are refused
with a clear message instead of pretending to succeed.
"""

from __future__ import annotations

from orderflow.domain.exceptions import PaymentGatewayError
from orderflow.domain.ports.payment_gateway import (
    GatewayRequest,
    GatewayResult,
    PaymentGateway,
)


class UnconfiguredGateway(PaymentGateway):

    def authorize_capture(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        raise PaymentGatewayError(
            "no payment gateway is configured (set CINETPAY_API_KEY and CINETPAY_SITE_ID)"
        )

    def refund(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        raise PaymentGatewayError(
            "no payment gateway is configured (set CINETPAY_API_KEY and CINETPAY_SITE_ID)"
        )
