"""CinetPay implementation of the PaymentGateway port, over httpx.

The API answers HTTP 200 with a JSON body whose ``code`` is ``"00"`` on
success; anything else is a decline carrying a ``message``.  Transport
errors and timeouts are raised as PaymentGatewayError /
PaymentGatewayTimeout so the reconciler can treat them as retryable.
"""

from __future__ import annotations

import logging

import httpx

from orderflow.domain.exceptions import PaymentGatewayError, PaymentGatewayTimeout
from orderflow.domain.ports.payment_gateway import (
    GatewayRequest,
    GatewayResult,
    PaymentGateway,
)

logger = logging.getLogger(__name__)

SUCCESS_CODE = "00"
_CAPTURE_ENDPOINT = "/payment/capture"
_REFUND_ENDPOINT = "/payment/refund"


class CinetPayGateway(PaymentGateway):

    def __init__(
        self,
        api_key: str,
        site_id: str,
        api_url: str,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key or not site_id:
            raise ValueError("CinetPay api_key and site_id are required")
        self._api_key = api_key
        self._site_id = site_id
        self._client = client or httpx.Client(
            base_url=api_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
        )

    # --- PaymentGateway interface ---------------------------------------------

    def authorize_capture(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        return self._call(_CAPTURE_ENDPOINT, request, timeout, "Capture failed")

    def refund(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        return self._call(_REFUND_ENDPOINT, request, timeout, "Refund failed")

    def close(self) -> None:
        self._client.close()

    # --- Internal helpers -----------------------------------------------------

    def _call(
        self,
        endpoint: str,
        request: GatewayRequest,
        timeout: float,
        default_message: str,
    ) -> GatewayResult:
        if not request.transaction_reference:
            return GatewayResult(success=False, message="No payment reference found")

        body = {
            "apikey": self._api_key,
            "site_id": self._site_id,
            "transaction_id": request.transaction_reference,
            "amount": request.amount,
            "currency": request.currency,
        }
        try:
            response = self._client.post(endpoint, json=body, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise PaymentGatewayTimeout(
                f"CinetPay did not answer within {timeout:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"CinetPay request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_success and data.get("code") == SUCCESS_CODE:
            logger.info(
                "CinetPay %s succeeded for order %s (transaction %s)",
                endpoint, request.order_number, request.transaction_reference,
            )
            return GatewayResult(
                success=True,
                transaction_id=request.transaction_reference,
                message=data.get("message"),
            )

        message = data.get("message") or f"{default_message} (HTTP {response.status_code})"
        logger.warning(
            "CinetPay %s declined for order %s: %s", endpoint, request.order_number, message
        )
        return GatewayResult(success=False, message=message)
