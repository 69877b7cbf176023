"""Tests for the CinetPay gateway adapter, using httpx's MockTransport."""

import json

import httpx
import pytest

from orderflow.domain.exceptions import PaymentGatewayError, PaymentGatewayTimeout
from orderflow.domain.ports.payment_gateway import GatewayRequest
from orderflow.infrastructure.payment.cinetpay_gateway import CinetPayGateway

API_URL = "https://api.example.test/v2"


def _request(reference="AUTH-1"):
    return GatewayRequest(
        order_id=1,
        order_number="CMD-20250726-0001-TEST",
        transaction_reference=reference,
        amount=1240,
        currency="XOF",
    )


def _gateway(handler):
    client = httpx.Client(base_url=API_URL, transport=httpx.MockTransport(handler))
    return CinetPayGateway(api_key="key", site_id="site", api_url=API_URL, client=client)


def test_successful_capture_posts_final_amount():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"code": "00", "message": "SUCCES"})

    result = _gateway(handler).authorize_capture(_request(), timeout=5)

    assert result.success is True
    assert result.transaction_id == "AUTH-1"
    assert seen["url"] == f"{API_URL}/payment/capture"
    assert seen["body"] == {
        "apikey": "key",
        "site_id": "site",
        "transaction_id": "AUTH-1",
        "amount": 1240,
        "currency": "XOF",
    }


def test_decline_is_a_failed_result():
    def handler(request):
        return httpx.Response(200, json={"code": "627", "message": "Transaction cancelled"})

    result = _gateway(handler).authorize_capture(_request(), timeout=5)
    assert result.success is False
    assert result.message == "Transaction cancelled"


def test_http_error_status_without_body():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    result = _gateway(handler).refund(_request(), timeout=5)
    assert result.success is False
    assert result.message == "Refund failed (HTTP 502)"


def test_timeout_raises_gateway_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(PaymentGatewayTimeout, match="within 2s"):
        _gateway(handler).authorize_capture(_request(), timeout=2)


def test_connection_error_raises_gateway_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(PaymentGatewayError, match="refused"):
        _gateway(handler).authorize_capture(_request(), timeout=2)


def test_missing_reference_never_calls_api():
    def handler(request):
        raise AssertionError("no request expected")

    result = _gateway(handler).authorize_capture(_request(reference=None), timeout=2)
    assert result.success is False
    assert result.message == "No payment reference found"


def test_credentials_required():
    with pytest.raises(ValueError):
        CinetPayGateway(api_key="", site_id="site", api_url=API_URL)
