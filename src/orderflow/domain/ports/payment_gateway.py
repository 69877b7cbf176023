"""Port for the external payment gateway.

Adapters raise ``PaymentGatewayError`` (or ``PaymentGatewayTimeout``) for
transport failures; a declined operation is a normal ``GatewayResult`` with
``success=False``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class GatewayRequest:
    order_id: int
    order_number: str
    transaction_reference: str | None
    amount: int  # minor units
    currency: str


@dataclass(frozen=True)
class GatewayResult:
    success: bool
    transaction_id: str | None = None
    message: str | None = None


class PaymentGateway(ABC):

    @abstractmethod
    def authorize_capture(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        """Turn the pre-authorization of an order into an actual charge."""

    @abstractmethod
    def refund(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        """Refund a captured payment or release a pre-authorization."""
