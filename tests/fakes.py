"""In-memory fakes for testing.

These implement the same abstract interfaces as the infrastructure
adapters but keep everything in memory. No file I/O, no network.

FakeOrderRepository hands out copies and checks ``version`` on save, so
tests see the same optimistic-concurrency behaviour as the JSON store.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from datetime import datetime, timezone

from orderflow.domain.exceptions import ConcurrentModificationError
from orderflow.domain.model.order import Order
from orderflow.domain.model.product_sku import ProductSku
from orderflow.domain.ports.clock import Clock
from orderflow.domain.ports.event_emitter import EventEmitter
from orderflow.domain.ports.payment_gateway import (
    GatewayRequest,
    GatewayResult,
    PaymentGateway,
)
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.repository.product_repository import ProductRepository


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1
        self.save_count = 0

    def next_id(self) -> int:
        return self._next_id

    def get_by_id(self, order_id: int) -> Order | None:
        order = self._store.get(order_id)
        return copy.deepcopy(order) if order is not None else None

    def list_all(self) -> list[Order]:
        return [copy.deepcopy(o) for o in self._store.values()]

    def save(self, order: Order) -> None:
        order.assert_consistent()
        if order.id is None:
            order.id = self._next_id
            self._next_id += 1
        stored = self._store.get(order.id)
        if stored is not None and stored.version != order.version:
            raise ConcurrentModificationError(
                f"Order {order.order_number} was modified by someone else"
            )
        order.version += 1
        self._store[order.id] = copy.deepcopy(order)
        self.save_count += 1


class FakeProductRepository(ProductRepository):

    def __init__(self, skus: list[ProductSku] | None = None) -> None:
        self._store: dict[str, ProductSku] = {}
        for s in skus or []:
            self._store[s.id] = s

    def get_by_id(self, sku_id: str) -> ProductSku | None:
        return self._store.get(sku_id)

    def list_all(self) -> list[ProductSku]:
        return list(self._store.values())

    def save(self, sku: ProductSku) -> None:
        self._store[sku.id] = sku


class FakePaymentGateway(PaymentGateway):
    """Records every call; answers with ``result`` or raises ``error``.

    ``during_capture``, when set, runs while the gateway is "processing" a
    capture, to simulate another writer touching the order meanwhile.
    """

    def __init__(
        self,
        result: GatewayResult | None = None,
        error: Exception | None = None,
    ) -> None:
        self.result = result or GatewayResult(success=True, transaction_id="TX-1")
        self.error = error
        self.captures: list[tuple[GatewayRequest, float]] = []
        self.refunds: list[tuple[GatewayRequest, float]] = []
        self.during_capture: Callable[[], None] | None = None

    def authorize_capture(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        self.captures.append((request, timeout))
        if self.during_capture is not None:
            self.during_capture()
        if self.error is not None:
            raise self.error
        return self.result

    def refund(self, request: GatewayRequest, timeout: float) -> GatewayResult:
        self.refunds.append((request, timeout))
        if self.error is not None:
            raise self.error
        return self.result


class RecordingEmitter(EventEmitter):

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class FailingEmitter(EventEmitter):

    def emit(self, event_name: str, payload: dict) -> None:
        raise RuntimeError("emitter is down")


class FixedClock(Clock):

    def __init__(self, now: datetime | None = None) -> None:
        self.current = now or datetime(2025, 7, 26, 10, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current
