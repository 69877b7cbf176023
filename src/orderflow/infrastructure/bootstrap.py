"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from orderflow.domain.ports.clock import Clock
from orderflow.domain.ports.event_emitter import EventEmitter
from orderflow.domain.ports.payment_gateway import PaymentGateway
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.order_status_machine import OrderStatusMachine
from orderflow.domain.service.payment_reconciler import PaymentReconciler
from orderflow.domain.service.weight_finalization import WeightFinalizer
from orderflow.infrastructure.clock import SystemClock
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.notifications.emitters import (
    FanOutEmitter,
    JsonlAuditEmitter,
    LoggingEventEmitter,
)
from orderflow.infrastructure.payment.cinetpay_gateway import CinetPayGateway
from orderflow.infrastructure.payment.unconfigured_gateway import UnconfiguredGateway
from orderflow.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from orderflow.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


def product_repository(settings: Settings) -> JsonProductRepository:
    return JsonProductRepository(settings.data_dir / "products.json")


def order_repository(settings: Settings) -> JsonOrderRepository:
    return JsonOrderRepository(settings.data_dir / "orders.json")


def clock() -> Clock:
    return SystemClock()


def event_emitter(settings: Settings) -> EventEmitter:
    return FanOutEmitter(
        [
            LoggingEventEmitter(),
            JsonlAuditEmitter(settings.data_dir / "audit.jsonl"),
        ]
    )


def payment_gateway(settings: Settings) -> PaymentGateway:
    if settings.cinetpay_api_key and settings.cinetpay_site_id:
        return CinetPayGateway(
            api_key=settings.cinetpay_api_key,
            site_id=settings.cinetpay_site_id,
            api_url=settings.cinetpay_api_url,
        )
    return UnconfiguredGateway()


def status_machine(settings: Settings, order_repo: OrderRepository) -> OrderStatusMachine:
    return OrderStatusMachine(
        order_repo,
        emitter=event_emitter(settings),
        clock=clock(),
        policy=settings.lifecycle_policy(),
    )


def weight_finalizer(settings: Settings, order_repo: OrderRepository) -> WeightFinalizer:
    return WeightFinalizer(
        order_repo,
        emitter=event_emitter(settings),
        clock=clock(),
        policy=settings.weight_policy(),
    )


def payment_reconciler(settings: Settings, order_repo: OrderRepository) -> PaymentReconciler:
    return PaymentReconciler(
        order_repo,
        gateway=payment_gateway(settings),
        emitter=event_emitter(settings),
        clock=clock(),
        default_timeout=settings.gateway_timeout,
    )
