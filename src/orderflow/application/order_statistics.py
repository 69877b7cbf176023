"""Application service: Order Statistics use case (query).

Revenue only counts paid orders; the average is over paid orders too,
rounded half-up to the minor unit.  ``needing_action`` ignores the period:
it counts every open order still pending or waiting to be weighed.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from orderflow.application.dto import OrderStatisticsDTO
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.order import Order
from orderflow.domain.model.status import OrderStatus, PaymentStatus
from orderflow.domain.model.value_objects import Money
from orderflow.domain.ports.clock import Clock
from orderflow.domain.repository.order_repository import OrderRepository

PERIODS = ("today", "week", "month")


class OrderStatisticsHandler:

    def __init__(self, order_repo: OrderRepository, clock: Clock, currency: str) -> None:
        self._order_repo = order_repo
        self._clock = clock
        self._currency = currency

    def handle(self, period: str = "today") -> OrderStatisticsDTO:
        if period not in PERIODS:
            raise ValidationError(
                f"Unknown period '{period}' (expected one of: {', '.join(PERIODS)})"
            )

        now = self._clock.now()
        all_orders = self._order_repo.list_all()
        orders = [o for o in all_orders if _in_period(o, period, now)]
        paid = [o for o in orders if o.payment_status is PaymentStatus.PAID]

        revenue = Money.zero(self._currency)
        for order in paid:
            revenue = revenue + order.total_amount
        average = revenue.multiply_by_ratio(1, len(paid)) if paid else Money.zero(self._currency)

        return OrderStatisticsDTO(
            period=period,
            total_orders=len(orders),
            pending_orders=sum(1 for o in orders if o.status is OrderStatus.PENDING),
            completed_orders=sum(1 for o in orders if o.status is OrderStatus.COMPLETED),
            total_revenue=str(revenue),
            average_order_value=str(average),
            needing_action=sum(1 for o in all_orders if _needs_action(o)),
        )


def _in_period(order: Order, period: str, now: datetime) -> bool:
    created = order.created_at.astimezone(now.tzinfo)
    if period == "today":
        return created.date() == now.date()
    if period == "week":
        start = (now - timedelta(days=now.weekday())).date()
        return start <= created.date() <= start + timedelta(days=6)
    return (created.year, created.month) == (now.year, now.month)


def _needs_action(order: Order) -> bool:
    if order.status.is_terminal:
        return False
    return order.status is OrderStatus.PENDING or order.needs_weight_confirmation
