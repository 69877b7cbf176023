"""Domain events published after a state change has been committed."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass(frozen=True)
class DomainEvent:
    name: ClassVar[str] = "DomainEvent"

    def payload(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    name: ClassVar[str] = "OrderCreated"

    order_id: int
    order_number: str
    total: int
    requires_weight_confirmation: bool


@dataclass(frozen=True)
class StatusChanged(DomainEvent):
    name: ClassVar[str] = "StatusChanged"

    order_id: int
    from_status: str
    to_status: str
    actor: str


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Lets inventory and notification collaborators react (e.g. restock)."""

    name: ClassVar[str] = "OrderCancelled"

    order_id: int
    reason: str | None


@dataclass(frozen=True)
class WeightsFinalized(DomainEvent):
    """Totals are in minor units; ``delta`` is final minus estimated."""

    name: ClassVar[str] = "WeightsFinalized"

    order_id: int
    estimated_total: int
    final_total: int
    delta: int


@dataclass(frozen=True)
class PaymentAuthorized(DomainEvent):
    name: ClassVar[str] = "PaymentAuthorized"

    order_id: int
    reference: str


@dataclass(frozen=True)
class PaymentCaptured(DomainEvent):
    name: ClassVar[str] = "PaymentCaptured"

    order_id: int
    transaction_id: str


@dataclass(frozen=True)
class PaymentRecorded(DomainEvent):
    name: ClassVar[str] = "PaymentRecorded"

    order_id: int
    reference: str | None


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    name: ClassVar[str] = "PaymentFailed"

    order_id: int
    reason: str | None


@dataclass(frozen=True)
class PaymentRefunded(DomainEvent):
    name: ClassVar[str] = "PaymentRefunded"

    order_id: int
    transaction_id: str | None
    amount: int
