"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items, its append-only
notes and its status history.  Invariants that only involve the order's
own data are enforced here; rules that need collaborators (clock, gateway,
policies) live in the domain services.
"""

from __future__ import annotations

import copy
import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from orderflow.domain.exceptions import (
    IllegalPaymentTransitionError,
    IllegalTransitionError,
    ValidationError,
)
from orderflow.domain.model.policies import CheckoutPolicy
from orderflow.domain.model.status import (
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    is_legal_order_transition,
    is_legal_payment_transition,
)
from orderflow.domain.model.value_objects import Money, Weight


@dataclass(frozen=True)
class CustomerSnapshot:
    """Customer details as they were when the order was placed."""

    name: str
    phone: str
    email: str | None = None


@dataclass(frozen=True)
class NoteEntry:
    at: datetime
    author: str
    text: str


@dataclass(frozen=True)
class StatusTransition:
    from_status: OrderStatus
    to_status: OrderStatus
    at: datetime
    actor_id: str
    note: str | None = None


@dataclass
class OrderItem:
    """A line of the order with its price snapshot.

    ``ordered_quantity_or_weight`` is a unit count for fixed items and the
    estimated weight in grams for variable-weight items, whose
    ``unit_price`` is quoted per reference weight unit (1 kg by default).
    """

    id: int
    product_sku_id: str
    product_name: str
    sku_name: str
    unit_price: Money  # locked at order-creation time
    ordered_quantity_or_weight: int
    line_total: Money
    is_variable_weight: bool = False
    actual_weight: Weight | None = None

    @property
    def estimated_weight(self) -> Weight | None:
        if not self.is_variable_weight:
            return None
        return Weight(self.ordered_quantity_or_weight)

    @property
    def billed_grams(self) -> int:
        if self.actual_weight is not None:
            return self.actual_weight.grams
        return self.ordered_quantity_or_weight

    @property
    def weight_difference(self) -> int:
        """Actual minus estimated grams; 0 until the item is weighed."""
        if not self.is_variable_weight or self.actual_weight is None:
            return 0
        return self.actual_weight.grams - self.ordered_quantity_or_weight

    def compute_line_total(self, reference_unit_grams: int) -> Money:
        if not self.is_variable_weight:
            return self.unit_price * self.ordered_quantity_or_weight
        return self.unit_price.multiply_by_ratio(self.billed_grams, reference_unit_grams)

    def estimated_line_total(self, reference_unit_grams: int) -> Money:
        if not self.is_variable_weight:
            return self.unit_price * self.ordered_quantity_or_weight
        return self.unit_price.multiply_by_ratio(
            self.ordered_quantity_or_weight, reference_unit_grams
        )

    def price_adjustment(self, reference_unit_grams: int) -> int:
        """Signed change of the line total caused by weighing, in minor units."""
        return self.line_total.signed_difference(
            self.estimated_line_total(reference_unit_grams)
        )

    def record_actual_weight(self, weight: Weight, reference_unit_grams: int) -> None:
        if not self.is_variable_weight:
            raise ValidationError(
                f"Cannot set a weight on fixed-price item #{self.id} ({self.product_name})"
            )
        self.actual_weight = weight
        self.line_total = self.compute_line_total(reference_unit_grams)


def generate_order_number(sequence: int, on: date) -> str:
    """Build a reference like ``CMD-20250726-0042-K7QZ``."""
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(4))
    return f"CMD-{on:%Y%m%d}-{sequence:04d}-{suffix}"


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    checkout rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    customer: CustomerSnapshot
    delivery_method: DeliveryMethod
    payment_method: PaymentMethod
    items: list[OrderItem]
    total_amount: Money
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    requires_weight_confirmation: bool = False
    weight_confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    payment_reference: str | None = None
    delivery_address: str | None = None
    notes: list[NoteEntry] = field(default_factory=list)
    history: list[StatusTransition] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        order_number: str,
        customer: CustomerSnapshot,
        delivery_method: DeliveryMethod,
        payment_method: PaymentMethod,
        items: list[OrderItem],
        created_at: datetime,
        policy: CheckoutPolicy,
        delivery_address: str | None = None,
        authorization_reference: str | None = None,
    ) -> Order:
        """Create a new order, enforcing all checkout rules."""
        if not customer.name or not customer.name.strip():
            raise ValidationError("Customer name is required")
        if not customer.phone or not customer.phone.strip():
            raise ValidationError("Customer phone is required")

        if not items:
            raise ValidationError("Order must contain at least one item")
        if len(items) > policy.max_line_items:
            raise ValidationError(f"Maximum {policy.max_line_items} items per order")
        if len({item.id for item in items}) != len(items):
            raise ValidationError("Order item ids must be unique")

        total = Money.zero(items[0].line_total.currency)
        for item in items:
            total = total + item.line_total

        if delivery_method is DeliveryMethod.DELIVERY:
            if not delivery_address or not delivery_address.strip():
                raise ValidationError("A delivery address is required for home delivery")
            if total < policy.min_delivery_amount:
                raise ValidationError(
                    f"Minimum amount for delivery is {policy.min_delivery_amount}, "
                    f"order total is {total}"
                )

        payment_status = PaymentStatus.PENDING
        if authorization_reference is not None:
            if not payment_method.supports_pre_authorization:
                raise ValidationError(
                    f"Payment method '{payment_method.value}' does not support "
                    f"pre-authorization"
                )
            payment_status = PaymentStatus.AUTHORIZED

        return Order(
            id=None,
            order_number=order_number,
            customer=CustomerSnapshot(
                name=customer.name.strip(),
                phone=customer.phone.strip(),
                email=customer.email,
            ),
            delivery_method=delivery_method,
            payment_method=payment_method,
            items=list(items),
            total_amount=total,
            payment_status=payment_status,
            payment_reference=authorization_reference,
            requires_weight_confirmation=any(i.is_variable_weight for i in items),
            delivery_address=(
                delivery_address.strip()
                if delivery_method is DeliveryMethod.DELIVERY
                else None
            ),
            created_at=created_at,
        )

    # --- State transitions ----------------------------------------------------

    def can_transition_to(self, target: OrderStatus) -> bool:
        return is_legal_order_transition(self.status, target)

    def apply_status(
        self,
        target: OrderStatus,
        actor_id: str,
        at: datetime,
        note: str | None = None,
    ) -> StatusTransition:
        """Move to *target*, recording the history entry and optional note.

        Only checks table legality; cross-cutting guards are the
        status machine's job and must run before this is called.
        """
        if not self.can_transition_to(target):
            raise IllegalTransitionError(self.status.value, target.value)

        transition = StatusTransition(
            from_status=self.status,
            to_status=target,
            at=at,
            actor_id=actor_id,
            note=note,
        )
        self.status = target
        if target is OrderStatus.COMPLETED:
            self.completed_at = at
        self.history.append(transition)
        if note:
            self.add_note(note, author=actor_id, at=at)
        return transition

    def apply_payment_status(
        self,
        target: PaymentStatus,
        reference: str | None = None,
    ) -> None:
        if not is_legal_payment_transition(self.payment_status, target):
            raise IllegalPaymentTransitionError(self.payment_status.value, target.value)
        if target is PaymentStatus.AUTHORIZED and not self.payment_method.supports_pre_authorization:
            raise ValidationError(
                f"Payment method '{self.payment_method.value}' does not support "
                f"pre-authorization"
            )
        self.payment_status = target
        if reference:
            self.payment_reference = reference

    def add_note(self, text: str, author: str, at: datetime) -> NoteEntry:
        if not text or not text.strip():
            raise ValidationError("Note text is required")
        entry = NoteEntry(at=at, author=author, text=text.strip())
        self.notes.append(entry)
        return entry

    # --- Computed properties --------------------------------------------------

    @property
    def needs_weight_confirmation(self) -> bool:
        return self.requires_weight_confirmation and self.weight_confirmed_at is None

    @property
    def variable_weight_items(self) -> list[OrderItem]:
        return [item for item in self.items if item.is_variable_weight]

    @property
    def currency(self) -> str:
        return self.total_amount.currency

    def sum_line_totals(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    def recalculate_total(self) -> None:
        self.total_amount = self.sum_line_totals()

    def estimated_total(self, reference_unit_grams: int) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.estimated_line_total(reference_unit_grams)
        return result

    def assert_consistent(self) -> None:
        """Raise ValidationError if stored data breaks an aggregate invariant."""
        summed = self.sum_line_totals()
        if summed != self.total_amount:
            raise ValidationError(
                f"Order {self.order_number} total {self.total_amount} does not "
                f"match its line totals {summed}"
            )
        for item in self.items:
            weighed = item.actual_weight is not None
            should_be_weighed = item.is_variable_weight and self.weight_confirmed_at is not None
            if weighed != should_be_weighed:
                raise ValidationError(
                    f"Order {self.order_number} item #{item.id} has an actual "
                    f"weight inconsistent with its weight confirmation"
                )

    # --- Internal helpers -----------------------------------------------------

    def find_item(self, item_id: int) -> OrderItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    # --- Staged changes -------------------------------------------------------

    def working_copy(self) -> Order:
        """A detached copy to apply changes to before they are saved."""
        return copy.deepcopy(self)

    def adopt(self, saved: Order) -> None:
        """Take over the state of *saved*, a working copy that was committed."""
        self.__dict__.update(saved.__dict__)
