"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer (or any API layer) can catch them uniformly.  Each subclass
carries a machine-readable ``kind`` and a ``retryable`` flag; the message is
the human-readable, actionable reason.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    kind = "DomainError"
    retryable = False

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": str(self), "retryable": self.retryable}


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    kind = "ValidationError"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = "NotFound"


class ConcurrentModificationError(DomainException):
    """The order was changed by someone else between load and save."""

    kind = "ConcurrentModification"
    retryable = True


# --- Order status ------------------------------------------------------------


class IllegalTransitionError(DomainException):
    kind = "IllegalTransition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move order from {current} to {target}")
        self.current = current
        self.target = target


class WeightConfirmationRequiredError(DomainException):
    kind = "WeightConfirmationRequired"


class PaymentRequiredError(DomainException):
    kind = "PaymentRequired"


# --- Payment -----------------------------------------------------------------


class IllegalPaymentTransitionError(DomainException):
    kind = "IllegalPaymentTransition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move payment from {current} to {target}")
        self.current = current
        self.target = target


class PaymentNotAuthorizedError(DomainException):
    """Capture requested on an order without a live pre-authorization."""

    kind = "NotAuthorized"


class CaptureError(DomainException):
    """The gateway declined, failed or timed out. Safe to try again."""

    kind = "CaptureError"
    retryable = True


class RefundError(DomainException):
    kind = "RefundError"
    retryable = True


class PaymentGatewayError(Exception):
    """Raised by payment gateway adapters on transport-level failures."""


class PaymentGatewayTimeout(PaymentGatewayError):
    """The gateway did not answer within the caller-supplied timeout."""


# --- Weight finalization -----------------------------------------------------


class NotApplicableError(DomainException):
    kind = "NotApplicable"


class AlreadyFinalizedError(DomainException):
    kind = "AlreadyFinalized"


class UnknownItemError(DomainException):
    kind = "UnknownItem"

    def __init__(self, item_id: int, order_number: str) -> None:
        super().__init__(
            f"Item #{item_id} is not a variable-weight item of order {order_number}"
        )
        self.item_id = item_id


class WeightOutOfRangeError(DomainException):
    kind = "WeightOutOfRange"

    def __init__(self, item_id: int, grams: int, min_grams: int, max_grams: int) -> None:
        if grams < min_grams:
            detail = f"is below minimum {min_grams}g"
        else:
            detail = f"is above maximum {max_grams}g"
        super().__init__(f"Item #{item_id} weight {grams}g {detail}")
        self.item_id = item_id
        self.grams = grams


class IncompleteWeightsError(DomainException):
    kind = "IncompleteWeights"

    def __init__(self, missing_item_ids: list[int]) -> None:
        ids = ", ".join(f"#{i}" for i in missing_item_ids)
        super().__init__(f"Missing actual weight for item(s) {ids}")
        self.missing_item_ids = missing_item_ids
