"""Business policy constants, grouped so the composition root can configure them."""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.value_objects import Money


@dataclass(frozen=True)
class WeightPolicy:
    """Bounds for weighed items and the unit their price is quoted in.

    Prices of variable-weight SKUs are per ``reference_unit_grams``
    (1 kg by default); bounds are inclusive.
    """

    min_grams: int = 100
    max_grams: int = 50_000
    reference_unit_grams: int = 1000
    default_estimate_grams: int = 1000

    def __post_init__(self) -> None:
        if self.min_grams < 0 or self.max_grams < self.min_grams:
            raise ValidationError(
                f"Invalid weight bounds [{self.min_grams}, {self.max_grams}]"
            )
        if self.reference_unit_grams <= 0:
            raise ValidationError("Reference weight unit must be positive")
        if not self.accepts(self.default_estimate_grams):
            raise ValidationError(
                f"Default estimate {self.default_estimate_grams}g is outside "
                f"[{self.min_grams}, {self.max_grams}]"
            )

    def accepts(self, grams: int) -> bool:
        return self.min_grams <= grams <= self.max_grams


@dataclass(frozen=True)
class CheckoutPolicy:
    min_delivery_amount: Money = Money(3000)
    max_line_items: int = 50


@dataclass(frozen=True)
class LifecyclePolicy:
    # Completing an order requires a settled payment.
    require_payment_before_completion: bool = True
