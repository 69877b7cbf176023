"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from orderflow.domain.exceptions import ValidationError

# Number of decimal places of the minor unit, per ISO 4217.
MINOR_UNIT_EXPONENTS = {"XOF": 0, "XAF": 0, "USD": 2, "EUR": 2, "GBP": 2}
DEFAULT_CURRENCY = "XOF"


@dataclass(frozen=True)
class Money:
    """Monetary amount held as an integer count of minor units.

    Any operation that can produce a fraction of a minor unit takes an
    explicit rounding mode and rounds exactly once, in Decimal arithmetic.
    """

    minor_units: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise ValidationError(
                f"Money must be an integer number of minor units, "
                f"got {type(self.minor_units).__name__}"
            )
        if self.minor_units < 0:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.minor_units}"
            )
        if self.currency not in MINOR_UNIT_EXPONENTS:
            raise ValidationError(f"Unsupported currency: {self.currency!r}")

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.minor_units + other.minor_units, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        result = self.minor_units - other.minor_units
        if result < 0:
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result, self.currency)

    def __mul__(self, factor: int) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.minor_units * factor, self.currency)

    def multiply_by_ratio(
        self,
        numerator: int,
        denominator: int,
        rounding: str = ROUND_HALF_UP,
    ) -> Money:
        """Return ``self * numerator / denominator`` rounded to a minor unit."""
        if denominator <= 0:
            raise ValidationError("Ratio denominator must be positive")
        if numerator < 0:
            raise ValidationError("Ratio numerator cannot be negative")
        with localcontext() as ctx:
            ctx.prec = 50
            exact = Decimal(self.minor_units) * Decimal(numerator) / Decimal(denominator)
            rounded = exact.quantize(Decimal(1), rounding=rounding)
        return Money(int(rounded), self.currency)

    def signed_difference(self, other: Money) -> int:
        """``self - other`` in minor units; may be negative."""
        self._assert_same_currency(other)
        return self.minor_units - other.minor_units

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.minor_units < other.minor_units

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.minor_units <= other.minor_units

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.minor_units > other.minor_units

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.minor_units >= other.minor_units

    # --- Display --------------------------------------------------------------

    @property
    def amount(self) -> Decimal:
        """The amount in major units (e.g. dollars)."""
        exponent = MINOR_UNIT_EXPONENTS[self.currency]
        return Decimal(self.minor_units).scaleb(-exponent)

    def __str__(self) -> str:
        exponent = MINOR_UNIT_EXPONENTS[self.currency]
        return f"{self.amount:,.{exponent}f} {self.currency}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(0, currency)

    @staticmethod
    def of(amount: str | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Parse an amount in major units, e.g. ``Money.of("15.00", "USD")``.

        Amounts finer than the currency's minor unit are rejected rather
        than rounded.
        """
        if currency not in MINOR_UNIT_EXPONENTS:
            raise ValidationError(f"Unsupported currency: {currency!r}")
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        if not value.is_finite():
            raise ValidationError(f"Invalid money amount: {amount!r}")
        minor = value.scaleb(MINOR_UNIT_EXPONENTS[currency])
        if minor != minor.to_integral_value():
            raise ValidationError(
                f"Amount {amount!r} has more precision than {currency} allows"
            )
        return Money(int(minor), currency)


@dataclass(frozen=True)
class Weight:
    """A non-negative weight in whole grams."""

    grams: int

    def __post_init__(self) -> None:
        if isinstance(self.grams, bool) or not isinstance(self.grams, int):
            raise ValidationError(
                f"Weight must be an integer number of grams, got {type(self.grams).__name__}"
            )
        if self.grams < 0:
            raise ValidationError(f"Weight cannot be negative, got {self.grams}g")

    def __str__(self) -> str:
        if self.grams >= 1000:
            return f"{Decimal(self.grams) / 1000:.3f} kg"
        return f"{self.grams} g"


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
