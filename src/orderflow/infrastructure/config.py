"""Runtime settings, read from environment variables.

Every setting has a default suitable for local use; invalid values fail
at startup with a ValueError naming the variable.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from orderflow.domain.model.policies import CheckoutPolicy, LifecyclePolicy, WeightPolicy
from orderflow.domain.model.value_objects import DEFAULT_CURRENCY, MINOR_UNIT_EXPONENTS, Money

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path = _DEFAULT_DATA_DIR
    currency: str = DEFAULT_CURRENCY
    min_weight_grams: int = 100
    max_weight_grams: int = 50_000
    reference_weight_grams: int = 1000
    default_estimated_weight_grams: int = 1000
    min_delivery_amount: int = 3000  # minor units
    max_line_items: int = 50
    require_payment_before_completion: bool = True
    gateway_timeout: float = 30.0
    log_level: str = "INFO"
    cinetpay_api_key: str | None = None
    cinetpay_site_id: str | None = None
    cinetpay_api_url: str = "https://api-checkout.cinetpay.com/v2"

    def __post_init__(self) -> None:
        if self.min_weight_grams < 0:
            raise ValueError(
                f"ORDERFLOW_MIN_WEIGHT_GRAMS: must not be negative, got {self.min_weight_grams}"
            )
        if self.max_weight_grams < self.min_weight_grams:
            raise ValueError(
                f"ORDERFLOW_MAX_WEIGHT_GRAMS: {self.max_weight_grams} is below "
                f"ORDERFLOW_MIN_WEIGHT_GRAMS ({self.min_weight_grams})"
            )
        if self.reference_weight_grams <= 0:
            raise ValueError(
                f"ORDERFLOW_REFERENCE_WEIGHT_GRAMS: must be positive, "
                f"got {self.reference_weight_grams}"
            )
        if not self.min_weight_grams <= self.default_estimated_weight_grams <= self.max_weight_grams:
            raise ValueError(
                f"ORDERFLOW_DEFAULT_ESTIMATED_WEIGHT_GRAMS: "
                f"{self.default_estimated_weight_grams} is outside "
                f"[{self.min_weight_grams}, {self.max_weight_grams}]"
            )
        if self.min_delivery_amount < 0:
            raise ValueError(
                f"ORDERFLOW_MIN_DELIVERY_AMOUNT: must not be negative, "
                f"got {self.min_delivery_amount}"
            )
        if self.max_line_items <= 0:
            raise ValueError(
                f"ORDERFLOW_MAX_LINE_ITEMS: must be positive, got {self.max_line_items}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        defaults = cls()

        currency = env.get("ORDERFLOW_CURRENCY", defaults.currency).upper()
        if currency not in MINOR_UNIT_EXPONENTS:
            raise ValueError(f"ORDERFLOW_CURRENCY: unsupported currency {currency!r}")

        return cls(
            data_dir=Path(env.get("ORDERFLOW_DATA_DIR", str(defaults.data_dir))),
            currency=currency,
            min_weight_grams=_int(env, "ORDERFLOW_MIN_WEIGHT_GRAMS", defaults.min_weight_grams),
            max_weight_grams=_int(env, "ORDERFLOW_MAX_WEIGHT_GRAMS", defaults.max_weight_grams),
            reference_weight_grams=_int(
                env, "ORDERFLOW_REFERENCE_WEIGHT_GRAMS", defaults.reference_weight_grams
            ),
            default_estimated_weight_grams=_int(
                env,
                "ORDERFLOW_DEFAULT_ESTIMATED_WEIGHT_GRAMS",
                defaults.default_estimated_weight_grams,
            ),
            min_delivery_amount=_int(
                env, "ORDERFLOW_MIN_DELIVERY_AMOUNT", defaults.min_delivery_amount
            ),
            max_line_items=_int(env, "ORDERFLOW_MAX_LINE_ITEMS", defaults.max_line_items),
            require_payment_before_completion=_bool(
                env,
                "ORDERFLOW_REQUIRE_PAYMENT_BEFORE_COMPLETION",
                defaults.require_payment_before_completion,
            ),
            gateway_timeout=_float(env, "ORDERFLOW_GATEWAY_TIMEOUT", defaults.gateway_timeout),
            log_level=env.get("ORDERFLOW_LOG_LEVEL", defaults.log_level).upper(),
            cinetpay_api_key=env.get("CINETPAY_API_KEY") or None,
            cinetpay_site_id=env.get("CINETPAY_SITE_ID") or None,
            cinetpay_api_url=env.get("CINETPAY_API_URL", defaults.cinetpay_api_url),
        )

    # --- Domain policies ------------------------------------------------------

    def weight_policy(self) -> WeightPolicy:
        return WeightPolicy(
            min_grams=self.min_weight_grams,
            max_grams=self.max_weight_grams,
            reference_unit_grams=self.reference_weight_grams,
            default_estimate_grams=self.default_estimated_weight_grams,
        )

    def checkout_policy(self) -> CheckoutPolicy:
        return CheckoutPolicy(
            min_delivery_amount=Money(self.min_delivery_amount, self.currency),
            max_line_items=self.max_line_items,
        )

    def lifecycle_policy(self) -> LifecyclePolicy:
        return LifecyclePolicy(
            require_payment_before_completion=self.require_payment_before_completion,
        )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name}: expected an integer, got {raw!r}") from None


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name}: expected a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name}: must be positive, got {raw!r}")
    return value


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    if raw.lower() in _TRUE:
        return True
    if raw.lower() in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")
