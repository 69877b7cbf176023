"""ProductSku aggregate.

A SKU is the purchasable variant of a catalog product.  SKUs live
independently of orders: prices change and SKUs are withdrawn, but orders
keep the price snapshot taken at checkout.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.value_objects import Money


@dataclass
class ProductSku:
    """A sellable SKU.

    For variable-weight SKUs (butchery, fish counter) ``price`` is per
    kilogram; for every other SKU it is per unit.
    """

    id: str
    product_name: str
    sku_name: str
    price: Money
    is_variable_weight: bool = False
    is_active: bool = True

    def update_price(self, new_price: Money) -> None:
        """Change the SKU price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        if new_price.minor_units <= 0:
            raise ValidationError("SKU price must be greater than zero")
        if new_price.currency != self.price.currency:
            raise ValidationError(
                f"Cannot change SKU currency from {self.price.currency} "
                f"to {new_price.currency}"
            )
        self.price = new_price

    def deactivate(self) -> None:
        self.is_active = False
