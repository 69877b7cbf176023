"""Application service: Add SKU use case."""

from __future__ import annotations

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.product_sku import ProductSku
from orderflow.domain.model.value_objects import Money
from orderflow.domain.repository.product_repository import ProductRepository


class AddSkuHandler:

    def __init__(self, product_repo: ProductRepository, currency: str) -> None:
        self._product_repo = product_repo
        self._currency = currency

    def handle(
        self,
        product_name: str,
        sku_name: str,
        price: str,
        is_variable_weight: bool = False,
    ) -> ProductSku:
        """Add a new SKU to the catalog.

        For variable-weight SKUs *price* is the price per kilogram.
        """
        if not product_name or not product_name.strip():
            raise ValidationError("Product name is required")
        if not sku_name or not sku_name.strip():
            raise ValidationError("SKU name is required")

        money = Money.of(price, self._currency)
        if money.minor_units <= 0:
            raise ValidationError("SKU price must be greater than zero")

        # Auto-assign ID based on existing SKUs
        all_skus = self._product_repo.list_all()
        if all_skus:
            next_id = str(max(int(s.id) for s in all_skus) + 1)
        else:
            next_id = "1"

        sku = ProductSku(
            id=next_id,
            product_name=product_name.strip(),
            sku_name=sku_name.strip(),
            price=money,
            is_variable_weight=is_variable_weight,
        )
        self._product_repo.save(sku)
        return sku
