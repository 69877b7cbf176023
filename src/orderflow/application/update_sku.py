"""Application service: Update SKU use case."""

from __future__ import annotations

from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.product_sku import ProductSku
from orderflow.domain.model.value_objects import Money
from orderflow.domain.repository.product_repository import ProductRepository


class UpdateSkuHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        sku_id: str,
        new_price: str | None = None,
        deactivate: bool = False,
    ) -> ProductSku:
        """Change a SKU's price and/or withdraw it from sale.

        This does NOT affect any existing orders; they captured a
        price snapshot at creation time.
        """
        if new_price is None and not deactivate:
            raise ValidationError("Nothing to update")

        sku = self._product_repo.get_by_id(sku_id)
        if sku is None:
            raise EntityNotFoundError(f"SKU with ID '{sku_id}' not found")

        if new_price is not None:
            sku.update_price(Money.of(new_price, sku.price.currency))
        if deactivate:
            sku.deactivate()
        self._product_repo.save(sku)
        return sku
