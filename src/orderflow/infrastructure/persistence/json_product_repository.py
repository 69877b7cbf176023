"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

import json
from pathlib import Path

from orderflow.domain.model.product_sku import ProductSku
from orderflow.domain.model.value_objects import DEFAULT_CURRENCY, Money
from orderflow.domain.repository.product_repository import ProductRepository


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, sku_id: str) -> ProductSku | None:
        return self._load().get(sku_id)

    def list_all(self) -> list[ProductSku]:
        return list(self._load().values())

    def save(self, sku: ProductSku) -> None:
        skus = self._load()
        skus[sku.id] = sku
        self._persist(skus)

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, ProductSku]:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return {
            item["id"]: ProductSku(
                id=item["id"],
                product_name=item["product_name"],
                sku_name=item["sku_name"],
                price=Money(item["price"], item.get("currency", DEFAULT_CURRENCY)),
                is_variable_weight=item.get("is_variable_weight", False),
                is_active=item.get("is_active", True),
            )
            for item in raw
        }

    def _persist(self, skus: dict[str, ProductSku]) -> None:
        raw = [
            {
                "id": s.id,
                "product_name": s.product_name,
                "sku_name": s.sku_name,
                "price": s.price.minor_units,
                "currency": s.price.currency,
                "is_variable_weight": s.is_variable_weight,
                "is_active": s.is_active,
            }
            for s in skus.values()
        ]
        self._file_path.write_text(
            json.dumps(raw, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
