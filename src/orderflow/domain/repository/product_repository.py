"""Abstract repository for ProductSku aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.product_sku import ProductSku


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, sku_id: str) -> ProductSku | None:
        """Return a SKU by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[ProductSku]:
        """Return every SKU in the catalog."""

    @abstractmethod
    def save(self, sku: ProductSku) -> None:
        """Persist a new or updated SKU."""
