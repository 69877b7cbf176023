"""Abstract repository for Order aggregate.

``save`` is the persistence contract the engines rely on: the order and
all of its items are written as one unit, the write is rejected when the
order's ``version`` no longer matches the stored one, and an order whose
total disagrees with its line totals is never written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from orderflow.domain.exceptions import EntityNotFoundError
from orderflow.domain.model.order import NoteEntry, Order


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order, oldest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order atomically.

        Assigns ``order.id`` to new orders and bumps ``order.version``.
        Raises ConcurrentModificationError on a stale version and
        ValidationError when the order breaks its invariants.
        """

    def load(self, order_id: int) -> Order:
        order = self.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def append_note(self, order: Order, text: str, author: str, at: datetime) -> NoteEntry:
        working = order.working_copy()
        entry = working.add_note(text, author=author, at=at)
        self.save(working)
        order.adopt(working)
        return entry
