"""JSON-file-backed implementation of OrderRepository.

The whole file is rewritten on every save through a temporary file and
``os.replace``, so an order and its items are always written together or
not at all.  Read-compare-write runs under a per-file lock; the stored
``version`` provides the optimistic concurrency check.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

from orderflow.domain.exceptions import ConcurrentModificationError
from orderflow.domain.model.order import (
    CustomerSnapshot,
    NoteEntry,
    Order,
    OrderItem,
    StatusTransition,
)
from orderflow.domain.model.status import (
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from orderflow.domain.model.value_objects import Money, Weight
from orderflow.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)

_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _locks_guard:
        return _locks.setdefault(path.resolve(), threading.RLock())


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = _lock_for(file_path)
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        orders = self._load_raw()
        if not orders:
            return 1
        return max(o["id"] for o in orders) + 1

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._load_raw():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, order: Order) -> None:
        order.assert_consistent()

        with self._lock:
            orders = self._load_raw()

            assigned_id = order.id is None
            if assigned_id:
                order.id = max((o["id"] for o in orders), default=0) + 1

            # Upsert: replace if exists, otherwise append
            index = next((i for i, raw in enumerate(orders) if raw["id"] == order.id), None)
            if index is not None:
                stored_version = orders[index].get("version", 0)
                if stored_version != order.version:
                    raise ConcurrentModificationError(
                        f"Order {order.order_number} was modified by someone else "
                        f"(version {stored_version}, yours {order.version}); "
                        f"reload and try again"
                    )

            order.version += 1
            try:
                if index is not None:
                    orders[index] = self._to_raw(order)
                else:
                    orders.append(self._to_raw(order))
                self._persist_raw(orders)
            except Exception:
                order.version -= 1
                if assigned_id:
                    order.id = None
                raise

        logger.debug("Saved order %s (version %d)", order.order_number, order.version)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "version": order.version,
            "order_number": order.order_number,
            "customer": {
                "name": order.customer.name,
                "phone": order.customer.phone,
                "email": order.customer.email,
            },
            "delivery_method": order.delivery_method.value,
            "delivery_address": order.delivery_address,
            "payment_method": order.payment_method.value,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "payment_reference": order.payment_reference,
            "currency": order.currency,
            "total_amount": order.total_amount.minor_units,
            "requires_weight_confirmation": order.requires_weight_confirmation,
            "weight_confirmed_at": _dt_out(order.weight_confirmed_at),
            "completed_at": _dt_out(order.completed_at),
            "created_at": order.created_at.isoformat(),
            "items": [
                {
                    "id": item.id,
                    "product_sku_id": item.product_sku_id,
                    "product_name": item.product_name,
                    "sku_name": item.sku_name,
                    "unit_price": item.unit_price.minor_units,
                    "ordered_quantity_or_weight": item.ordered_quantity_or_weight,
                    "actual_weight": item.actual_weight.grams if item.actual_weight else None,
                    "line_total": item.line_total.minor_units,
                    "is_variable_weight": item.is_variable_weight,
                }
                for item in order.items
            ],
            "notes": [
                {"at": n.at.isoformat(), "author": n.author, "text": n.text}
                for n in order.notes
            ],
            "history": [
                {
                    "from": t.from_status.value,
                    "to": t.to_status.value,
                    "at": t.at.isoformat(),
                    "actor_id": t.actor_id,
                    "note": t.note,
                }
                for t in order.history
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]
        items = [
            OrderItem(
                id=i["id"],
                product_sku_id=i["product_sku_id"],
                product_name=i["product_name"],
                sku_name=i["sku_name"],
                unit_price=Money(i["unit_price"], currency),
                ordered_quantity_or_weight=i["ordered_quantity_or_weight"],
                line_total=Money(i["line_total"], currency),
                is_variable_weight=i["is_variable_weight"],
                actual_weight=(
                    Weight(i["actual_weight"]) if i["actual_weight"] is not None else None
                ),
            )
            for i in raw["items"]
        ]
        customer = raw["customer"]
        return Order(
            id=raw["id"],
            version=raw.get("version", 0),
            order_number=raw["order_number"],
            customer=CustomerSnapshot(
                name=customer["name"],
                phone=customer["phone"],
                email=customer.get("email"),
            ),
            delivery_method=DeliveryMethod(raw["delivery_method"]),
            delivery_address=raw.get("delivery_address"),
            payment_method=PaymentMethod(raw["payment_method"]),
            items=items,
            total_amount=Money(raw["total_amount"], currency),
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            payment_reference=raw.get("payment_reference"),
            requires_weight_confirmation=raw["requires_weight_confirmation"],
            weight_confirmed_at=_dt_in(raw.get("weight_confirmed_at")),
            completed_at=_dt_in(raw.get("completed_at")),
            created_at=datetime.fromisoformat(raw["created_at"]),
            notes=[
                NoteEntry(at=datetime.fromisoformat(n["at"]), author=n["author"], text=n["text"])
                for n in raw.get("notes", [])
            ],
            history=[
                StatusTransition(
                    from_status=OrderStatus(t["from"]),
                    to_status=OrderStatus(t["to"]),
                    at=datetime.fromisoformat(t["at"]),
                    actor_id=t["actor_id"],
                    note=t.get("note"),
                )
                for t in raw.get("history", [])
            ],
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        with self._lock:
            return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, orders: list[dict]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=f".{self._file_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(orders, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")


def _dt_out(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _dt_in(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
