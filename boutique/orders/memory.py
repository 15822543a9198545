from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Dict, List, Optional, Sequence

from boutique.orders.base import OrderNotFoundError, OrderStatus


class InMemoryOrderStore:
    """
    Stockage en mémoire (dev local, tests).

    Même contrat que la RPC Postgres: un seul verrou protège le passage
    pending -> paid et le décrément du stock, donc deux règlements concurrents
    de la même commande ne décrémentent qu'une fois.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.products: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.order_items: List[Dict[str, Any]] = []

    def seed_products(self, products: Sequence[Dict[str, Any]]) -> None:
        with self._lock:
            for p in products:
                row = {"is_active": True, "quantity": 0, **p}
                row.setdefault("id", str(uuid.uuid4()))
                self.products[str(row["slug"])] = row

    def fetch_products_by_slugs(self, slugs: Sequence[str]) -> List[Dict[str, Any]]:
        with self._lock:
            wanted = {str(s) for s in slugs}
            return [copy.deepcopy(p) for slug, p in self.products.items() if slug in wanted]

    def list_available_products(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(p)
                for p in self.products.values()
                if p.get("is_active") and int(p.get("quantity") or 0) > 0
            ]

    def insert_pending_order(self, *, amount_cents: int, currency: str) -> Dict[str, Any]:
        order = {
            "id": str(uuid.uuid4()),
            "status": OrderStatus.PENDING.value,
            "currency": currency,
            "amount_cents": amount_cents,
            "session_id": None,
        }
        with self._lock:
            self.orders[order["id"]] = order
        return dict(order)

    def insert_order_items(self, order_id: str, items: List[Dict[str, Any]]) -> None:
        with self._lock:
            if order_id not in self.orders:
                raise OrderNotFoundError(order_id)
            self.order_items.extend({**item, "order_id": order_id} for item in items)

    def set_order_session(self, order_id: str, session_id: str) -> None:
        with self._lock:
            order = self.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            order["session_id"] = session_id

    def find_order_id_by_session(self, session_id: str) -> Optional[str]:
        if not session_id:
            return None
        with self._lock:
            for order in self.orders.values():
                if order.get("session_id") == session_id:
                    return order["id"]
        return None

    def complete_order_and_adjust_stock(self, order_id: str) -> Dict[str, Any]:
        with self._lock:
            order = self.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order["status"] != OrderStatus.PENDING.value:
                return {"order_id": order_id, "status": order["status"], "adjusted": False}

            by_id = {p["id"]: p for p in self.products.values()}
            for item in self.order_items:
                if item["order_id"] != order_id:
                    continue
                product = by_id.get(item.get("product_id"))
                if product is None:
                    continue
                product["quantity"] = max(int(product.get("quantity") or 0) - int(item["qty"]), 0)
            order["status"] = OrderStatus.PAID.value
            return {"order_id": order_id, "status": order["status"], "adjusted": True}

    # Lecture (tests / debug)
    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            order = self.orders.get(order_id)
            return dict(order) if order else None

    def get_items(self, order_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(i) for i in self.order_items if i["order_id"] == order_id]

    def stock_of(self, slug: str) -> int:
        with self._lock:
            return int(self.products[slug].get("quantity") or 0)

    def ping(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "backend": "memory",
                "connect_ok": True,
                "tables": {
                    "products": {"ok": True, "rows": len(self.products)},
                    "orders": {"ok": True, "rows": len(self.orders)},
                    "order_items": {"ok": True, "rows": len(self.order_items)},
                },
            }
