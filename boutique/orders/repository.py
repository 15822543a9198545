"""
Accès données Supabase pour les commandes (tables products, orders, order_items + RPC).
"""
from typing import Any, Dict, List, Optional, Sequence
import logging
from postgrest.exceptions import APIError

import boutique.infra.supabase_client as supabase_client
from boutique.orders.base import OrderNotFoundError, OrderStatus, OrderStoreError

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id,slug,name_fr,name_en,price_eur,unit,quantity,is_active"
SETTLEMENT_RPC = "complete_order_and_adjust_stock"
# Code Postgres levé par la RPC quand p_order_id n'existe pas (no_data_found)
ORDER_NOT_FOUND_CODE = "P0002"


# module boutique.orders.repository
class SupabaseOrderStore:
    """Implémentation service-role du stockage; chaque erreur est loggée puis remontée en OrderStoreError."""

    def __init__(self, client=None) -> None:
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = supabase_client.get_service_supabase()
        return self._client

    def fetch_products_by_slugs(self, slugs: Sequence[str]) -> List[Dict[str, Any]]:
        """Une seule requête `in` pour tous les slugs du panier."""
        if not slugs:
            return []
        try:
            res = (
                self.client
                .table("products")
                .select(PRODUCT_COLUMNS)
                .in_("slug", [str(s) for s in slugs])
                .execute()
            )
            return res.data or []
        except Exception as e:
            logger.exception("orders.repository.fetch_products_by_slugs failed slugs=%s", slugs)
            raise OrderStoreError(f"Lecture du catalogue impossible: {e}") from e

    def list_available_products(self) -> List[Dict[str, Any]]:
        try:
            res = (
                self.client
                .table("products")
                .select(f"{PRODUCT_COLUMNS},bio,categories:category_id(name_fr,name_en,sort_order)")
                .eq("is_active", True)
                .gt("quantity", 0)
                .execute()
            )
            return res.data or []
        except Exception as e:
            logger.exception("orders.repository.list_available_products failed")
            raise OrderStoreError(f"Lecture du catalogue impossible: {e}") from e

    def insert_pending_order(self, *, amount_cents: int, currency: str) -> Dict[str, Any]:
        try:
            res = (
                self.client
                .table("orders")
                .insert({
                    "status": OrderStatus.PENDING.value,
                    "currency": currency,
                    "amount_cents": amount_cents,
                })
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.insert_pending_order failed amount_cents=%s", amount_cents)
            raise OrderStoreError(f"Création de la commande impossible: {e}") from e
        rows = res.data or []
        if not rows or not rows[0].get("id"):
            raise OrderStoreError("Création de la commande impossible: aucune ligne retournée")
        return rows[0]

    def insert_order_items(self, order_id: str, items: List[Dict[str, Any]]) -> None:
        if not items:
            return
        rows = [{**item, "order_id": order_id} for item in items]
        try:
            self.client.table("order_items").insert(rows).execute()
        except Exception as e:
            logger.exception("orders.repository.insert_order_items failed order_id=%s", order_id)
            raise OrderStoreError(f"Enregistrement des lignes impossible: {e}") from e

    def set_order_session(self, order_id: str, session_id: str) -> None:
        try:
            (
                self.client
                .table("orders")
                .update({"session_id": session_id})
                .eq("id", order_id)
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.set_order_session failed order_id=%s", order_id)
            raise OrderStoreError(f"Mise à jour de session_id impossible: {e}") from e

    def find_order_id_by_session(self, session_id: str) -> Optional[str]:
        if not session_id:
            return None
        try:
            res = (
                self.client
                .table("orders")
                .select("id")
                .eq("session_id", session_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.find_order_id_by_session failed session_id=%s", session_id)
            raise OrderStoreError(f"Recherche par session_id impossible: {e}") from e
        rows = res.data or []
        return str(rows[0]["id"]) if rows else None

    def complete_order_and_adjust_stock(self, order_id: str) -> Dict[str, Any]:
        """
        Délègue à la RPC transactionnelle (voir supabase/migrations).
        La garde `status = 'pending'` est faite côté Postgres, dans la même transaction que le décrément.
        """
        try:
            res = self.client.rpc(SETTLEMENT_RPC, {"p_order_id": order_id}).execute()
        except APIError as e:
            if getattr(e, "code", None) == ORDER_NOT_FOUND_CODE:
                raise OrderNotFoundError(order_id) from e
            logger.exception("orders.repository.complete_order_and_adjust_stock failed order_id=%s", order_id)
            raise OrderStoreError(f"RPC {SETTLEMENT_RPC} en échec: {e}") from e
        except Exception as e:
            logger.exception("orders.repository.complete_order_and_adjust_stock failed order_id=%s", order_id)
            raise OrderStoreError(f"RPC {SETTLEMENT_RPC} en échec: {e}") from e
        data = res.data
        if isinstance(data, list):
            data = data[0] if data else {}
        return data or {"order_id": order_id}

    def ping(self) -> Dict[str, Any]:
        tables: Dict[str, Any] = {}
        for name in ("products", "orders", "order_items"):
            try:
                res = self.client.table(name).select("*").limit(1).execute()
                tables[name] = {"ok": True, "rows": len(res.data or [])}
            except Exception as e:
                tables[name] = {"ok": False, "error": str(e)}
        return {
            "backend": "supabase",
            "connect_ok": all(t["ok"] for t in tables.values()),
            "tables": tables,
        }
