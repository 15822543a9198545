"""
Contrat du stockage des commandes (catalogue en lecture, commandes, lignes, règlement atomique).
Les fonctions checkout/webhook ne dépendent que de ce contrat, jamais d'une base concrète.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderStoreError(Exception):
    """Échec d'accès au stockage (lecture catalogue, écriture commande, RPC)."""


class OrderNotFoundError(OrderStoreError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Commande introuvable: {order_id}")
        self.order_id = order_id


class OrderStore(Protocol):
    def fetch_products_by_slugs(self, slugs: Sequence[str]) -> List[Dict[str, Any]]:
        ...

    def list_available_products(self) -> List[Dict[str, Any]]:
        ...

    def insert_pending_order(self, *, amount_cents: int, currency: str) -> Dict[str, Any]:
        ...

    def insert_order_items(self, order_id: str, items: List[Dict[str, Any]]) -> None:
        ...

    def set_order_session(self, order_id: str, session_id: str) -> None:
        ...

    def find_order_id_by_session(self, session_id: str) -> Optional[str]:
        ...

    def complete_order_and_adjust_stock(self, order_id: str) -> Dict[str, Any]:
        """
        Passe la commande de pending à paid et décrémente le stock, en une seule opération atomique.
        - Idempotent: une commande déjà payée n'est pas re-décrémentée (adjusted=False).
        - Lève OrderNotFoundError si la commande n'existe pas.
        """
        ...

    def ping(self) -> Dict[str, Any]:
        ...
