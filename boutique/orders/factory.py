from __future__ import annotations

import threading
from typing import Optional

from boutique import config
from boutique.orders.base import OrderStore

_store: Optional[OrderStore] = None
_store_lock = threading.Lock()


def _build_store(mode: str) -> OrderStore:
    if mode == "memory":
        from boutique.orders.memory import InMemoryOrderStore

        return InMemoryOrderStore()

    if mode == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_KEY:
            raise RuntimeError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY manquant")
        from boutique.orders.repository import SupabaseOrderStore

        return SupabaseOrderStore()

    raise ValueError(f"Unknown ORDER_STORE_BACKEND={mode!r}. Expected supabase or memory.")


def get_order_store() -> OrderStore:
    """Retourne le stockage configuré (ORDER_STORE_BACKEND), instancié une seule fois."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = _build_store(config.ORDER_STORE_BACKEND)
    return _store


def set_order_store(store: OrderStore) -> None:
    global _store
    _store = store


def reset_order_store() -> None:
    global _store
    _store = None
