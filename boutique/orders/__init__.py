"""
Module 'orders': contrat de stockage des commandes et ses implémentations (Supabase, mémoire).
"""

from .base import OrderStatus, OrderStore, OrderStoreError, OrderNotFoundError
from .factory import get_order_store, set_order_store, reset_order_store

__all__ = [
    "OrderStatus",
    "OrderStore",
    "OrderStoreError",
    "OrderNotFoundError",
    "get_order_store",
    "set_order_store",
    "reset_order_store",
]
