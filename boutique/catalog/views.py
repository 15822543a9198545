import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from boutique.catalog import service as catalog_service
from boutique.orders import OrderStoreError, get_order_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/catalog", tags=["Catalog API"])

@router.get("/products")
def list_products(lang: str = "fr") -> Dict[str, Any]:
    """Produits disponibles pour hydrater le catalogue et le panier du site statique."""
    try:
        products = catalog_service.list_available(get_order_store(), lang)
    except (OrderStoreError, RuntimeError, ValueError):
        logger.exception("Erreur list_products")
        raise HTTPException(status_code=500, detail="Erreur de lecture du catalogue")
    return {"products": products}
