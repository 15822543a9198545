"""
Catalogue public: produits actifs en stock, normalisés et triés pour l'affichage (fr/en).
"""
import logging
import math
from typing import Any, Dict, List, Optional
from boutique.orders import OrderStore

logger = logging.getLogger(__name__)

def _lang(lang: str) -> str:
    return "en" if (lang or "").lower().startswith("en") else "fr"

def _localized(row: Dict[str, Any], lang: str) -> str:
    if lang == "en" and row.get("name_en"):
        return str(row["name_en"])
    return str(row.get("name_fr") or "")

def _price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if math.isfinite(price) else None

def normalize_product(row: Dict[str, Any], lang: str) -> Dict[str, Any]:
    category = row.get("categories") or {}
    return {
        "slug": row.get("slug"),
        "name": _localized(row, lang),
        "price_eur": _price(row.get("price_eur")),
        "unit": row.get("unit"),
        "quantity": int(row.get("quantity") or 0),
        "bio": bool(row.get("bio")),
        "category": _localized(category, lang) or None,
    }

def list_available(store: OrderStore, lang: str = "fr") -> List[Dict[str, Any]]:
    """
    Produits is_active et quantity > 0, triés par categories.sort_order puis par nom localisé.
    Une ligne au prix illisible est écartée (loggée) sans faire échouer tout le catalogue.
    """
    lang = _lang(lang)
    rows = []
    for r in store.list_available_products():
        if r.get("is_active") is False or int(r.get("quantity") or 0) <= 0:
            continue
        if _price(r.get("price_eur")) is None:
            logger.warning("catalog.list_available skipped slug=%s price_eur=%r", r.get("slug"), r.get("price_eur"))
            continue
        rows.append(r)
    rows.sort(key=lambda r: (
        int(((r.get("categories") or {}).get("sort_order")) or 0),
        _localized(r, lang).casefold(),
    ))
    return [normalize_product(r, lang) for r in rows]
