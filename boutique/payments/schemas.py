from typing import Any, List, Optional
from pydantic import BaseModel, field_validator, model_validator

from .cart import coerce_qty


class CartLine(BaseModel):
    slug: str
    qty: int = 1

    @model_validator(mode="before")
    @classmethod
    def _accept_quantity_alias(cls, data: Any) -> Any:
        # Le front envoie {slug, qty}; on tolère {slug, quantity}
        if isinstance(data, dict):
            data = dict(data)
            raw = data.get("qty")
            if raw is None:
                raw = data.get("quantity")
            data["qty"] = coerce_qty(raw)
            data["slug"] = str(data.get("slug") if data.get("slug") is not None else "").strip()
        return data


class CheckoutRequest(BaseModel):
    """
    Corps accepté par POST /checkout:
    { "items": [{ "slug": "...", "qty": 2 }], "locale": "fr", "success_url": "...", "cancel_url": "..." }
    """
    items: List[CartLine] = []
    locale: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def _items_as_list(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return []
        # Entrée non-objet: ligne sans slug, ignorée ensuite (=> "No purchasable items", pas "No items")
        return [it if isinstance(it, dict) else {"slug": ""} for it in v]

    @field_validator("locale", "success_url", "cancel_url", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        if v is None:
            return None
        text = str(v).strip()
        return text or None
