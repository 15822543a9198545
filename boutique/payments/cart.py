"""
Logique panier pure (pas de Stripe, pas de DB).
"""
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

# module boutique.payments.cart
def coerce_qty(value: Any) -> int:
    """
    Normalise une quantité reçue du front en entier >= 1.
    - 0, négatif, texte non numérique, None, NaN/inf -> 1 (jamais 0 ni négatif)
    - "3" -> 3, 2.7 -> 2
    """
    if value is None or isinstance(value, bool):
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if math.isnan(number) or math.isinf(number):
        return 1
    return max(1, int(number))

def aggregate_quantities(lines: Iterable[Any]) -> Dict[str, int]:
    """
    Agrège les lignes [{slug, qty}] en {slug: qty_total}, dans l'ordre de première apparition.
    - Accepte des CartLine (pydantic) ou des dicts.
    - Ignore les slugs vides.
    """
    quantities: Dict[str, int] = {}
    for line in lines or []:
        if isinstance(line, dict):
            slug, qty = line.get("slug"), line.get("qty", line.get("quantity"))
        else:
            slug, qty = getattr(line, "slug", None), getattr(line, "qty", None)
        slug = str(slug or "").strip()
        if not slug:
            continue
        quantities[slug] = quantities.get(slug, 0) + coerce_qty(qty)
    return quantities

def to_cents(price: Any) -> Optional[int]:
    """
    Convertit un prix décimal en euros vers des centimes entiers (arrondi au demi supérieur).
    Retourne None si le prix est absent ou illisible.
    """
    if price is None or isinstance(price, bool):
        return None
    try:
        amount = Decimal(str(price))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def _display_name(product: Dict[str, Any], locale: str) -> str:
    if (locale or "").lower().startswith("en") and product.get("name_en"):
        return str(product["name_en"])
    return str(product.get("name_fr") or product.get("slug") or "Article")

def is_purchasable(product: Optional[Dict[str, Any]]) -> bool:
    if not product:
        return False
    if product.get("is_active") is False:
        return False
    cents = to_cents(product.get("price_eur"))
    return cents is not None and cents > 0

def build_lines(
    products_by_slug: Dict[str, Dict[str, Any]],
    quantities: Dict[str, int],
    *,
    currency: str = "eur",
    locale: str = "fr",
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], int]:
    """
    Construit les line_items Stripe, les lignes order_items (snapshot nom/prix) et le total en centimes.
    - Les slugs introuvables, inactifs ou sans prix valide sont ignorés silencieusement
      (panier client périmé).
    - Retourne des listes vides si rien n'est achetable; c'est à l'appelant de lever l'erreur.
    """
    line_items: List[Dict[str, Any]] = []
    order_items: List[Dict[str, Any]] = []
    total_cents = 0

    for slug, qty in quantities.items():
        product = products_by_slug.get(slug)
        if not is_purchasable(product):
            continue
        unit_cents = to_cents(product.get("price_eur"))
        product_id = str(product.get("id"))

        line_items.append({
            "quantity": qty,
            "price_data": {
                "currency": currency,
                "unit_amount": unit_cents,
                "product_data": {
                    "name": _display_name(product, locale),
                    "metadata": {"slug": slug, "product_id": product_id},
                },
            },
        })
        order_items.append({
            "product_id": product_id,
            "slug": slug,
            "name_fr": str(product.get("name_fr") or slug),
            "qty": qty,
            "unit_price_cents": unit_cents,
        })
        total_cents += unit_cents * qty

    return line_items, order_items, total_cents


@dataclass
class CartEntry:
    name: str
    price: float
    qty: int
    stock: int


class CartSnapshot:
    """
    Panier côté client (slug -> {name, price, qty, stock}) représenté comme une valeur.
    Les quantités restent dans [1, stock]; to_checkout_items() produit le corps attendu par /checkout.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CartEntry] = {}

    @staticmethod
    def _clamp(qty: int, stock: int) -> int:
        return max(1, min(int(qty), int(stock))) if stock > 0 else 1

    def add(self, slug: str, *, name: str, price: float, qty: int, stock: int) -> CartEntry:
        entry = self._entries.get(slug)
        if entry:
            entry.qty = self._clamp(entry.qty + qty, stock)
            entry.price = price
            entry.stock = stock
        else:
            entry = CartEntry(name=name, price=price, qty=self._clamp(qty, stock), stock=stock)
            self._entries[slug] = entry
        return entry

    def change_qty(self, slug: str, delta: int) -> Optional[CartEntry]:
        entry = self._entries.get(slug)
        if entry is None:
            return None
        entry.qty = self._clamp(entry.qty + delta, entry.stock)
        return entry

    def remaining(self, slug: str, stock: int) -> int:
        """Quantité encore ajoutable compte tenu de ce qui est déjà au panier."""
        entry = self._entries.get(slug)
        return max(0, stock - (entry.qty if entry else 0))

    def remove(self, slug: str) -> None:
        self._entries.pop(slug, None)

    def clear(self) -> None:
        self._entries.clear()

    def get(self, slug: str) -> Optional[CartEntry]:
        return self._entries.get(slug)

    @property
    def count(self) -> int:
        # nombre de produits distincts (badge de la bulle panier)
        return len(self._entries)

    @property
    def total(self) -> Decimal:
        return sum(
            (Decimal(str(e.price or 0)) * e.qty for e in self._entries.values()),
            Decimal("0"),
        )

    def to_checkout_items(self) -> List[Dict[str, Any]]:
        return [{"slug": slug, "qty": max(1, e.qty)} for slug, e in self._entries.items()]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, slug: object) -> bool:
        return slug in self._entries
