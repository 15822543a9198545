"""
Cas d'usage 'payments': orchestre stockage, panier, URLs de retour et Stripe.

- create_checkout: panier -> commande pending + lignes -> session Stripe -> URL
- handle_event: notification Stripe vérifiée -> commande -> règlement atomique (une seule fois)
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from boutique import config
from boutique.orders import OrderNotFoundError, OrderStore, OrderStoreError, get_order_store

from . import cart as cart_logic
from . import stripe_client
from .errors import ConfigurationError, EmptyCartError, NoPurchasableItemsError, SettlementError
from .schemas import CheckoutRequest
from .urls import UrlContext, resolve_redirect_urls

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
ORDER_CURRENCY = "EUR"


@dataclass
class CheckoutResult:
    url: str
    order_id: str
    session_id: str


def _order_store() -> OrderStore:
    try:
        return get_order_store()
    except (RuntimeError, ValueError) as e:
        raise ConfigurationError(str(e)) from e

# module boutique.payments.service
def create_checkout(request: CheckoutRequest, referer: Optional[str] = None) -> CheckoutResult:
    """
    Prépare la commande et la session Stripe à partir d'un panier.
    Étapes:
      1) configuration Stripe + stockage (échec immédiat, aucune écriture)
      2) panier vide -> EmptyCartError
      3) URLs de retour (explicites > referer > SITE_URL > origine de repli)
      4) lecture groupée des produits par slug; slugs inconnus ignorés
      5) rien d'achetable -> NoPurchasableItemsError (aucune commande créée)
      6) commande pending + lignes; un échec ici interrompt avant tout appel Stripe
      7) session Stripe avec metadata.order_id
      8) session_id mémorisé sur la commande (best-effort)
    """
    stripe_client.require_stripe()
    store = _order_store()

    if not request.items:
        raise EmptyCartError()

    # Transmis tel quel à Stripe (en-GB, pt-BR...); urls et cart comparent en minuscules
    locale = request.locale or config.DEFAULT_LOCALE
    urls = resolve_redirect_urls(UrlContext(
        referer=referer,
        locale=locale,
        success_url=request.success_url,
        cancel_url=request.cancel_url,
        site_url=config.SITE_URL,
        fallback_origin=config.FALLBACK_SITE_ORIGIN,
    ))

    quantities = cart_logic.aggregate_quantities(request.items)
    products = store.fetch_products_by_slugs(list(quantities.keys()))
    products_by_slug = {str(p.get("slug")): p for p in products}

    line_items, order_items, total_cents = cart_logic.build_lines(
        products_by_slug,
        quantities,
        currency=config.CHECKOUT_CURRENCY,
        locale=locale,
    )
    if not line_items:
        logger.info("payments.checkout no purchasable items slugs=%s", list(quantities.keys()))
        raise NoPurchasableItemsError()

    order = store.insert_pending_order(amount_cents=total_cents, currency=ORDER_CURRENCY)
    order_id = str(order["id"])
    store.insert_order_items(order_id, order_items)

    session = stripe_client.create_session(
        line_items=line_items,
        locale=locale,
        success_url=urls.success_url,
        cancel_url=urls.cancel_url,
        metadata={"order_id": order_id},
    )
    session_id = str(session.get("id") or "")

    try:
        store.set_order_session(order_id, session_id)
    except Exception:
        # Sans session_id, seul metadata.order_id côté Stripe relie encore la commande
        logger.exception("payments.checkout session_id not recorded order_id=%s session_id=%s", order_id, session_id)

    logger.info(
        "payments.checkout order_id=%s session_id=%s amount_cents=%s lines=%s",
        order_id, session_id, total_cents, len(order_items),
    )
    return CheckoutResult(url=str(session.get("url") or ""), order_id=order_id, session_id=session_id)

def resolve_order_id(session: Dict[str, Any], store: OrderStore) -> Optional[str]:
    """
    Retrouve la commande d'une session Stripe.
    - metadata.order_id (posé à la création de la session) fait foi
    - sinon recherche par session_id mémorisé
    """
    metadata = session.get("metadata") or {}
    order_id = metadata.get("order_id") if isinstance(metadata, dict) else None
    if order_id:
        return str(order_id)
    try:
        return store.find_order_id_by_session(str(session.get("id") or ""))
    except OrderStoreError as e:
        raise SettlementError("lookup by session_id failed") from e

def handle_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Traite un événement Stripe déjà vérifié.
    - Seul checkout.session.completed déclenche le règlement; les autres types sont acquittés.
    - Commande introuvable: log + acquittement (évite des relivraisons sans fin).
    - Échec du règlement: SettlementError -> 500, Stripe relivrera.
    """
    event_type = (event or {}).get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.debug("payments.webhook ignored type=%s id=%s", event_type, (event or {}).get("id"))
        return {"received": True}

    session = ((event.get("data") or {}).get("object")) or {}
    store = _order_store()
    order_id = resolve_order_id(session, store)
    if not order_id:
        logger.warning("payments.webhook no order for session_id=%s event_id=%s", session.get("id"), event.get("id"))
        return {"received": True}

    try:
        result = store.complete_order_and_adjust_stock(order_id)
    except OrderNotFoundError:
        logger.warning("payments.webhook unknown order_id=%s session_id=%s", order_id, session.get("id"))
        return {"received": True}
    except OrderStoreError as e:
        logger.error("payments.webhook settlement failed order_id=%s: %s", order_id, e)
        raise SettlementError("rpc failed") from e

    logger.info("payments.webhook settled order_id=%s result=%s", order_id, result)
    return {"received": True}
