"""
Module 'payments' (feature-first): point d'entrée public.
Réunit logique panier, URLs de retour, client Stripe et cas d'usage checkout/webhook.
"""

from .cart import CartSnapshot, aggregate_quantities, build_lines, coerce_qty, to_cents
from .errors import (
    PaymentsError,
    ConfigurationError,
    EmptyCartError,
    NoPurchasableItemsError,
    WebhookSignatureError,
    SettlementError,
)
from .schemas import CartLine, CheckoutRequest
from .urls import RedirectUrls, UrlContext, resolve_redirect_urls
from .stripe_client import require_stripe, create_session, parse_event
from .service import CheckoutResult, create_checkout, handle_event, resolve_order_id

__all__ = [
    # cart
    "CartSnapshot",
    "aggregate_quantities",
    "build_lines",
    "coerce_qty",
    "to_cents",
    # errors
    "PaymentsError",
    "ConfigurationError",
    "EmptyCartError",
    "NoPurchasableItemsError",
    "WebhookSignatureError",
    "SettlementError",
    # schemas
    "CartLine",
    "CheckoutRequest",
    # urls
    "RedirectUrls",
    "UrlContext",
    "resolve_redirect_urls",
    # stripe
    "require_stripe",
    "create_session",
    "parse_event",
    # services
    "CheckoutResult",
    "create_checkout",
    "handle_event",
    "resolve_order_id",
]
