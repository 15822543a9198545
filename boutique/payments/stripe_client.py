"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import json
from typing import Any, Dict, List, Optional

import stripe

from boutique import config
from .errors import ConfigurationError, WebhookSignatureError

# module boutique.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key / api_version depuis la config.
    - Lève ConfigurationError si STRIPE_SECRET_KEY est absent (avant toute écriture en base).
    """
    if not config.STRIPE_SECRET_KEY:
        raise ConfigurationError("STRIPE_SECRET_KEY manquant")
    stripe.api_key = config.STRIPE_SECRET_KEY
    if config.STRIPE_API_VERSION:
        stripe.api_version = config.STRIPE_API_VERSION
    return stripe

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    locale: str,
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (mode payment).
    - metadata: {"order_id": "..."}; seul lien lu ensuite par le webhook
    Retour: {"id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
    """
    require_stripe()
    session = stripe.checkout.Session.create(
        mode="payment",
        locale=locale,
        success_url=success_url,
        cancel_url=cancel_url,
        line_items=line_items,
        metadata=metadata,
    )
    return {"id": session.id, "url": session.url}

def parse_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """
    Valide un événement Stripe signé puis le décode.
    - La signature porte sur les octets exacts du body: ne jamais re-sérialiser avant vérification.
    - Lève ConfigurationError sans STRIPE_WEBHOOK_SECRET (pas de mode non vérifié).
    - Lève WebhookSignatureError si l'en-tête est absent/faux ou si le JSON est illisible.
    """
    if not config.STRIPE_WEBHOOK_SECRET:
        raise ConfigurationError("STRIPE_WEBHOOK_SECRET manquant")
    if not sig_header:
        raise WebhookSignatureError("Missing Stripe-Signature header")
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise WebhookSignatureError(f"Invalid payload encoding: {e}") from e
    try:
        stripe.WebhookSignature.verify_header(
            text,
            sig_header,
            config.STRIPE_WEBHOOK_SECRET,
            stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(str(e)) from e
    try:
        event = json.loads(text)
    except ValueError as e:
        raise WebhookSignatureError(f"Invalid payload: {e}") from e
    if not isinstance(event, dict):
        raise WebhookSignatureError("Invalid payload: event must be an object")
    return event
