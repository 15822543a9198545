import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from pydantic import ValidationError

from boutique.utils.cors import with_cors
from boutique.utils.rate_limit import optional_rate_limit

from boutique.payments import service as payments_service
from boutique.payments import stripe_client
from boutique.payments.errors import PaymentsError
from boutique.payments.schemas import CheckoutRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

CHECKOUT_PATH = "/api/v1/payments/checkout"

# module boutique.payments.views
@router.options("/checkout", include_in_schema=False)
async def checkout_preflight():
    """Préflight CORS: 204 sans corps."""
    return with_cors(Response(status_code=204))

@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(request: Request):
    """
    Crée une commande pending et une session Stripe Checkout pour le panier.
    - Entrée JSON: { "items": [{ "slug": "...", "qty": 2 }], "locale"?, "success_url"?, "cancel_url"? }
    - Body illisible: traité comme {} (donc "No items")
    - Réponses: 200 {url}; 400 {error} (panier vide, rien d'achetable, autre échec); 500 {error} si config absente
    - Toutes les réponses portent les en-têtes CORS
    """
    try:
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        try:
            payload = CheckoutRequest.model_validate(body)
        except ValidationError:
            payload = CheckoutRequest()

        # Appels Stripe/Supabase bloquants: hors de la boucle d'événements
        result = await run_in_threadpool(
            payments_service.create_checkout, payload, referer=request.headers.get("referer")
        )
        return with_cors(JSONResponse({"url": result.url}, status_code=200))
    except PaymentsError as e:
        if e.status_code >= 500:
            logger.error("payments.checkout %s", e.message)
        return with_cors(JSONResponse(e.to_payload(), status_code=e.status_code))
    except Exception as e:
        logger.exception("Erreur create_checkout_session")
        return with_cors(JSONResponse({"error": str(e) or e.__class__.__name__}, status_code=400))

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe: règle la commande sur checkout.session.completed.
    - Signature: vérifiée sur le body brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
    - Réponses: 200 {received: true}; 400 {error, detail} si signature invalide;
      500 {error} si le règlement échoue (Stripe relivrera)
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature") or ""

    try:
        event = stripe_client.parse_event(payload, sig_header)
    except PaymentsError as e:
        logger.error("payments.webhook rejected: %s %s", e.message, e.detail or "")
        return JSONResponse(e.to_payload(), status_code=e.status_code)

    try:
        result = await run_in_threadpool(payments_service.handle_event, event)
        return JSONResponse(result, status_code=200)
    except PaymentsError as e:
        return JSONResponse({"error": e.message}, status_code=e.status_code)
    except Exception:
        logger.exception("Erreur webhook_stripe event_id=%s", event.get("id"))
        return JSONResponse({"error": "processing failed"}, status_code=500)
