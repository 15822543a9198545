import hashlib
import hmac
import json
import os
import time
from types import SimpleNamespace
from typing import Any, Dict, Generator, List

import pytest
import stripe

# Avant tout import de boutique: pas de Redis, stockage en mémoire
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("ORDER_STORE_BACKEND", "memory")

from fastapi.testclient import TestClient

from boutique import config
from boutique.app import app as fastapi_app
from boutique.orders import reset_order_store, set_order_store
from boutique.orders.memory import InMemoryOrderStore

WEBHOOK_SECRET = "whsec_test_secret"

CATALOG: List[Dict[str, Any]] = [
    {"id": "p-steak", "slug": "steak", "name_fr": "Steak", "name_en": "Steak", "price_eur": 12.50,
     "unit": "pièce", "quantity": 10, "is_active": True, "categories": {"name_fr": "Bœuf", "name_en": "Beef", "sort_order": 1}},
    {"id": "p-entrecote", "slug": "entrecote", "name_fr": "Entrecôte", "name_en": "Rib steak", "price_eur": "24.90",
     "unit": "kg", "quantity": 5, "is_active": True, "categories": {"name_fr": "Bœuf", "name_en": "Beef", "sort_order": 1}},
    {"id": "p-oeufs", "slug": "oeufs", "name_fr": "Œufs fermiers", "name_en": "Farm eggs", "price_eur": 3.2,
     "unit": "boîte de 6", "quantity": 30, "is_active": True, "bio": True,
     "categories": {"name_fr": "Ferme", "name_en": "Farm", "sort_order": 0}},
    {"id": "p-retire", "slug": "retire", "name_fr": "Produit retiré", "price_eur": 5,
     "unit": "pièce", "quantity": 3, "is_active": False},
    {"id": "p-epuise", "slug": "epuise", "name_fr": "Épuisé", "price_eur": 4,
     "unit": "pièce", "quantity": 0, "is_active": True},
]

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr(config, "SITE_URL", "")
    monkeypatch.setattr(config, "FALLBACK_SITE_ORIGIN", "https://le-bar-a-boeuf.github.io")
    monkeypatch.setattr(config, "CHECKOUT_CURRENCY", "eur")
    monkeypatch.setattr(config, "DEFAULT_LOCALE", "fr")
    monkeypatch.setattr(config, "ORDER_STORE_BACKEND", "memory")

@pytest.fixture
def store() -> Generator[InMemoryOrderStore, None, None]:
    s = InMemoryOrderStore()
    s.seed_products(json.loads(json.dumps(CATALOG)))
    set_order_store(s)
    yield s
    reset_order_store()

@pytest.fixture
def stripe_sessions(monkeypatch) -> List[Dict[str, Any]]:
    """Remplace stripe.checkout.Session.create; chaque appel est enregistré."""
    calls: List[Dict[str, Any]] = []

    def _fake_create(**kwargs):
        calls.append(kwargs)
        sid = f"cs_test_{len(calls)}"
        return SimpleNamespace(id=sid, url=f"https://checkout.stripe.com/c/pay/{sid}")

    monkeypatch.setattr(stripe.checkout.Session, "create", _fake_create)
    return calls

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """En-tête Stripe-Signature: t=<ts>,v1=HMAC_SHA256(secret, "<ts>.<payload>")."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"

def completed_event(order_id: str = None, session_id: str = "cs_test_1", event_id: str = "evt_1") -> Dict[str, Any]:
    metadata = {"order_id": order_id} if order_id else {}
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": {"id": session_id, "object": "checkout.session", "metadata": metadata, "payment_status": "paid"}},
    }

@pytest.fixture
def signer():
    return sign_payload

@pytest.fixture
def make_completed_event():
    return completed_event
