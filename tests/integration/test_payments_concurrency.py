import asyncio
import json
import time

import httpx

WEBHOOK = "/api/v1/payments/webhook"
CHECKOUT = "/api/v1/payments/checkout"


def _latency_during(app, slow_request):
    """Lance slow_request puis, 0.2 s plus tard, GET /health; retourne (réponse lente, latence de /health)."""
    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            pending = asyncio.create_task(slow_request(ac))
            await asyncio.sleep(0.2)
            started = time.perf_counter()
            health = await ac.get("/health")
            latency = time.perf_counter() - started
            assert health.status_code == 200
            return await pending, latency

    return asyncio.run(scenario())


def test_slow_settlement_does_not_block_other_requests(app, store, signer, make_completed_event, monkeypatch):
    order = store.insert_pending_order(amount_cents=1250, currency="EUR")
    store.insert_order_items(order["id"], [
        {"product_id": "p-steak", "slug": "steak", "name_fr": "Steak", "qty": 1, "unit_price_cents": 1250}
    ])
    settle = store.complete_order_and_adjust_stock

    def slow_settle(order_id):
        time.sleep(1.0)
        return settle(order_id)

    monkeypatch.setattr(store, "complete_order_and_adjust_stock", slow_settle)
    payload = json.dumps(make_completed_event(order_id=order["id"])).encode("utf-8")
    headers = {"Stripe-Signature": signer(payload), "Content-Type": "application/json"}

    res, latency = _latency_during(app, lambda ac: ac.post(WEBHOOK, content=payload, headers=headers))

    assert res.status_code == 200
    assert latency < 0.5
    assert store.stock_of("steak") == 9


def test_slow_catalog_lookup_does_not_block_other_requests(app, store, stripe_sessions, monkeypatch):
    fetch = store.fetch_products_by_slugs

    def slow_fetch(slugs):
        time.sleep(1.0)
        return fetch(slugs)

    monkeypatch.setattr(store, "fetch_products_by_slugs", slow_fetch)

    res, latency = _latency_during(app, lambda ac: ac.post(CHECKOUT, json={"items": [{"slug": "steak"}]}))

    assert res.status_code == 200
    assert latency < 0.5
