import pytest

from boutique import config
from boutique.orders import OrderStoreError
from boutique.payments import service
from boutique.payments.errors import (
    ConfigurationError,
    EmptyCartError,
    NoPurchasableItemsError,
    SettlementError,
)
from boutique.payments.schemas import CheckoutRequest


def _request(items, **kw):
    return CheckoutRequest.model_validate({"items": items, **kw})


def test_checkout_single_product(store, stripe_sessions):
    result = service.create_checkout(_request([{"slug": "steak", "qty": 2}]))

    order = store.get_order(result.order_id)
    assert order["amount_cents"] == 2500
    assert order["status"] == "pending"
    assert order["currency"] == "EUR"
    assert order["session_id"] == result.session_id == "cs_test_1"
    assert store.get_items(result.order_id) == [{
        "product_id": "p-steak", "slug": "steak", "name_fr": "Steak",
        "qty": 2, "unit_price_cents": 1250, "order_id": result.order_id,
    }]

    (call,) = stripe_sessions
    assert call["mode"] == "payment"
    assert call["metadata"] == {"order_id": result.order_id}
    assert call["line_items"][0]["quantity"] == 2
    assert call["line_items"][0]["price_data"]["unit_amount"] == 1250
    assert call["success_url"] == "https://le-bar-a-boeuf.github.io/success/"
    assert result.url == "https://checkout.stripe.com/c/pay/cs_test_1"


def test_checkout_duplicates_are_merged(store, stripe_sessions):
    result = service.create_checkout(_request([
        {"slug": "steak", "qty": 1},
        {"slug": "oeufs", "qty": 2},
        {"slug": "steak", "qty": 1},
    ]))
    assert store.get_order(result.order_id)["amount_cents"] == 2 * 1250 + 2 * 320
    assert [i["slug"] for i in store.get_items(result.order_id)] == ["steak", "oeufs"]


def test_checkout_skips_unknown_and_inactive(store, stripe_sessions):
    result = service.create_checkout(_request([
        {"slug": "inconnu", "qty": 3},
        {"slug": "retire", "qty": 1},
        {"slug": "entrecote", "qty": 1},
    ]))
    assert [i["slug"] for i in store.get_items(result.order_id)] == ["entrecote"]
    assert store.get_order(result.order_id)["amount_cents"] == 2490


def test_checkout_empty_cart(store, stripe_sessions):
    with pytest.raises(EmptyCartError):
        service.create_checkout(_request([]))
    assert store.orders == {}
    assert stripe_sessions == []


def test_checkout_nothing_purchasable(store, stripe_sessions):
    with pytest.raises(NoPurchasableItemsError):
        service.create_checkout(_request([{"slug": "inconnu"}, {"slug": "retire"}]))
    assert store.orders == {}
    assert stripe_sessions == []


def test_checkout_without_stripe_key(store, stripe_sessions, monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "")
    with pytest.raises(ConfigurationError):
        service.create_checkout(_request([{"slug": "steak"}]))
    assert store.orders == {}


def test_checkout_with_misconfigured_store(stripe_sessions, monkeypatch):
    from boutique.orders import reset_order_store

    reset_order_store()
    monkeypatch.setattr(config, "ORDER_STORE_BACKEND", "supabase")
    monkeypatch.setattr(config, "SUPABASE_URL", "")
    try:
        with pytest.raises(ConfigurationError):
            service.create_checkout(_request([{"slug": "steak"}]))
    finally:
        reset_order_store()
    assert stripe_sessions == []


def test_items_failure_stops_before_stripe(store, stripe_sessions, monkeypatch):
    def fail(order_id, items):
        raise OrderStoreError("insert failed")

    monkeypatch.setattr(store, "insert_order_items", fail)
    with pytest.raises(OrderStoreError):
        service.create_checkout(_request([{"slug": "steak"}]))
    assert stripe_sessions == []


def test_session_id_failure_still_returns_url(store, stripe_sessions, monkeypatch):
    def fail(order_id, session_id):
        raise OrderStoreError("update failed")

    monkeypatch.setattr(store, "set_order_session", fail)
    result = service.create_checkout(_request([{"slug": "steak"}]))

    assert result.url.startswith("https://checkout.stripe.com/")
    assert store.get_order(result.order_id)["session_id"] is None


def test_checkout_english_locale(store, stripe_sessions):
    service.create_checkout(_request([{"slug": "oeufs"}], locale="en"))
    call = stripe_sessions[0]
    assert call["locale"] == "en"
    assert call["line_items"][0]["price_data"]["product_data"]["name"] == "Farm eggs"
    assert call["cancel_url"] == "https://le-bar-a-boeuf.github.io/en/cancel/"


def test_checkout_referer_wins_over_site_url(store, stripe_sessions, monkeypatch):
    monkeypatch.setattr(config, "SITE_URL", "https://site.test")
    service.create_checkout(_request([{"slug": "steak"}]), referer="https://shop.test/en/producteurs/")
    assert stripe_sessions[0]["success_url"] == "https://shop.test/en/success/"


def _pending(store, slug="steak", qty=2):
    order = store.insert_pending_order(amount_cents=2500, currency="EUR")
    product = store.fetch_products_by_slugs([slug])[0]
    store.insert_order_items(order["id"], [
        {"product_id": product["id"], "slug": slug, "name_fr": product["name_fr"], "qty": qty, "unit_price_cents": 1250}
    ])
    return order["id"]


def test_handle_event_ignores_other_types(store):
    assert service.handle_event({"id": "evt_x", "type": "payment_intent.created"}) == {"received": True}


def test_handle_event_settles_by_metadata(store, make_completed_event):
    order_id = _pending(store)
    assert service.handle_event(make_completed_event(order_id=order_id)) == {"received": True}
    assert store.get_order(order_id)["status"] == "paid"
    assert store.stock_of("steak") == 8


def test_handle_event_falls_back_to_session_id(store, make_completed_event):
    order_id = _pending(store)
    store.set_order_session(order_id, "cs_test_42")

    service.handle_event(make_completed_event(session_id="cs_test_42"))

    assert store.get_order(order_id)["status"] == "paid"


def test_handle_event_unresolvable_order(store, make_completed_event):
    assert service.handle_event(make_completed_event(session_id="cs_unknown")) == {"received": True}
    assert service.handle_event(make_completed_event(order_id="missing")) == {"received": True}


def test_handle_event_settlement_failure(store, make_completed_event, monkeypatch):
    order_id = _pending(store)

    def fail(oid):
        raise OrderStoreError("rpc down")

    monkeypatch.setattr(store, "complete_order_and_adjust_stock", fail)
    with pytest.raises(SettlementError):
        service.handle_event(make_completed_event(order_id=order_id))
    assert store.stock_of("steak") == 10


def test_handle_event_lookup_failure(store, make_completed_event, monkeypatch):
    def fail(session_id):
        raise OrderStoreError("select failed")

    monkeypatch.setattr(store, "find_order_id_by_session", fail)
    with pytest.raises(SettlementError):
        service.handle_event(make_completed_event(session_id="cs_test_9"))


def test_checkout_region_locale_is_passed_unchanged(store, stripe_sessions):
    service.create_checkout(_request([{"slug": "oeufs"}], locale="en-GB"))
    call = stripe_sessions[0]
    assert call["locale"] == "en-GB"
    assert call["line_items"][0]["price_data"]["product_data"]["name"] == "Farm eggs"
    assert call["success_url"] == "https://le-bar-a-boeuf.github.io/en/success/"


def test_checkout_non_object_items_are_not_purchasable(store, stripe_sessions):
    with pytest.raises(NoPurchasableItemsError):
        service.create_checkout(_request(["steak", 3]))
    assert store.orders == {}
