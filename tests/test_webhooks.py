"""orders/create webhook endpoint: signature check and outcome -> HTTP mapping."""

import pytest
from pymongo.errors import PyMongoError

from helpers import order_body, webhook_request

pytestmark = pytest.mark.asyncio

URL = "/v1/webhooks/orders/create"


async def test_award_accepted(client):
    r = await client.post(URL, **webhook_request(order_body(subtotal="50.00")))
    assert r.status_code == 200
    assert r.json() == {"status": "accepted", "points_awarded": 5, "customer_id": "cust-1", "order_id": "1001"}
    assert r.headers["X-Request-ID"]


async def test_redelivery_returns_already_processed(client):
    from app.services import ledger
    req = webhook_request(order_body(subtotal="20.00"))
    await client.post(URL, **req)
    r = await client.post(URL, **req)
    assert r.status_code == 200
    assert r.json()["status"] == "no-op"
    assert r.json()["reason"] == "AlreadyProcessed"
    assert (await ledger.get_balance("cust-1")).points == 2


async def test_no_customer_is_ok(client):
    r = await client.post(URL, **webhook_request(order_body(customer_id=None)))
    assert r.status_code == 200
    assert r.json() == {"status": "no-op", "reason": "NoCustomer", "order_id": "1001"}


async def test_below_threshold_is_ok(client):
    r = await client.post(URL, **webhook_request(order_body(subtotal="9.99")))
    assert r.status_code == 200
    assert r.json()["reason"] == "BelowThreshold"


async def test_malformed_body_is_ok(client):
    r = await client.post(URL, **webhook_request(b"not json"))
    assert r.status_code == 200
    assert r.json() == {"status": "no-op", "reason": "MalformedInput"}


async def test_unsupported_topic_is_client_error(client):
    from app.models.processed_order import ProcessedOrder
    r = await client.post(URL, **webhook_request(order_body(), topic="orders/updated"))
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "UNSUPPORTED_TOPIC"
    assert err["details"] == {"status": "rejected", "reason": "UnsupportedTopic"}
    assert await ProcessedOrder.find_all().count() == 0


async def test_store_failure_is_server_error(client, monkeypatch):
    from app.services import ledger

    async def broken_upsert(customer_id, delta, session=None):
        raise PyMongoError("primary stepped down")

    monkeypatch.setattr(ledger, "upsert_add", broken_upsert)
    r = await client.post(URL, **webhook_request(order_body()))
    assert r.status_code == 500
    body = r.json()
    assert body["error"]["code"] == "STORE_FAILURE"
    assert body["error"]["details"]["reason"] == "StoreFailure"
    assert "request_id" in body


async def test_bad_signature_rejected_before_processing(client):
    from app.models.processed_order import ProcessedOrder
    req = webhook_request(order_body(), secret="wrong-secret")
    r = await client.post(URL, **req)
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"
    assert await ProcessedOrder.find_all().count() == 0


async def test_tampered_body_rejected(client):
    req = webhook_request(order_body(subtotal="10.00"))
    req["content"] = req["content"].replace(b"10.00", b"990.00")
    r = await client.post(URL, **req)
    assert r.status_code == 401


async def test_missing_signature_rejected(client):
    req = webhook_request(order_body())
    del req["headers"]["X-Shopify-Hmac-Sha256"]
    r = await client.post(URL, **req)
    assert r.status_code == 401


async def test_unconfigured_secret_is_bad_request(client, monkeypatch):
    from app.core.config import get_settings
    monkeypatch.setattr(get_settings(), "shopify_api_secret", "")
    r = await client.post(URL, **webhook_request(order_body()))
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Webhook secret not configured"


async def test_oversized_subtotal_is_ok_noop(client):
    from app.models.processed_order import ProcessedOrder
    r = await client.post(URL, **webhook_request(order_body(subtotal="1e30")))
    assert r.status_code == 200
    assert r.json()["reason"] == "MalformedInput"
    assert await ProcessedOrder.find_all().count() == 0


async def test_deeply_nested_body_is_ok_noop(client):
    r = await client.post(URL, **webhook_request(b"[" * 100000 + b"]" * 100000))
    assert r.status_code == 200
    assert r.json() == {"status": "no-op", "reason": "MalformedInput"}
