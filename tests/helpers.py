"""Webhook payload and signing helpers shared by the test modules."""

import base64
import hashlib
import hmac
import json
import os
from typing import Any


def order_body(order_id: Any = 1001, customer_id: Any = "cust-1", subtotal: Any = "50.00") -> dict:
    body: dict[str, Any] = {"id": order_id, "subtotal_price": subtotal, "currency": "USD"}
    if customer_id is not None:
        body["customer"] = {"id": customer_id, "email": "buyer@example.com"}
    return body


def sign(raw: bytes, secret: str | None = None) -> str:
    secret = secret if secret is not None else os.environ["SHOPIFY_API_SECRET"]
    return base64.b64encode(hmac.new(secret.encode(), raw, hashlib.sha256).digest()).decode()


def webhook_request(body: dict | bytes, topic: str = "orders/create", secret: str | None = None) -> dict:
    """kwargs for client.post: raw content plus Shopify-style headers."""
    raw = body if isinstance(body, bytes) else json.dumps(body).encode()
    return {
        "content": raw,
        "headers": {
            "Content-Type": "application/json",
            "X-Shopify-Topic": topic,
            "X-Shopify-Hmac-Sha256": sign(raw, secret),
            "X-Shopify-Shop-Domain": "test-shop.myshopify.com",
            "X-Shopify-Webhook-Id": "wh-1",
        },
    }
