import base64
import hashlib
import hmac


def compute_shopify_hmac(payload: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw body, as sent in X-Shopify-Hmac-Sha256."""
    digest = hmac.new(
        secret.encode("utf-8"),
        payload,
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_shopify_webhook(payload: bytes, signature: str | None, secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(compute_shopify_hmac(payload, secret), signature.strip())


def tokens_match(supplied: str | None, expected: str) -> bool:
    if not supplied or not expected:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))
