from fastapi import APIRouter, Header, Request

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, StoreFailureError, UnauthorizedError, UnsupportedTopicError
from app.core.logging import bind_webhook_context
from app.core.security import verify_shopify_webhook
from app.services import order_events
from app.services.order_events import OutcomeStatus

router = APIRouter()


@router.post("/orders/create")
async def orders_create(
    request: Request,
    x_shopify_topic: str = Header("", alias="X-Shopify-Topic"),
    x_shopify_hmac_sha256: str | None = Header(None, alias="X-Shopify-Hmac-Sha256"),
    x_shopify_shop_domain: str | None = Header(None, alias="X-Shopify-Shop-Domain"),
    x_shopify_webhook_id: str | None = Header(None, alias="X-Shopify-Webhook-Id"),
):
    """orders/create webhook: award 1 point per 10 of subtotal, once per order."""
    body = await request.body()
    settings = get_settings()
    if not settings.shopify_api_secret:
        raise BadRequestError("Webhook secret not configured")
    if not verify_shopify_webhook(body, x_shopify_hmac_sha256, settings.shopify_api_secret):
        raise UnauthorizedError("Invalid webhook signature")
    bind_webhook_context(x_shopify_topic, x_shopify_shop_domain, x_shopify_webhook_id)

    event = order_events.parse_event(x_shopify_topic, body)
    outcome = await order_events.process_order_created(
        event,
        shop=x_shopify_shop_domain,
        webhook_id=x_shopify_webhook_id,
    )
    if outcome.status == OutcomeStatus.REJECTED:
        raise UnsupportedTopicError(x_shopify_topic, details=outcome.to_response())
    if outcome.status == OutcomeStatus.FAILED:
        raise StoreFailureError(details=outcome.to_response())
    return outcome.to_response()
