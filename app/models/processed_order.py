from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class ProcessedOrder(Document):
    """Write-once marker: an order whose points award has been applied."""
    event_key: Indexed(str, unique=True)  # order_<order_id>_processed
    order_id: str
    customer_id: str | None = None
    points_awarded: int = 0
    shop: str | None = None  # X-Shopify-Shop-Domain
    webhook_id: str | None = None  # X-Shopify-Webhook-Id of the first delivery
    recorded_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "processed_orders"
