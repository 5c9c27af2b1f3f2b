from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class LoyaltyPoints(Document):
    """Accumulated point balance per customer; one document per customer_id."""
    customer_id: Indexed(str, unique=True)
    points: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "loyalty_points"
        indexes = [[("updated_at", -1)]]
