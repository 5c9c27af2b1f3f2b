from app.models.loyalty_points import LoyaltyPoints
from app.models.processed_order import ProcessedOrder
from app.models.audit_log import AuditLog

__all__ = [
    "LoyaltyPoints",
    "ProcessedOrder",
    "AuditLog",
]
