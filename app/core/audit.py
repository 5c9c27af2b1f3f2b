"""Audit log for critical actions."""

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClientSession

from app.models.audit_log import AuditLog


async def log_event(
    shop: str | None,
    event_type: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    session: AsyncIOMotorClientSession | None = None,
) -> None:
    """Append to audit_logs collection (inside the caller's transaction when a session is given)."""
    await AuditLog(
        shop=shop,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata or {},
    ).insert(session=session)
