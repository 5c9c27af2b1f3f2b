"""Loyalty ledger: per-customer point balances and processed-order markers."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from beanie import UpdateResponse
from beanie.odm.operators.update.general import Inc, Set, SetOnInsert
from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo.errors import DuplicateKeyError

from app.core.config import get_settings
from app.models.loyalty_points import LoyaltyPoints
from app.models.processed_order import ProcessedOrder


async def get_balance(customer_id: str) -> LoyaltyPoints | None:
    """Return the customer's ledger entry, or None if they have never been awarded points."""
    return await LoyaltyPoints.find_one(LoyaltyPoints.customer_id == customer_id)


async def list_balances(limit: int = 50, offset: int = 0) -> tuple[list[LoyaltyPoints], int]:
    """Ledger entries, most recently updated first; returns (entries, total)."""
    entries = (
        await LoyaltyPoints.find_all()
        .sort(-LoyaltyPoints.updated_at)
        .skip(offset)
        .limit(limit)
        .to_list()
    )
    total = await LoyaltyPoints.find_all().count()
    return entries, total


async def upsert_add(
    customer_id: str,
    delta: int,
    session: AsyncIOMotorClientSession | None = None,
) -> LoyaltyPoints:
    """
    Add delta points to the customer's balance, creating the entry if absent.
    Single find_one_and_update with $inc and upsert, so concurrent awards never lose an update.
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta <= 0:
        raise ValueError(f"delta must be a positive integer, got {delta!r}")
    now = datetime.utcnow()
    return await LoyaltyPoints.find_one(
        LoyaltyPoints.customer_id == customer_id,
        session=session,
    ).update(
        Inc({LoyaltyPoints.points: delta}),
        Set({LoyaltyPoints.updated_at: now}),
        SetOnInsert({LoyaltyPoints.created_at: now}),
        session=session,
        response_type=UpdateResponse.NEW_DOCUMENT,
        upsert=True,
    )


async def mark_processed(
    event_key: str,
    order_id: str,
    customer_id: str | None = None,
    points_awarded: int = 0,
    shop: str | None = None,
    webhook_id: str | None = None,
    session: AsyncIOMotorClientSession | None = None,
) -> bool:
    """
    Insert the marker for event_key. True if this call created it, False if it already existed.
    The unique index on event_key decides races between concurrent deliveries.
    """
    marker = ProcessedOrder(
        event_key=event_key,
        order_id=order_id,
        customer_id=customer_id,
        points_awarded=points_awarded,
        shop=shop,
        webhook_id=webhook_id,
    )
    try:
        await marker.insert(session=session)
    except DuplicateKeyError:
        return False
    return True


async def is_processed(event_key: str) -> bool:
    return await ProcessedOrder.find_one(ProcessedOrder.event_key == event_key) is not None


def _motor_client():
    return ProcessedOrder.get_motor_collection().database.client


@asynccontextmanager
async def transaction() -> AsyncIterator[AsyncIOMotorClientSession | None]:
    """
    Unit of work for an award. Yields a session inside a started transaction when
    MONGODB_TRANSACTIONS is on (replica set required); otherwise yields None and each
    write commits on its own. An exception inside the block aborts the transaction.
    """
    if not get_settings().mongodb_transactions:
        yield None
        return
    client = _motor_client()
    async with await client.start_session() as session:
        async with session.start_transaction():
            yield session
