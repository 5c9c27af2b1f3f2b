"""
orders/create webhook -> loyalty points award, applied at most once per order.

Early exits (in order): unsupported topic, unparseable payload, no customer,
award below one point, award above MAX_POINTS_PER_ORDER (treated as a bad
payload), order already marked. Otherwise the marker insert, the
ledger increment and the audit entry run as one unit of work; the unique index
on the marker's event_key is what serialises concurrent deliveries.
"""

import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pymongo.errors import PyMongoError

from app.core.audit import log_event
from app.core.config import get_settings
from app.core.logging import get_logger
from app.services import ledger

log = get_logger(__name__)

ORDER_CREATED_TOPIC = "orders/create"


class CustomerRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | int | None = None

    @field_validator("id")
    @classmethod
    def _id_as_str(cls, v: str | int | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class OrderPayload(BaseModel):
    """The fields of the order webhook body the award depends on."""

    model_config = ConfigDict(extra="ignore")

    id: str | int
    customer: CustomerRef | None = None
    subtotal_price: str | int | float | None = None

    @field_validator("id")
    @classmethod
    def _id_as_str(cls, v: str | int) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError("order id is empty")
        return v


class OrderCreatedEvent(BaseModel):
    topic: str
    order: OrderPayload | None = None  # None: body missing or not a valid order


class OutcomeStatus(str, Enum):
    ACCEPTED = "accepted"
    NO_OP = "no-op"
    REJECTED = "rejected"
    FAILED = "failed"


class OutcomeReason(str, Enum):
    UNSUPPORTED_TOPIC = "UnsupportedTopic"
    MALFORMED_INPUT = "MalformedInput"
    NO_CUSTOMER = "NoCustomer"
    BELOW_THRESHOLD = "BelowThreshold"
    ALREADY_PROCESSED = "AlreadyProcessed"
    STORE_FAILURE = "StoreFailure"


class AwardOutcome(BaseModel):
    status: OutcomeStatus
    reason: OutcomeReason | None = None
    points_awarded: int | None = None
    customer_id: str | None = None
    order_id: str | None = None

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class _AlreadyMarked(Exception):
    """Lost the marker insert race; raised inside the unit of work so a transaction aborts."""


def parse_event(topic: str, body: bytes | str | dict | None) -> OrderCreatedEvent:
    """Build the typed event from a raw webhook body. Bad JSON or a bad order leaves order=None."""
    try:
        data = json.loads(body) if isinstance(body, (bytes, str)) else body
        order = OrderPayload.model_validate(data) if data is not None else None
    except (ValueError, ValidationError, RecursionError):
        order = None
    return OrderCreatedEvent(topic=topic or "", order=order)


def parse_amount(value: Any) -> float:
    """Decimal string/number -> float; missing, non-numeric and non-finite values count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def compute_award(subtotal: Any, per_unit: int | None = None) -> int:
    """One point per whole per_unit (default 10) of subtotal. Never negative."""
    if per_unit is None:
        per_unit = get_settings().points_per_currency_unit
    amount = parse_amount(subtotal)
    if amount <= 0:
        return 0
    return int(amount // per_unit)


def event_key_for(order_id: str | int) -> str:
    return f"order_{order_id}_processed"


def _no_op(reason: OutcomeReason, **kwargs: Any) -> AwardOutcome:
    return AwardOutcome(status=OutcomeStatus.NO_OP, reason=reason, **kwargs)


async def process_order_created(
    event: OrderCreatedEvent,
    *,
    shop: str | None = None,
    webhook_id: str | None = None,
) -> AwardOutcome:
    """Apply the points award for one orders/create delivery. Never raises for store errors."""
    if event.topic != ORDER_CREATED_TOPIC:
        log.warning("webhook_topic_unsupported", topic=event.topic)
        return AwardOutcome(status=OutcomeStatus.REJECTED, reason=OutcomeReason.UNSUPPORTED_TOPIC)

    order = event.order
    if order is None:
        log.warning("order_payload_malformed")
        return _no_op(OutcomeReason.MALFORMED_INPUT)

    customer_id = order.customer.id if order.customer else None
    if not customer_id:
        log.info("order_skipped", order_id=order.id, reason=OutcomeReason.NO_CUSTOMER.value)
        return _no_op(OutcomeReason.NO_CUSTOMER, order_id=order.id)

    points = compute_award(order.subtotal_price)
    if points <= 0:
        # Not marked: a redelivery recomputes the same zero award
        log.info("order_skipped", order_id=order.id, reason=OutcomeReason.BELOW_THRESHOLD.value)
        return _no_op(OutcomeReason.BELOW_THRESHOLD, order_id=order.id, customer_id=customer_id)
    if points > get_settings().max_points_per_order:
        log.warning("order_award_out_of_range", order_id=order.id, points=points)
        return _no_op(OutcomeReason.MALFORMED_INPUT, order_id=order.id, customer_id=customer_id)

    event_key = event_key_for(order.id)
    try:
        if await ledger.is_processed(event_key):
            log.info("order_skipped", order_id=order.id, reason=OutcomeReason.ALREADY_PROCESSED.value)
            return _no_op(OutcomeReason.ALREADY_PROCESSED, order_id=order.id, customer_id=customer_id)

        async with ledger.transaction() as session:
            created = await ledger.mark_processed(
                event_key,
                order_id=order.id,
                customer_id=customer_id,
                points_awarded=points,
                shop=shop,
                webhook_id=webhook_id,
                session=session,
            )
            if not created:
                raise _AlreadyMarked(event_key)
            entry = await ledger.upsert_add(customer_id, points, session=session)
            await log_event(
                shop,
                "points_awarded",
                "loyalty_points",
                customer_id,
                {"order_id": order.id, "points": points, "balance": entry.points},
                session=session,
            )
    except _AlreadyMarked:
        log.info("order_skipped", order_id=order.id, reason=OutcomeReason.ALREADY_PROCESSED.value, race=True)
        return _no_op(OutcomeReason.ALREADY_PROCESSED, order_id=order.id, customer_id=customer_id)
    except PyMongoError as e:
        log.exception("points_award_failed", order_id=order.id, customer_id=customer_id, error=str(e))
        return AwardOutcome(
            status=OutcomeStatus.FAILED,
            reason=OutcomeReason.STORE_FAILURE,
            order_id=order.id,
            customer_id=customer_id,
        )

    log.info("points_awarded", order_id=order.id, customer_id=customer_id, points=points, balance=entry.points)
    return AwardOutcome(
        status=OutcomeStatus.ACCEPTED,
        points_awarded=points,
        customer_id=customer_id,
        order_id=order.id,
    )
