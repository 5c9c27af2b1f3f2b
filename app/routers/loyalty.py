from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.core.exceptions import NotFoundError
from app.core.pagination import MAX_PAGE_SIZE, Page, build_page, paginate
from app.deps import require_admin_token
from app.models.loyalty_points import LoyaltyPoints
from app.services import ledger as ledger_service

router = APIRouter(dependencies=[Depends(require_admin_token)])


class BalanceOut(BaseModel):
    customer_id: str
    points: int
    updated_at: str

    @classmethod
    def from_entry(cls, entry: LoyaltyPoints) -> "BalanceOut":
        return cls(
            customer_id=entry.customer_id,
            points=entry.points,
            updated_at=entry.updated_at.isoformat(),
        )


@router.get("/customers", response_model=Page[BalanceOut])
async def list_customers(
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
):
    """Customers with a points balance, most recently updated first."""
    limit, offset = paginate(limit, offset)
    entries, total = await ledger_service.list_balances(limit=limit, offset=offset)
    return build_page([BalanceOut.from_entry(e) for e in entries], limit, offset, total)


@router.get("/customers/{customer_id:path}", response_model=BalanceOut)
async def get_customer(customer_id: str):
    entry = await ledger_service.get_balance(customer_id)
    if not entry:
        raise NotFoundError("No loyalty points for customer")
    return BalanceOut.from_entry(entry)
