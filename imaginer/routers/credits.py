from fastapi import APIRouter, Depends, Query

from imaginer.deps import get_current_user
from imaginer.models.user import User
from imaginer.services import ledger
from imaginer.services import transactions as transactions_service

router = APIRouter()


@router.get("/balance")
async def credits_balance(user: User = Depends(get_current_user)):
    """Return current credit balance."""
    balance = await ledger.get_balance(user.id)
    return {"balance": balance}


@router.get("/transactions")
async def credits_transactions(
    user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
):
    """Return purchases for current user (newest first)."""
    items, total = await transactions_service.list_transactions(user.id, page=page, limit=limit)
    out = [
        {
            "id": t.id,
            "external_payment_id": t.external_payment_id,
            "amount": t.amount,
            "plan": t.plan,
            "credits": t.credits_granted,
            "status": t.status,
            "created_at": t.created_at.isoformat(),
        }
        for t in items
    ]
    return {"transactions": out, "page": page, "limit": limit, "total_count": total}
