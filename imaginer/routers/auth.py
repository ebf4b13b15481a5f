from fastapi import APIRouter, Depends

from imaginer.deps import get_current_user
from imaginer.models.user import User

router = APIRouter()


@router.get("/me")
async def auth_me(user: User = Depends(get_current_user)):
    """Return current user. Requires session cookie."""
    return {
        "id": user.id,
        "auth_id": user.auth_id,
        "email": user.email,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "photo": user.photo,
        "plan_id": user.plan_id,
        "credit_balance": user.credit_balance,
    }
