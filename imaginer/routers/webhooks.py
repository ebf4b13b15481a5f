from fastapi import APIRouter, Header, Request

from imaginer.services import payments as payments_service
from imaginer.services import users as users_service

router = APIRouter()


@router.post("/payments")
async def payments_webhook(request: Request, x_signature: str | None = Header(None, alias="X-Signature")):
    """Payment processor webhook: checkout completed -> record and credit (idempotent).

    Duplicates answer 200 so the processor stops retrying.
    """
    body = await request.body()
    result = await payments_service.handle_webhook(body, x_signature)
    return {"status": "ok", "result": result}


@router.post("/auth")
async def auth_webhook(request: Request, x_signature: str | None = Header(None, alias="X-Signature")):
    """Auth provider webhook: user.created / user.updated / user.deleted."""
    body = await request.body()
    result = await users_service.handle_webhook(body, x_signature)
    return {"status": "ok", "result": result}
