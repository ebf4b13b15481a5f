"""Credit balance mutations. Nothing else writes `User.credit_balance`."""

from datetime import datetime

from pymongo import ReturnDocument

from imaginer.core.exceptions import InsufficientCreditsError, NotFoundError
from imaginer.core.logging import get_logger
from imaginer.models.user import User

log = get_logger(__name__)


async def get_balance(user_id: int) -> int:
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user.credit_balance


async def adjust_balance(user_id: int, delta: int, idempotency_key: str | None = None) -> int:
    """
    Atomically add `delta` (negative to debit) to the user's balance; return the new balance.

    The guard and the increment run as one conditional update, so the new value is
    computed by the store from the stored balance and concurrent debits cannot overdraw.
    With `idempotency_key`, the key is recorded in the same write and a repeated call
    with the same key changes nothing and returns the current balance.
    """
    query: dict = {"_id": user_id}
    if delta < 0:
        query["credit_balance"] = {"$gte": -delta}
    if idempotency_key:
        query["applied_credit_keys"] = {"$ne": idempotency_key}

    update: dict = {
        "$inc": {"credit_balance": delta},
        "$set": {"updated_at": datetime.utcnow()},
    }
    if idempotency_key:
        update["$addToSet"] = {"applied_credit_keys": idempotency_key}

    doc = await User.get_motor_collection().find_one_and_update(
        query,
        update,
        return_document=ReturnDocument.AFTER,
    )
    if doc is not None:
        log.info(
            "balance_adjusted",
            user_id=user_id,
            delta=delta,
            balance=doc["credit_balance"],
            idempotency_key=idempotency_key,
        )
        return doc["credit_balance"]

    # The conditional update matched nothing: work out which condition failed.
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    if idempotency_key and idempotency_key in user.applied_credit_keys:
        log.info("balance_adjust_already_applied", user_id=user_id, idempotency_key=idempotency_key)
        return user.credit_balance
    log.info("insufficient_credits", user_id=user_id, balance=user.credit_balance, requested=-delta)
    raise InsufficientCreditsError(balance=user.credit_balance, requested=-delta)
