"""Accounts synced from the auth provider's user events."""

from datetime import datetime

from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from imaginer.core.config import get_settings
from imaginer.core.exceptions import NotFoundError
from imaginer.core.logging import get_logger
from imaginer.db.sequences import next_id
from imaginer.models.image import Image
from imaginer.models.transaction import Transaction
from imaginer.models.user import User

log = get_logger(__name__)


class UserProfile(BaseModel):
    auth_id: str
    email: str = ""
    username: str = ""
    photo: str = ""
    first_name: str | None = None
    last_name: str | None = None


async def get_user_by_auth_id(auth_id: str) -> User | None:
    return await User.find_one(User.auth_id == auth_id)


async def create_user(profile: UserProfile) -> User:
    """Create a user with the sign-up credit grant. Replayed creates return the stored user."""
    existing = await get_user_by_auth_id(profile.auth_id)
    if existing:
        return existing
    user = User(
        id=await next_id("users"),
        credit_balance=get_settings().signup_credits,
        **profile.model_dump(),
    )
    try:
        await user.insert()
    except DuplicateKeyError:
        # a concurrent delivery of the same event won the insert
        return await get_user_by_auth_id(profile.auth_id)
    log.info("user_created", user_id=user.id, auth_id=user.auth_id)
    from imaginer.core.audit import log_event
    await log_event(user.id, "user_created", "user", str(user.id), {"email": user.email})
    return user


async def update_user(auth_id: str, profile: UserProfile) -> User:
    """Overwrite profile fields only; balance fields are left to the ledger."""
    user = await get_user_by_auth_id(auth_id)
    if not user:
        raise NotFoundError("User not found")
    fields = profile.model_dump(exclude={"auth_id"})
    fields["updated_at"] = datetime.utcnow()
    await user.set(fields)
    log.info("user_updated", user_id=user.id)
    return user


async def delete_user(auth_id: str) -> User:
    """Delete the account and its images; purchase records are kept without a buyer."""
    user = await get_user_by_auth_id(auth_id)
    if not user:
        raise NotFoundError("User not found")
    await Transaction.find(Transaction.buyer_id == user.id).update({"$set": {"buyer_id": None}})
    await Image.find(Image.owner_id == user.id).delete()
    await user.delete()
    log.info("user_deleted", user_id=user.id, auth_id=auth_id)
    from imaginer.core.audit import log_event
    await log_event(user.id, "user_deleted", "user", str(user.id))
    return user


def profile_from_event(data: dict) -> UserProfile:
    emails = data.get("email_addresses") or []
    email = emails[0].get("email_address", "") if emails else ""
    return UserProfile(
        auth_id=data.get("id") or "",
        email=email,
        username=data.get("username") or "",
        photo=data.get("image_url") or "",
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
    )


async def handle_webhook(payload: bytes, signature: str | None) -> str:
    """Apply one auth-provider user event. Returns the action taken."""
    import json
    from imaginer.core.exceptions import BadRequestError
    from imaginer.core.security import verify_webhook_signature

    verify_webhook_signature(payload, signature, get_settings().auth_webhook_secret)
    try:
        event = json.loads(payload.decode())
    except ValueError as e:
        raise BadRequestError("Webhook body is not JSON") from e
    event_type = event.get("type")
    data = event.get("data") or {}
    if not data.get("id"):
        raise BadRequestError("Missing user id in event")

    if event_type == "user.created":
        await create_user(profile_from_event(data))
        return "created"
    if event_type == "user.updated":
        await update_user(data["id"], profile_from_event(data))
        return "updated"
    if event_type == "user.deleted":
        try:
            await delete_user(data["id"])
        except NotFoundError:
            log.info("user_delete_replayed", auth_id=data["id"])
            return "ignored"
        return "deleted"
    log.info("auth_webhook_ignored", event_type=event_type)
    return "ignored"
