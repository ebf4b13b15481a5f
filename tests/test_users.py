"""User sync from auth provider events."""

import pytest

from imaginer.core.exceptions import NotFoundError
from imaginer.models.image import Image
from imaginer.models.transaction import Transaction
from imaginer.models.user import User
from imaginer.services import images as images_service
from imaginer.services import ledger
from imaginer.services import transactions as transactions_service
from imaginer.services import users as users_service
from imaginer.services.images import ImageCreate
from imaginer.services.users import UserProfile

from helpers import image_payload

pytestmark = pytest.mark.asyncio


async def test_create_user_grants_signup_credits(db):
    user = await users_service.create_user(UserProfile(auth_id="user_abc", email="a@example.com"))
    assert user.credit_balance == 10
    assert isinstance(user.id, int)


async def test_replayed_create_returns_existing(db):
    first = await users_service.create_user(UserProfile(auth_id="user_abc", email="a@example.com"))
    await ledger.adjust_balance(first.id, -4)
    again = await users_service.create_user(UserProfile(auth_id="user_abc", email="a@example.com"))
    assert again.id == first.id
    assert again.credit_balance == 6
    assert await User.count() == 1


async def test_update_user_keeps_balance(make_user):
    user = await make_user(balance=42)
    await users_service.update_user(
        user.auth_id,
        UserProfile(auth_id=user.auth_id, email="new@example.com", first_name="Ada"),
    )
    stored = await User.get(user.id)
    assert stored.email == "new@example.com"
    assert stored.first_name == "Ada"
    assert stored.credit_balance == 42


async def test_update_unknown_user(db):
    with pytest.raises(NotFoundError):
        await users_service.update_user("nobody", UserProfile(auth_id="nobody"))


async def test_delete_user_cascades_images_and_keeps_transactions(make_user):
    user = await make_user(balance=5)
    other = await make_user(balance=5)
    await images_service.create_image(user.id, ImageCreate(**image_payload("imaginer/u1")))
    kept = await images_service.create_image(other.id, ImageCreate(**image_payload("imaginer/u2")))
    await transactions_service.record_payment("tx_del", 10, "Basic", 10, user.id)

    await users_service.delete_user(user.auth_id)

    assert await User.get(user.id) is None
    assert await Image.find(Image.owner_id == user.id).count() == 0
    assert await Image.get(kept.id) is not None
    txn = await Transaction.find_one(Transaction.external_payment_id == "tx_del")
    assert txn is not None
    assert txn.buyer_id is None
    assert txn.status == "credited"


async def test_profile_from_event():
    profile = users_service.profile_from_event(
        {
            "id": "user_29w83sxmDNGwOuEthce5gg56FcC",
            "email_addresses": [{"email_address": "example@example.org"}],
            "username": "example",
            "image_url": "https://img.example.com/p.png",
            "first_name": "Example",
            "last_name": None,
        }
    )
    assert profile.auth_id == "user_29w83sxmDNGwOuEthce5gg56FcC"
    assert profile.email == "example@example.org"
    assert profile.photo == "https://img.example.com/p.png"
    assert profile.last_name is None
