"""Image CRUD. Creating or re-transforming an image is charged through the ledger."""

from contextlib import asynccontextmanager
from datetime import datetime

from beanie.operators import In
from pydantic import BaseModel, Field

from imaginer.core.config import get_settings
from imaginer.core.exceptions import NotFoundError
from imaginer.core.logging import get_logger
from imaginer.db.sequences import next_id
from imaginer.models.image import Image
from imaginer.models.transformations import TransformationConfig
from imaginer.models.user import User
from imaginer.services import ledger
from imaginer.services.authz import require_owner

log = get_logger(__name__)


class ImageCreate(BaseModel):
    title: str = Field(min_length=1)
    config: TransformationConfig
    public_id: str = Field(min_length=1)
    secure_url: str = Field(min_length=1)
    width: int | None = None
    height: int | None = None
    transformation_url: str | None = None


class ImageUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    config: TransformationConfig | None = None
    public_id: str | None = Field(default=None, min_length=1)
    secure_url: str | None = Field(default=None, min_length=1)
    width: int | None = None
    height: int | None = None
    transformation_url: str | None = None


@asynccontextmanager
async def transformation_charge(user_id: int):
    """Debit the transformation fee; give it back if the body raises."""
    fee = get_settings().credits_per_transformation
    await ledger.adjust_balance(user_id, -fee)
    try:
        yield fee
    except Exception:
        log.warning("transformation_refund", user_id=user_id, fee=fee)
        try:
            await ledger.adjust_balance(user_id, fee)
        except Exception:
            log.exception("transformation_refund_failed", user_id=user_id, fee=fee)
        raise


async def get_image(image_id: int) -> Image:
    image = await Image.get(image_id)
    if not image:
        raise NotFoundError("Image not found")
    return image


async def create_image(owner_id: int, data: ImageCreate) -> Image:
    owner = await User.get(owner_id)
    if not owner:
        raise NotFoundError("User not found")
    async with transformation_charge(owner.id):
        image = Image(
            id=await next_id("images"),
            owner_id=owner.id,
            title=data.title,
            kind=data.config.kind,
            config=data.config,
            public_id=data.public_id,
            secure_url=data.secure_url,
            width=data.width,
            height=data.height,
            transformation_url=data.transformation_url,
        )
        await image.insert()
    log.info("image_created", image_id=image.id, owner_id=owner.id, kind=image.kind)
    return image


async def update_image(actor_id: int, image_id: int, data: ImageUpdate) -> Image:
    image = await get_image(image_id)
    require_owner(actor_id, image.owner_id, "image", image.id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"config"})
    if data.config is not None:
        changes["config"] = data.config
        changes["kind"] = data.config.kind
    if not changes:
        return image

    changes["updated_at"] = datetime.utcnow()
    stored = {k: v.model_dump() if isinstance(v, BaseModel) else v for k, v in changes.items()}

    async def _apply() -> None:
        # conditional $set, never an upsert: a concurrently deleted image stays deleted
        result = await Image.get_motor_collection().update_one(
            {"_id": image.id, "owner_id": actor_id},
            {"$set": stored},
        )
        if result.matched_count == 0:
            raise NotFoundError("Image not found")
        for field, value in changes.items():
            setattr(image, field, value)

    if data.config is not None:
        async with transformation_charge(actor_id):
            await _apply()
    else:
        await _apply()
    log.info("image_updated", image_id=image.id, fields=sorted(changes))
    return image


async def delete_image(actor_id: int, image_id: int) -> None:
    image = await get_image(image_id)
    require_owner(actor_id, image.owner_id, "image", image.id)
    await image.delete()
    log.info("image_deleted", image_id=image_id, owner_id=actor_id)
    from imaginer.core.audit import log_event
    await log_event(actor_id, "image_deleted", "image", str(image_id), {"public_id": image.public_id})


async def load_authors(owner_ids) -> dict[int, User]:
    """Batch-load the owners of a set of images, keyed by user id."""
    ids = sorted({i for i in owner_ids if i is not None})
    if not ids:
        return {}
    users = await User.find(In(User.id, ids)).to_list()
    return {u.id: u for u in users}
