from fastapi import APIRouter, Depends, Query

from imaginer.core.config import get_settings
from imaginer.deps import get_current_user, get_image_search
from imaginer.models.image import Image
from imaginer.models.user import User
from imaginer.services import images as images_service
from imaginer.services import listing
from imaginer.services.images import ImageCreate, ImageUpdate
from imaginer.services.search import ImageSearch

router = APIRouter()

_settings = get_settings()


def author_out(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "auth_id": user.auth_id,
    }


def image_out(image: Image, author: User | None = None) -> dict:
    return {
        "id": image.id,
        "owner_id": image.owner_id,
        "title": image.title,
        "kind": image.kind,
        "config": image.config.model_dump(),
        "public_id": image.public_id,
        "secure_url": image.secure_url,
        "width": image.width,
        "height": image.height,
        "transformation_url": image.transformation_url,
        "created_at": image.created_at.isoformat(),
        "updated_at": image.updated_at.isoformat(),
        "author": author_out(author),
    }


@router.get("")
async def images_list(
    page: int = Query(1, ge=1),
    limit: int = Query(_settings.default_page_size, ge=1, le=_settings.max_page_size),
    search: str | None = Query(None),
    owner_id: int | None = Query(None),
    image_search: ImageSearch | None = Depends(get_image_search),
):
    """Gallery listing; `search` is forwarded to the CDN search, `owner_id` scopes to one user."""
    result = await listing.list_page(
        page=page,
        limit=limit,
        search=search,
        owner_id=owner_id,
        search_backend=image_search,
    )
    authors = await images_service.load_authors(i.owner_id for i in result.items)
    return {
        "items": [image_out(i, authors.get(i.owner_id)) for i in result.items],
        "page": result.page,
        "limit": result.limit,
        "total_count": result.total_count,
        "total_pages": result.total_pages,
        "saved_count": result.saved_count,
    }


@router.get("/{image_id}")
async def image_get(image_id: int):
    image = await images_service.get_image(image_id)
    authors = await images_service.load_authors([image.owner_id])
    return image_out(image, authors.get(image.owner_id))


@router.post("", status_code=201)
async def image_create(body: ImageCreate, user: User = Depends(get_current_user)):
    """Save a transformed image; charges the transformation fee."""
    image = await images_service.create_image(user.id, body)
    return image_out(image, user)


@router.patch("/{image_id}")
async def image_update(image_id: int, body: ImageUpdate, user: User = Depends(get_current_user)):
    """Owner-only. A new config is charged like a new transformation."""
    image = await images_service.update_image(user.id, image_id, body)
    return image_out(image, user)


@router.delete("/{image_id}")
async def image_delete(image_id: int, user: User = Depends(get_current_user)):
    await images_service.delete_image(user.id, image_id)
    return {"status": "deleted"}
