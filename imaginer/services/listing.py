"""Gallery listing: external search merged with stored images, paginated."""

from beanie.operators import In
from pymongo import DESCENDING

from imaginer.core.exceptions import BadRequestError
from imaginer.core.logging import get_logger
from imaginer.core.pagination import Page, check_page_params, page_offset, total_pages
from imaginer.models.image import Image
from imaginer.services.search import ImageSearch

log = get_logger(__name__)

SORT_ORDER = [("updated_at", DESCENDING), ("_id", DESCENDING)]


class ImagePage(Page[Image]):
    # every stored image regardless of filter; 0 when an empty search skips the store
    saved_count: int = 0


async def list_page(
    page: int = 1,
    limit: int = 9,
    search: str | None = None,
    owner_id: int | None = None,
    search_backend: ImageSearch | None = None,
) -> ImagePage:
    """
    Return one page of images, most recently updated first.

    `search` is resolved to CDN public ids first; no matches means an empty page
    without touching the store. `total_count` always uses the same filter as the page.
    """
    check_page_params(page, limit)
    filters = []
    if owner_id is not None:
        filters.append(Image.owner_id == owner_id)
    if search:
        if search_backend is None:
            raise BadRequestError("Image search not configured")
        public_ids = await search_backend.search_public_ids(search)
        if not public_ids:
            log.info("listing_search_empty", search=search)
            return ImagePage(items=[], page=page, limit=limit, total_count=0, total_pages=0, saved_count=0)
        filters.append(In(Image.public_id, public_ids))

    total_count = await Image.find(*filters).count()
    items = (
        await Image.find(*filters)
        .sort(SORT_ORDER)
        .skip(page_offset(page, limit))
        .limit(limit)
        .to_list()
    )
    return ImagePage(
        items=items,
        page=page,
        limit=limit,
        total_count=total_count,
        total_pages=total_pages(total_count, limit),
        saved_count=await Image.count() if filters else total_count,
    )
