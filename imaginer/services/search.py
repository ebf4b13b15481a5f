"""Image search collaborator (Cloudinary Search API)."""

import asyncio
from typing import Protocol

import cloudinary
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.search import Search

from imaginer.core.config import Settings
from imaginer.core.exceptions import UpstreamError
from imaginer.core.logging import get_logger

log = get_logger(__name__)


class ImageSearch(Protocol):
    async def search_public_ids(self, expression: str) -> list[str]:
        """Return CDN public ids of assets matching a free-text search expression."""
        ...


class CloudinarySearch:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str,
        max_results: int = 500,
        max_pages: int = 20,
    ):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        self.folder = folder
        self.max_results = max_results
        self.max_pages = max_pages

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinarySearch":
        return cls(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            settings.cloudinary_folder,
            max_results=settings.search_max_results,
            max_pages=settings.search_max_pages,
        )

    def build_expression(self, expression: str) -> str:
        # the user's expression is forwarded verbatim, scoped to our folder
        return f"folder={self.folder} AND {expression}"

    def _execute(self, expression: str, cursor: str | None = None) -> dict:
        search = Search().expression(expression).max_results(self.max_results)
        if cursor:
            search = search.next_cursor(cursor)
        return search.execute()

    async def search_public_ids(self, expression: str) -> list[str]:
        """Follow `next_cursor` until the result set is exhausted or `max_pages` is hit."""
        full = self.build_expression(expression)
        public_ids: list[str] = []
        cursor = None
        for _ in range(self.max_pages):
            try:
                result = await asyncio.to_thread(self._execute, full, cursor)
            except CloudinaryError as e:
                log.exception("image_search_failed", expression=full)
                raise UpstreamError("Image search unavailable") from e
            public_ids.extend(r["public_id"] for r in result.get("resources", []) if r.get("public_id"))
            cursor = result.get("next_cursor")
            if not cursor:
                return public_ids
        log.warning(
            "image_search_truncated",
            expression=full,
            returned=len(public_ids),
            total_count=result.get("total_count"),
        )
        return public_ids
