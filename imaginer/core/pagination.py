"""Pagination helpers."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel

from imaginer.core.exceptions import InvalidInputError

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    page: int
    limit: int
    total_count: int
    total_pages: int


def check_page_params(page: int, limit: int) -> None:
    if page < 1:
        raise InvalidInputError("page must be >= 1", details={"page": page})
    if limit < 1:
        raise InvalidInputError("limit must be > 0", details={"limit": limit})


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total_count: int, limit: int) -> int:
    return math.ceil(total_count / limit)
