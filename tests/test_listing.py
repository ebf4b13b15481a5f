"""Listing paginator: filters, ordering and page metadata."""

from datetime import datetime, timedelta

import pytest

from imaginer.core.exceptions import BadRequestError, InvalidInputError
from imaginer.db.sequences import next_id
from imaginer.models.image import Image
from imaginer.models.transformations import RestoreConfig
from imaginer.services.listing import list_page

from helpers import FakeSearch

pytestmark = pytest.mark.asyncio

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


async def _seed(count: int, owner_id: int = 1, prefix: str = "img", same_time: bool = False) -> list[Image]:
    out = []
    for n in range(count):
        ts = BASE_TIME if same_time else BASE_TIME + timedelta(minutes=n)
        image = Image(
            id=await next_id("images"),
            owner_id=owner_id,
            title=f"{prefix} {n}",
            kind="restore",
            config=RestoreConfig(),
            public_id=f"imaginer/{prefix}_{n}",
            secure_url=f"https://cdn.example.com/{prefix}_{n}.jpg",
            created_at=ts,
            updated_at=ts,
        )
        await image.insert()
        out.append(image)
    return out


async def test_total_pages_and_out_of_range_page(db):
    await _seed(23)
    first = await list_page(page=1, limit=9)
    assert first.total_count == 23
    assert first.total_pages == 3
    assert len(first.items) == 9

    last = await list_page(page=3, limit=9)
    assert len(last.items) == 5

    beyond = await list_page(page=4, limit=9)
    assert beyond.items == []
    assert beyond.total_pages == 3
    assert beyond.total_count == 23


async def test_most_recently_updated_first(db):
    seeded = await _seed(5)
    page = await list_page(page=1, limit=9)
    assert [i.id for i in page.items] == [i.id for i in reversed(seeded)]


async def test_ties_broken_by_id_across_pages(db):
    seeded = await _seed(6, same_time=True)
    p1 = await list_page(page=1, limit=4)
    p2 = await list_page(page=2, limit=4)
    ids = [i.id for i in p1.items] + [i.id for i in p2.items]
    assert ids == sorted((i.id for i in seeded), reverse=True)


async def test_owner_scope(db):
    await _seed(4, owner_id=1, prefix="a")
    await _seed(2, owner_id=2, prefix="b")
    page = await list_page(page=1, limit=9, owner_id=2)
    assert page.total_count == 2
    assert page.total_pages == 1
    assert {i.owner_id for i in page.items} == {2}


async def test_search_restricts_and_counts_with_same_filter(db):
    await _seed(12)
    search = FakeSearch([f"imaginer/img_{n}" for n in (1, 3, 5)] + ["imaginer/not_stored"])
    page = await list_page(page=1, limit=2, search="tags=cat", search_backend=search)
    assert search.calls == ["tags=cat"]
    assert page.total_count == 3
    assert page.total_pages == 2
    assert [i.public_id for i in page.items] == ["imaginer/img_5", "imaginer/img_3"]


async def test_empty_search_short_circuits(db, monkeypatch):
    await _seed(3)

    def _no_store_query(*args, **kwargs):
        raise AssertionError("store must not be queried")

    monkeypatch.setattr(Image, "find", _no_store_query)
    page = await list_page(page=1, limit=9, search="tags=nothing", search_backend=FakeSearch([]))
    assert page.items == []
    assert page.total_pages == 0
    assert page.total_count == 0


async def test_search_without_backend(db):
    with pytest.raises(BadRequestError):
        await list_page(page=1, limit=9, search="cat")


async def test_invalid_page_params(db):
    with pytest.raises(InvalidInputError):
        await list_page(page=0, limit=9)
    with pytest.raises(InvalidInputError):
        await list_page(page=1, limit=0)


async def test_saved_count_ignores_filters(db):
    await _seed(4, owner_id=1, prefix="a")
    await _seed(2, owner_id=2, prefix="b")
    scoped = await list_page(page=1, limit=9, owner_id=2)
    assert scoped.total_count == 2
    assert scoped.saved_count == 6

    unfiltered = await list_page(page=1, limit=9)
    assert unfiltered.saved_count == unfiltered.total_count == 6
