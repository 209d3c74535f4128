"""
Shared fixtures: catalogue items and a fake GIPHY client.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from gifstream.catalog.errors import ItemNotFound
from gifstream.catalog.schemas import (
    CatalogItem,
    ImageSet,
    ImageVariant,
    Pagination,
    SearchResponse,
)


def make_item(item_id: str, url: Optional[str] = "default", size: Optional[int] = None, **images) -> CatalogItem:
    """Build an item whose original rendition has ``url`` and ``size``."""
    if url == "default":
        url = f"https://media.example.com/{item_id}.gif"
    if url is None and size is None and not images:
        return CatalogItem(id=item_id, title=f"GIF {item_id}")
    variants = dict(images)
    variants["original"] = ImageVariant(url=url, size=size)
    return CatalogItem(id=item_id, title=f"GIF {item_id}", images=ImageSet(**variants))


class FakeCatalogClient:
    """In-memory stand-in for ``GiphyClient``.

    ``pages`` maps ``(query, offset)`` to the items returned; the empty
    query is the trending feed. Missing keys return an empty list.
    """

    def __init__(self) -> None:
        self.pages: Dict[Tuple[str, int], List[CatalogItem]] = {}
        self.items: Dict[str, CatalogItem] = {}
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def _respond(self, query: str, limit: int, offset: int) -> SearchResponse:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        data = self.pages.get((query, offset), [])
        return SearchResponse(
            data=data,
            pagination=Pagination(total_count=999, count=len(data), offset=offset),
        )

    async def trending(self, limit, offset, rating=None):
        self.calls.append(("trending", limit, offset))
        return await self._respond("", limit, offset)

    async def search(self, query, limit, offset, rating=None, lang=None):
        self.calls.append(("search", query, limit, offset))
        return await self._respond(query, limit, offset)

    async def get_by_id(self, item_id):
        self.calls.append(("get_by_id", item_id))
        if self.error is not None:
            raise self.error
        if item_id not in self.items:
            raise ItemNotFound(item_id)
        return self.items[item_id]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def client():
    return FakeCatalogClient()
