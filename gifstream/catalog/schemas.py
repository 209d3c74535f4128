"""
Pydantic schema definitions for the catalogue module.

The models mirror the JSON returned by the GIPHY API closely enough to
be validated straight from a response body, while exposing only the
fields a client needs to render a grid cell or a detail screen. All
models are frozen: once an item has been parsed from a response it is
never mutated, which lets the cache and the page streams share the same
instances safely.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Variants checked when deciding whether an item can be displayed at all,
# and the order used to pick the URL for a detail view.
DETAIL_PREFERENCE: Tuple[str, ...] = (
    "original",
    "downsized",
    "downsized_medium",
    "fixed_width",
    "fixed_width_small",
)

# Grid cells favour the small fixed-width renditions.
GRID_PREFERENCE: Tuple[str, ...] = (
    "fixed_width",
    "fixed_width_small",
    "downsized",
    "downsized_medium",
)


class ImageVariant(BaseModel):
    """One rendition of an animated image.

    The API serialises ``width``, ``height`` and ``size`` as strings
    (``"480"``); they are converted to integers here. Anything that is
    not a plain non-negative number becomes ``None`` rather than failing
    the whole item.
    """

    model_config = ConfigDict(frozen=True)

    url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None

    @field_validator("width", "height", "size", mode="before")
    @classmethod
    def _parse_number(cls, value):
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value if value >= 0 else None
        if isinstance(value, str):
            value = value.strip()
            return int(value) if value.isdigit() else None
        return None

    @property
    def has_url(self) -> bool:
        return bool(self.url and self.url.strip())


class ImageSet(BaseModel):
    """The renditions published for one item. Unknown renditions are ignored."""

    model_config = ConfigDict(frozen=True)

    original: Optional[ImageVariant] = None
    downsized: Optional[ImageVariant] = None
    downsized_medium: Optional[ImageVariant] = None
    fixed_width: Optional[ImageVariant] = None
    fixed_width_small: Optional[ImageVariant] = None
    fixed_width_downsampled: Optional[ImageVariant] = None
    preview_gif: Optional[ImageVariant] = None

    def variant(self, name: str) -> Optional[ImageVariant]:
        return getattr(self, name, None)


class ImageRequest(BaseModel):
    """What the core hands to the external image loader.

    ``cache_key`` is the item identity so that the loader's memory and
    disk caches key renditions of the same item consistently.
    """

    url: str
    cache_key: str


class CatalogItem(BaseModel):
    """A single GIF as returned by the catalogue API."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = ""
    images: ImageSet = Field(default_factory=ImageSet)
    rating: Optional[str] = None
    # The uploader's handle; empty for anonymous uploads.
    username: Optional[str] = None
    import_datetime: Optional[str] = None
    trending_datetime: Optional[str] = None
    # Link to the item's page on the provider's site.
    url: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def _none_title(cls, value):
        return "" if value is None else value

    @property
    def has_image(self) -> bool:
        """True when at least one displayable rendition has a URL."""
        for name in DETAIL_PREFERENCE:
            variant = self.images.variant(name)
            if variant is not None and variant.has_url:
                return True
        return False

    def image_url(self, preference: Tuple[str, ...] = DETAIL_PREFERENCE) -> Optional[str]:
        """Return the first usable URL in ``preference`` order.

        When none of the preferred renditions has a URL the detail order
        is tried, so a usable item always resolves to some URL.
        """
        for order in (preference, DETAIL_PREFERENCE):
            for name in order:
                variant = self.images.variant(name)
                if variant is not None and variant.has_url:
                    return variant.url
        return None

    def image_request(self, kind: str = "detail") -> Optional[ImageRequest]:
        preference = GRID_PREFERENCE if kind == "grid" else DETAIL_PREFERENCE
        url = self.image_url(preference)
        if url is None:
            return None
        return ImageRequest(url=url, cache_key=self.id)


class Pagination(BaseModel):
    """Pagination block of a list response. Informational only."""

    total_count: int = 0
    count: int = 0
    offset: int = 0


class SearchResponse(BaseModel):
    """Body of the ``/search`` and ``/trending`` endpoints."""

    data: List[CatalogItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class PageRequest(BaseModel):
    """Parameters of one page load. ``query`` empty means trending."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    page_index: int = Field(default=0, ge=0)
    page_size: int = Field(default=20, gt=0)

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    @property
    def is_trending(self) -> bool:
        return not self.query.strip()


class PageResult(BaseModel):
    """One loaded page.

    ``items`` keeps the server order. ``prev_key`` is ``None`` only for
    page 0 and ``next_key`` is ``None`` only when the page had no usable
    items, which is how a page stream knows it has reached the end.
    """

    model_config = ConfigDict(frozen=True)

    page_index: int
    items: List[CatalogItem] = Field(default_factory=list)
    prev_key: Optional[int] = None
    next_key: Optional[int] = None

    @classmethod
    def for_page(cls, page_index: int, items: List[CatalogItem]) -> "PageResult":
        return cls(
            page_index=page_index,
            items=items,
            prev_key=page_index - 1 if page_index > 0 else None,
            next_key=page_index + 1 if items else None,
        )

    @property
    def is_last(self) -> bool:
        return self.next_key is None
