"""
Tests for item helpers used by the fetcher and the image loader hand-off.
"""
from conftest import make_item
from gifstream.catalog.schemas import CatalogItem, ImageVariant, PageRequest, PageResult


class TestImageSelection:
    def test_detail_prefers_original(self):
        item = make_item("a", fixed_width=ImageVariant(url="https://x/fw.gif"))
        assert item.image_url() == "https://media.example.com/a.gif"

    def test_grid_prefers_fixed_width(self):
        item = make_item("a", fixed_width=ImageVariant(url="https://x/fw.gif"))
        request = item.image_request("grid")
        assert request.url == "https://x/fw.gif"
        assert request.cache_key == "a"

    def test_grid_falls_back_to_original(self):
        assert make_item("a").image_request("grid").url == "https://media.example.com/a.gif"

    def test_no_image(self):
        item = CatalogItem(id="a")
        assert not item.has_image
        assert item.image_url() is None
        assert item.image_request() is None

    def test_null_title_becomes_empty(self):
        assert CatalogItem.model_validate({"id": "a", "title": None}).title == ""


class TestPageModels:
    def test_request_offset(self):
        request = PageRequest(query="cats", page_index=3, page_size=25)
        assert request.offset == 75
        assert not request.is_trending

    def test_blank_query_is_trending(self):
        assert PageRequest(query=" \t").is_trending

    def test_result_keys(self):
        page = PageResult.for_page(0, [make_item("a")])
        assert (page.prev_key, page.next_key) == (None, 1)
        assert not page.is_last
        assert PageResult.for_page(5, []).prev_key == 4
        assert PageResult.for_page(5, []).is_last
