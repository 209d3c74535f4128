"""
End-to-end tests of the HTTP surface, backed by the fake GIPHY client.
"""
import time

import pytest
from fastapi.testclient import TestClient

from conftest import make_item
from gifstream.catalog.cache import BoundedCache
from gifstream.catalog.errors import ProtocolError, TransportError
from gifstream.catalog.repository import CatalogRepository
from gifstream.main import create_app


@pytest.fixture
def cache():
    return BoundedCache(max_entries=20)


@pytest.fixture
def api(client, cache):
    repository = CatalogRepository(client, cache=cache, page_size=2)
    with TestClient(create_app(repository, debounce_seconds=0.2)) as test_client:
        yield test_client


class TestHealth:
    def test_health_check(self, api):
        assert api.get("/").json() == {"status": "ok"}


class TestListGifs:
    def test_trending_first_page(self, api, client):
        client.pages[("", 0)] = [make_item("1"), make_item("2", url=None)]
        response = api.get("/api/catalog/gifs")
        assert response.status_code == 200
        body = response.json()
        assert [i["id"] for i in body["items"]] == ["1"]
        assert body["prev_key"] is None
        assert body["next_key"] == 1

    def test_search_later_page(self, api, client):
        client.pages[("cats", 2)] = [make_item("3")]
        body = api.get("/api/catalog/gifs", params={"q": "cats", "page": 1}).json()
        assert body["page_index"] == 1
        assert body["prev_key"] == 0
        assert client.calls == [("search", "cats", 2, 2)]

    def test_end_of_feed(self, api):
        body = api.get("/api/catalog/gifs", params={"q": "zzzz"}).json()
        assert body["items"] == []
        assert body["next_key"] is None

    def test_invalid_page(self, api):
        assert api.get("/api/catalog/gifs", params={"page": -1}).status_code == 422
        assert api.get("/api/catalog/gifs", params={"page_size": 500}).status_code == 422

    def test_transport_error_is_503(self, api, client, cache):
        client.error = TransportError("offline")
        assert api.get("/api/catalog/gifs").status_code == 503
        assert len(cache) == 0

    def test_protocol_error_is_502_with_upstream_status(self, api, client):
        client.error = ProtocolError("rate limited", status_code=429)
        response = api.get("/api/catalog/gifs", params={"q": "cats"})
        assert response.status_code == 502
        assert response.json()["detail"]["upstream_status"] == 429


class TestGetGif:
    def test_detail_after_listing_needs_no_lookup(self, api, client):
        client.pages[("", 0)] = [make_item("1")]
        api.get("/api/catalog/gifs")
        client.calls.clear()
        response = api.get("/api/catalog/gifs/1")
        assert response.status_code == 200
        assert response.json()["id"] == "1"
        assert client.calls == []

    def test_unknown_gif_is_404(self, api):
        assert api.get("/api/catalog/gifs/missing").status_code == 404

    def test_image_request_uses_id_as_cache_key(self, api, client):
        client.items["9"] = make_item("9")
        body = api.get("/api/catalog/gifs/9/image", params={"kind": "grid"}).json()
        assert body == {"url": "https://media.example.com/9.gif", "cache_key": "9"}


class TestSeed:
    def test_seeded_gif_is_served_from_cache(self, api, client):
        item = make_item("tap")
        response = api.post("/api/catalog/gifs/seed", json=item.model_dump(mode="json"))
        assert response.json() == {"status": "ok", "cached": True}
        assert api.get("/api/catalog/gifs/tap").status_code == 200
        assert client.calls == []

    def test_seed_without_image_is_refused(self, api):
        response = api.post("/api/catalog/gifs/seed", json={"id": "blank", "title": "x"})
        assert response.json()["cached"] is False


class TestLiveSearch:
    def test_settled_query_pages(self, api, client):
        client.pages[("cats", 0)] = [make_item("c1"), make_item("c2")]
        client.pages[("cats", 2)] = [make_item("c3")]
        with api.websocket_connect("/api/catalog/search/live") as ws:
            ws.send_json({"query": "cats"})
            message = ws.receive_json()
            # The trending feed may settle first on a slow runner.
            while message["query"] != "cats":
                message = ws.receive_json()
            assert message["type"] == "page"
            assert [i["id"] for i in message["page"]["items"]] == ["c1", "c2"]
            ws.send_json({"more": True})
            second = ws.receive_json()
            assert second["query"] == "cats"
            assert second["page"]["page_index"] == 1
            assert [i["id"] for i in second["page"]["items"]] == ["c3"]

    def test_errors_are_reported(self, api, client):
        client.error = TransportError("offline")
        with api.websocket_connect("/api/catalog/search/live") as ws:
            ws.send_json({"query": "cats"})
            message = ws.receive_json()
            while message["query"] != "cats":
                message = ws.receive_json()
            assert message["type"] == "error"
            assert "offline" in message["detail"]

    def test_invalid_json_is_answered_and_ignored(self, api, client):
        client.pages[("cats", 0)] = [make_item("c1")]
        with api.websocket_connect("/api/catalog/search/live") as ws:
            ws.send_text("{not json")
            message = ws.receive_json()
            while message["query"] is not None:
                message = ws.receive_json()
            assert message["type"] == "error"
            ws.send_json({"query": "cats"})
            message = ws.receive_json()
            while message["query"] != "cats":
                message = ws.receive_json()
            assert [i["id"] for i in message["page"]["items"]] == ["c1"]

    def test_unexpected_failure_does_not_stop_later_queries(self, api, client):
        client.pages[("dogs", 0)] = [make_item("d1")]
        client.error = RuntimeError("bug in the client")
        with api.websocket_connect("/api/catalog/search/live") as ws:
            ws.send_json({"query": "cats"})
            time.sleep(0.8)
            client.error = None
            ws.send_json({"query": "dogs"})
            message = ws.receive_json()
            while message["query"] != "dogs":
                message = ws.receive_json()
            assert message["type"] == "page"
            assert [i["id"] for i in message["page"]["items"]] == ["d1"]
