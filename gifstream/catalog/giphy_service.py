"""
GIPHY integration for the catalogue.

``GiphyClient`` is a thin, typed wrapper around three endpoints of the
GIPHY REST API:

* ``search()``: keyword search, paginated with ``limit``/``offset``.
* ``trending()``: the trending feed, paginated the same way.
* ``get_by_id()``: a single GIF by its identifier.

The client shapes requests and parses responses; it does not retry,
cache or filter. Requests go through the Python standard library and
run in a worker thread so that callers can ``await`` them without
blocking the event loop. Every failure is raised as a ``TransportError``
(the API could not be reached) or a ``ProtocolError`` (the API answered
with an error status or a body that could not be understood).
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .errors import ItemNotFound, ProtocolError, TransportError
from .schemas import CatalogItem, Pagination, SearchResponse


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.giphy.com/v1/gifs"
DEFAULT_TIMEOUT = 10.0


class GiphyClient:
    """Request/response contract for the GIPHY API.

    The API key is supplied once at construction and treated as an
    opaque credential: it is added to every query string and never
    written to the logs.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        rating: str = "g",
        lang: str = "en",
    ) -> None:
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.rating = rating
        self.lang = lang

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Perform an HTTP GET and return the decoded JSON object.

        A User-Agent and Accept header are sent with each request. The
        call blocks; use ``_request()`` from async code.
        """
        query = urllib.parse.urlencode({"api_key": self._api_key, **params})
        url = f"{self.base_url}/{path}?{query}"
        request = urllib.request.Request(
            url,
            headers={
                "User-Agent": "gifstream/0.1 (+https://developers.giphy.com)",
                "Accept": "application/json",
            },
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            logger.warning("GIPHY request to /%s returned status %s", path, exc.code)
            raise ProtocolError(
                f"GIPHY returned HTTP {exc.code} for /{path}", status_code=exc.code
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            # URLError, socket timeouts and connection resets all land here.
            logger.error("Error fetching /%s: %s", path, exc)
            raise TransportError(f"Could not reach GIPHY: {exc}") from exc

        if not 200 <= status < 300:
            logger.warning("GIPHY request to /%s returned status %s", path, status)
            raise ProtocolError(f"GIPHY returned HTTP {status} for /{path}", status_code=status)
        try:
            data = json.loads(body.decode("utf-8", errors="replace"))
        except ValueError as exc:
            raise ProtocolError(f"Malformed JSON from /{path}", status_code=status) from exc
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected body from /{path}", status_code=status)
        return data

    async def _request(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._get_json, path, params)

    async def search(
        self,
        query: str,
        limit: int,
        offset: int,
        rating: Optional[str] = None,
        lang: Optional[str] = None,
    ) -> SearchResponse:
        """Search GIFs matching ``query``."""
        data = await self._request(
            "search",
            {
                "q": query,
                "limit": limit,
                "offset": offset,
                "rating": rating or self.rating,
                "lang": lang or self.lang,
            },
        )
        return parse_list_response(data)

    async def trending(
        self,
        limit: int,
        offset: int,
        rating: Optional[str] = None,
    ) -> SearchResponse:
        """Return the current trending GIFs."""
        data = await self._request(
            "trending",
            {"limit": limit, "offset": offset, "rating": rating or self.rating},
        )
        return parse_list_response(data)

    async def get_by_id(self, item_id: str) -> CatalogItem:
        """Return one GIF by identifier.

        A 404 from the API is raised as ``ItemNotFound``.
        """
        path = urllib.parse.quote(item_id.strip(), safe="")
        try:
            data = await self._request(path, {})
        except ProtocolError as exc:
            if exc.status_code == 404:
                raise ItemNotFound(item_id) from exc
            raise
        raw = data.get("data")
        # GIPHY answers unknown ids with 200 and an empty ``data`` list.
        if not raw:
            raise ItemNotFound(item_id, status_code=None)
        try:
            return CatalogItem.model_validate(raw)
        except ValidationError as exc:
            raise ProtocolError(f"Malformed GIF record for {item_id!r}") from exc


def parse_list_response(data: Dict[str, Any]) -> SearchResponse:
    """Convert a list response into a ``SearchResponse``.

    Records that fail validation are skipped with a warning so that one
    bad entry does not cost the whole page. A missing or non-list
    ``data`` field means the body is not a list response at all.
    """
    raw_items = data.get("data")
    if not isinstance(raw_items, list):
        raise ProtocolError("List response has no 'data' array")
    items: List[CatalogItem] = []
    for raw in raw_items:
        try:
            items.append(CatalogItem.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping malformed GIF record: %s", exc.errors()[:1])
    try:
        pagination = Pagination.model_validate(data.get("pagination") or {})
    except ValidationError:
        pagination = Pagination(count=len(items))
    return SearchResponse(data=items, pagination=pagination)
