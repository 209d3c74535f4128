"""
Route definitions for the catalogue API.

Endpoints under /api/catalog:
- GET  /gifs                  : one page of trending (no q) or search results
- GET  /gifs/{gif_id}         : one GIF, served from the cache when possible
- GET  /gifs/{gif_id}/image   : URL + cache key to hand to an image loader
- POST /gifs/seed             : put a GIF the user is about to open in the cache
- WS   /search/live           : debounced live search
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal, Optional, Set

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket, WebSocketDisconnect

from .errors import CatalogError, ItemNotFound, ProtocolError, TransportError
from .pipeline import DEFAULT_DEBOUNCE_SECONDS, QueryPipeline
from .repository import CatalogRepository, PageStream
from .schemas import CatalogItem, ImageRequest, PageResult

logger = logging.getLogger(__name__)

ImageKind = Literal["grid", "detail"]

# GIPHY caps ``limit`` at 50 for standard keys.
MAX_PAGE_SIZE = 50

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def get_repository(request: Request) -> CatalogRepository:
    return request.app.state.repository


def _http_error(exc: CatalogError) -> HTTPException:
    """Translate a core error into the status the front-end should show."""
    if isinstance(exc, ItemNotFound):
        return HTTPException(status_code=404, detail="GIF not found")
    if isinstance(exc, TransportError):
        return HTTPException(status_code=503, detail=f"Catalogue unreachable: {exc}")
    if isinstance(exc, ProtocolError):
        return HTTPException(
            status_code=502,
            detail={"message": str(exc), "upstream_status": exc.status_code},
        )
    return HTTPException(status_code=500, detail=str(exc))


@router.get("/gifs", response_model=PageResult)
async def list_gifs(
    q: Optional[str] = Query(default=None, description="Search text; empty for trending"),
    page: int = Query(default=0, ge=0, description="Zero-based page index"),
    page_size: Optional[int] = Query(default=None, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
    repository: CatalogRepository = Depends(get_repository),
) -> PageResult:
    """
    Returns one page of GIFs.

    ``next_key`` is null once the feed is exhausted. Keep ``page_size``
    constant while paging through one query, offsets are derived from it.
    """
    try:
        return await repository.load_page(q or "", page, page_size)
    except CatalogError as exc:
        raise _http_error(exc) from exc


@router.get("/gifs/{gif_id}", response_model=CatalogItem)
async def get_gif(gif_id: str, repository: CatalogRepository = Depends(get_repository)) -> CatalogItem:
    try:
        return await repository.get_item(gif_id)
    except CatalogError as exc:
        raise _http_error(exc) from exc


@router.get("/gifs/{gif_id}/image", response_model=ImageRequest)
async def get_gif_image(
    gif_id: str,
    kind: ImageKind = Query(default="detail", description="Rendition family"),
    repository: CatalogRepository = Depends(get_repository),
) -> ImageRequest:
    try:
        item = await repository.get_item(gif_id)
    except CatalogError as exc:
        raise _http_error(exc) from exc
    image = item.image_request(kind)
    if image is None:
        raise HTTPException(status_code=404, detail="GIF has no usable image")
    return image


@router.post("/gifs/seed")
def seed_gif(item: CatalogItem, repository: CatalogRepository = Depends(get_repository)):
    """Cache a GIF the client already holds, ahead of opening its detail view."""
    return {"status": "ok", "cached": repository.seed(item)}


# ---------------------------------------------------------------------------
# Live search
#
# Clients send ``{"query": "..."}`` whenever the search box changes and
# ``{"more": true}`` when they scroll near the end of the list. The
# server answers with ``{"type": "page", ...}`` or ``{"type": "error", ...}``
# messages, always tagged with the query they belong to. Pages of a query
# the user has already moved away from are never sent.


@router.websocket("/search/live")
async def live_search(websocket: WebSocket) -> None:
    state = websocket.app.state
    pipeline = QueryPipeline(
        state.repository,
        debounce_seconds=getattr(state, "search_debounce_seconds", DEFAULT_DEBOUNCE_SECONDS),
    )
    send_lock = asyncio.Lock()
    pending: Set[asyncio.Task] = set()

    async def send_next_page(stream: PageStream) -> None:
        try:
            page = await stream.__anext__()
        except StopAsyncIteration:
            return
        except CatalogError as exc:
            if stream.cancelled:
                return
            message = {
                "type": "error",
                "query": stream.query,
                "detail": str(exc),
                "status_code": getattr(exc, "status_code", None),
            }
        else:
            if stream.cancelled:
                return
            message = {"type": "page", "query": stream.query, "page": page.model_dump(mode="json")}
        async with send_lock:
            await websocket.send_json(message)

    async def deliver(stream: PageStream) -> None:
        try:
            await send_next_page(stream)
        except Exception:
            logger.exception("Could not deliver a page for query %r", stream.query)

    async def pump() -> None:
        async for stream in pipeline.streams():
            await deliver(stream)

    await websocket.accept()
    pipeline.start()
    pump_task = asyncio.create_task(pump())
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.warning("Ignoring live search message that is not JSON")
                async with send_lock:
                    await websocket.send_json(
                        {"type": "error", "query": None, "detail": "Message is not valid JSON", "status_code": None}
                    )
                continue
            if not isinstance(message, dict):
                continue
            if "query" in message:
                pipeline.update(str(message.get("query") or ""))
            elif message.get("more"):
                stream = pipeline.current_stream
                if stream is not None and not stream.exhausted:
                    task = asyncio.create_task(deliver(stream))
                    pending.add(task)
                    task.add_done_callback(pending.discard)
    except WebSocketDisconnect:
        logger.debug("Live search client disconnected")
    finally:
        tasks = [pump_task, *pending]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await pipeline.close()
