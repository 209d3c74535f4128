# gifstream/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .catalog import catalog_router
from .catalog.cache import BoundedCache
from .catalog.giphy_service import GiphyClient
from .catalog.repository import CatalogRepository
from .config import settings


def build_repository() -> CatalogRepository:
    client = GiphyClient(
        api_key=settings.giphy_api_key or "",
        base_url=settings.giphy_base_url,
        timeout=settings.http_timeout_seconds,
        rating=settings.content_rating,
        lang=settings.search_lang,
    )
    cache = BoundedCache(
        max_entries=settings.cache_max_entries,
        max_bytes=settings.cache_max_bytes,
    )
    return CatalogRepository(client, cache=cache, page_size=settings.page_size)


def create_app(
    repository: Optional[CatalogRepository] = None,
    debounce_seconds: Optional[float] = None,
) -> FastAPI:
    # One repository (and so one cache) per application instance.
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.giphy_api_key is None and repository is None:
            logging.getLogger(__name__).warning("GIPHY_API_KEY is not set; upstream calls will be rejected")
        app.state.repository = repository or build_repository()
        app.state.search_debounce_seconds = (
            settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        yield

    app = FastAPI(
        title="gifstream",
        description="Trending and search feeds of the GIPHY catalogue, paginated and cached.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Liveness probe
    @app.get("/")
    def health_check():
        return {"status": "ok"}

    app.include_router(catalog_router)
    return app


logging.basicConfig(level=settings.log_level.upper())

app = create_app()
