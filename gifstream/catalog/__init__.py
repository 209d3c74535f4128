"""
Catalogue package: browsing and searching the GIPHY catalogue.

The core is made of a typed API client (``giphy_service``), an offset
page fetcher (``paging``), a bounded LRU cache (``cache``), the
repository that ties them together (``repository``) and a debounced
live-search pipeline (``pipeline``). ``router`` exposes the repository
to front-ends over HTTP.
"""

from .router import router as catalog_router  # noqa: F401
