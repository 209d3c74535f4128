"""
Error types raised by the catalogue core.

Callers are expected to tell a failed fetch apart from an empty page:
an empty page is a normal ``PageResult`` whose ``next_key`` is ``None``,
never one of the exceptions below.
"""

from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for every failure surfaced by the catalogue core."""


class TransportError(CatalogError):
    """The remote API could not be reached (connectivity, DNS, timeout)."""


class ProtocolError(CatalogError):
    """The remote API answered, but not with something usable.

    ``status_code`` carries the HTTP status when one was received so the
    UI layer can display it.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ItemNotFound(ProtocolError):
    """A single item lookup returned nothing displayable."""

    def __init__(self, item_id: str, status_code: Optional[int] = 404) -> None:
        super().__init__(f"GIF {item_id!r} not found", status_code=status_code)
        self.item_id = item_id
