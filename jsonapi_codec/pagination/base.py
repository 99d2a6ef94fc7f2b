"""Page metadata shapes and the pagination strategy interface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from jsonapi_codec.core.model import Link


@dataclass(frozen=True)
class PageMetadata:
    """Page number (0-based), page size and totals of a paged collection."""

    number: int
    size: int
    total_elements: int
    total_pages: int

    @classmethod
    def of(cls, *, number: int, size: int, total_elements: int) -> PageMetadata:
        """Derive ``total_pages`` from the collection size."""
        total_pages = -(-total_elements // size) if size > 0 else 0
        return cls(number, size, total_elements, total_pages)


@dataclass(frozen=True)
class PagedModel:
    """A primary collection together with its page metadata."""

    content: tuple[Any, ...]
    page: PageMetadata

    @classmethod
    def of(cls, content: Iterable[Any], page: PageMetadata) -> PagedModel:
        return cls(tuple(content), page)


class PaginationBase:
    """Define pagination API for JSON:API."""

    def get_links(self, link_base: str, page: PageMetadata) -> list[Link]:
        """Return JSON:API pagination links."""
        raise NotImplementedError

    def get_meta(self, page: PageMetadata) -> dict[str, Any]:
        """Return JSON:API pagination metadata."""
        raise NotImplementedError
