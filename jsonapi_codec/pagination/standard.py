"""page[number]/page[size] pagination links and meta."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from jsonapi_codec.core.model import FIRST, LAST, NEXT, PREV, Link

from .base import PageMetadata, PaginationBase

PAGE = "page"
PAGE_NUMBER = "number"
PAGE_SIZE = "size"
PAGE_TOTAL_ELEMENTS = "totalElements"
PAGE_TOTAL_PAGES = "totalPages"


class PageNumberPagination(PaginationBase):
    """Pagination over 0-based page numbers and a fixed page size."""

    def __init__(
        self,
        number_parameter: str = "page[number]",
        size_parameter: str = "page[size]",
    ) -> None:
        self.number_parameter = number_parameter
        self.size_parameter = size_parameter

    def get_links(self, link_base: str, page: PageMetadata) -> list[Link]:
        """Build first/prev/next/last links relative to ``link_base``."""

        def build_url(page_number: int) -> str:
            split = urlsplit(link_base)
            query = [
                (key, value)
                for key, value in parse_qsl(split.query, keep_blank_values=True)
                if key not in (self.number_parameter, self.size_parameter)
            ]
            query.append((self.number_parameter, str(page_number)))
            query.append((self.size_parameter, str(page.size)))
            return urlunsplit(
                (split.scheme, split.netloc, split.path, urlencode(query, safe="[]"), split.fragment)
            )

        links: list[Link] = []
        if page.number > 0:
            links.append(Link(build_url(0), rel=FIRST))
            links.append(Link(build_url(page.number - 1), rel=PREV))
        if page.number < page.total_pages - 1:
            links.append(Link(build_url(page.number + 1), rel=NEXT))
            links.append(Link(build_url(page.total_pages - 1), rel=LAST))
        return links

    def get_meta(self, page: PageMetadata) -> dict[str, Any]:
        """Build the ``page`` meta object."""
        return {
            PAGE_NUMBER: page.number,
            PAGE_SIZE: page.size,
            PAGE_TOTAL_ELEMENTS: page.total_elements,
            PAGE_TOTAL_PAGES: page.total_pages,
        }
