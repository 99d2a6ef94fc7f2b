"""Pagination helpers for JSON:API."""

from .base import PagedModel, PageMetadata, PaginationBase
from .standard import PAGE, PageNumberPagination

__all__ = ["PAGE", "PagedModel", "PageMetadata", "PageNumberPagination", "PaginationBase"]
