"""Utilities for JSON:API query parameters."""

from .query_params import apply_sparse_fieldsets, parse_include, parse_sparse_fieldsets

__all__ = ["apply_sparse_fieldsets", "parse_include", "parse_sparse_fieldsets"]
