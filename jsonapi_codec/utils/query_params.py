"""Helpers for JSON:API query parameter parsing."""

from __future__ import annotations

import re
from typing import Any, Mapping

from jsonapi_codec.core.document import JSONAPIDocumentBuilder

_FIELDS_PARAMETER = re.compile(r"^fields\[([^\]]+)\]$")


def _split_csv(value: str) -> list[str]:
    return [item for item in (part.strip() for part in value.split(",")) if item]


def parse_sparse_fieldsets(params: Mapping[str, Any]) -> dict[str, tuple[str, ...]]:
    """Collect ``fields[type]=a,b`` parameters into ``{type: (a, b)}``."""
    fieldsets: dict[str, tuple[str, ...]] = {}
    for key, value in params.items():
        if value is None:
            continue
        match = _FIELDS_PARAMETER.match(key)
        if match:
            fieldsets[match.group(1)] = tuple(_split_csv(str(value)))
    return fieldsets


def parse_include(params: Mapping[str, Any]) -> list[str]:
    """Return the relationship paths of the ``include`` parameter."""
    value = params.get("include")
    if value is None:
        return []
    return _split_csv(str(value))


def apply_sparse_fieldsets(
    builder: JSONAPIDocumentBuilder, params: Mapping[str, Any]
) -> JSONAPIDocumentBuilder:
    """Feed the sparse fieldsets of ``params`` into ``builder``."""
    for type_, names in parse_sparse_fieldsets(params).items():
        builder.fields(type_, *names)
    return builder
