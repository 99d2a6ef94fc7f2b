"""Codec configuration passed explicitly to every serialize/deserialize call."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AffordanceType(str, Enum):
    """How hypermedia affordances are rendered on links."""

    NONE = "NONE"
    AS_LINK_META = "AS_LINK_META"
    AS_HAL_FORMS_TEMPLATE = "AS_HAL_FORMS_TEMPLATE"


class JSONAPIConfiguration(BaseModel):
    """Immutable JSON:API rendering and parsing options."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type_for_class: dict[type, str] = Field(default_factory=dict)
    pluralized_type_rendered: bool = True
    lowercased_type_rendered: bool = True
    # Keyed by JSON:API type; the "*" key applies to every type.
    id_not_serialized_for_value: dict[str, str] = Field(default_factory=dict)
    id_attribute_rendered: bool = False
    empty_attributes_object_serialized: bool = True
    page_meta_automatically_created: bool = True
    pagination_links_automatically_created: bool = True
    page_number_request_parameter: str = "page[number]"
    page_size_request_parameter: str = "page[size]"
    affordances_rendered_as: AffordanceType = AffordanceType.NONE
    jsonapi_version_rendered: bool = False
    jsonapi_version: str = "1.1"
    jsonapi11_link_properties_removed_from_link_meta: bool = True
    type_used_for_deserialization: bool = True

    def with_options(self, **changes: Any) -> JSONAPIConfiguration:
        """Return a copy of the configuration with some options changed."""
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown configuration options: {sorted(unknown)}")
        return self.model_copy(update=changes)

    def with_type_for_class(self, cls: type, type_: str) -> JSONAPIConfiguration:
        """Return a copy with an additional class -> type override."""
        return self.with_options(type_for_class={**self.type_for_class, cls: type_})

    def id_sentinel_for(self, type_: str) -> str | None:
        """Return the id value that is not serialized for a resource type."""
        return self.id_not_serialized_for_value.get(
            type_, self.id_not_serialized_for_value.get("*")
        )
