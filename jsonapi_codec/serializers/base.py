"""Wire serializer: resolved documents to JSON:API bytes."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping

from pydantic_core import to_jsonable_python

from jsonapi_codec.config import AffordanceType, JSONAPIConfiguration
from jsonapi_codec.core.affordances import as_hal_forms_templates, as_link_meta
from jsonapi_codec.core.document import DocumentModel
from jsonapi_codec.core.model import (
    SELF,
    Document,
    ErrorObject,
    Link,
    RawData,
    Relationship,
    ResourceObject,
    ToMany,
    ToOne,
)
from jsonapi_codec.core.resolver import ResourceResolver

logger = logging.getLogger(__name__)

# Link object members defined by JSON:API 1.1 besides href and meta.
LINK_OBJECT_MEMBERS = ("title", "type", "hreflang")


class JSONAPISerializer:
    """Render resolved documents as JSON:API dictionaries and bytes."""

    def __init__(
        self,
        configuration: JSONAPIConfiguration | None = None,
        resolver: ResourceResolver | None = None,
    ) -> None:
        self.configuration = configuration or (
            resolver.configuration if resolver is not None else JSONAPIConfiguration()
        )
        self.resolver = resolver

    def serialize(self, model: DocumentModel) -> bytes:
        """Resolve a document model and return its wire bytes."""
        if self.resolver is None:
            raise RuntimeError("A resolver is required to serialize document models.")
        return self.to_bytes(self.resolver.resolve(model))

    def to_bytes(self, document: Document) -> bytes:
        """Return the UTF-8 encoded JSON of ``document``."""
        return self.dumps(self.to_dict(document))

    def dumps(self, payload: Mapping[str, Any]) -> bytes:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    def to_dict(self, document: Document) -> dict[str, Any]:
        """Return the top-level JSON:API object for ``document``."""
        result: dict[str, Any] = {}
        if document.jsonapi_version:
            result["jsonapi"] = {"version": document.jsonapi_version}
        if document.errors:
            result["errors"] = [error.to_dict() for error in document.errors]
        elif document.has_data:
            data = document.data
            if data is None:
                result["data"] = None
            elif isinstance(data, ResourceObject):
                result["data"] = self.to_resource(data)
            else:
                result["data"] = [self.to_resource(resource) for resource in data]
        if document.included:
            result["included"] = [self.to_resource(resource) for resource in document.included]
        links = self.to_links(document.links)
        if links:
            result["links"] = links
        if document.meta:
            result["meta"] = to_jsonable_python(dict(document.meta))
        logger.debug("Serialized document with keys %s", list(result))
        return result

    def to_resource(self, resource: ResourceObject) -> dict[str, Any]:
        """Serialize a resource object."""
        payload: dict[str, Any] = {}
        if resource.id_rendered:
            payload["id"] = resource.id
        payload["type"] = resource.type
        if resource.attributes or self.configuration.empty_attributes_object_serialized:
            payload["attributes"] = to_jsonable_python(dict(resource.attributes))
        relationships = {}
        for name, relationship in resource.relationships.items():
            rendered = self.to_relationship(relationship)
            if rendered:
                relationships[name] = rendered
        if relationships:
            payload["relationships"] = relationships
        links = self.to_links(resource.links)
        if links:
            payload["links"] = links
        if resource.meta:
            payload["meta"] = to_jsonable_python(dict(resource.meta))
        return payload

    def to_relationship(self, relationship: Relationship) -> dict[str, Any]:
        """Serialize a relationship object; absent linkage leaves out ``data``."""
        payload: dict[str, Any] = {}
        data = relationship.data
        if isinstance(data, ToOne):
            payload["data"] = None if data.identifier is None else data.identifier.to_dict()
        elif isinstance(data, ToMany):
            payload["data"] = [identifier.to_dict() for identifier in data.identifiers]
        elif isinstance(data, RawData):
            payload["data"] = to_jsonable_python(data.value)
        links = self.to_links(relationship.links)
        if links:
            payload["links"] = links
        if relationship.meta:
            payload["meta"] = to_jsonable_python(dict(relationship.meta))
        return payload

    def to_links(self, links: Iterable[Link]) -> dict[str, Any]:
        """Serialize links keyed by relation; repeated relations become arrays."""
        grouped: dict[str, list[Link]] = {}
        for link in links:
            grouped.setdefault(link.rel, []).append(link)
        rendered: dict[str, Any] = {}
        for rel, group in grouped.items():
            if len(group) == 1:
                rendered[rel] = self.to_link(group[0])
            else:
                rendered[rel] = [self.to_link(link) for link in group]
        return rendered

    def to_link(self, link: Link) -> str | dict[str, Any]:
        """Serialize one link as a bare URL or a link object."""
        members = {
            name: getattr(link, name)
            for name in LINK_OBJECT_MEMBERS
            if getattr(link, name) is not None
        }
        meta = self._link_meta(link)
        if self.configuration.jsonapi11_link_properties_removed_from_link_meta:
            properties = meta
        else:
            properties = {**meta, **members}
        affordances = self._affordances(link)
        if not affordances and (link.rel == SELF or not (members or meta)):
            return link.href

        payload: dict[str, Any] = {"href": link.href}
        if link.rel != SELF:
            payload.update(members)
        meta_payload = {**properties, **affordances}
        if meta_payload:
            payload["meta"] = to_jsonable_python(meta_payload)
        return payload

    def serialize_errors(
        self,
        errors: Iterable[ErrorObject],
        *,
        meta: Mapping[str, Any] | None = None,
        links: Iterable[Link] = (),
    ) -> bytes:
        """Return the wire bytes of an error document."""
        document = Document(
            errors=tuple(errors),
            links=tuple(links),
            meta=dict(meta) if meta else None,
            jsonapi_version=(
                self.configuration.jsonapi_version
                if self.configuration.jsonapi_version_rendered
                else None
            ),
            has_data=False,
        )
        return self.to_bytes(document)

    def _link_meta(self, link: Link) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        for name in ("name", "profile", "deprecation"):
            value = getattr(link, name)
            if value is not None:
                meta[name] = value
        if link.templated:
            meta["isTemplated"] = True
        if link.meta:
            meta.update(link.meta)
        return meta

    def _affordances(self, link: Link) -> dict[str, Any]:
        rendering = self.configuration.affordances_rendered_as
        if not link.affordances or rendering == AffordanceType.NONE:
            return {}
        if rendering == AffordanceType.AS_LINK_META:
            return {"affordances": as_link_meta(link.affordances, link.href)}
        templates = as_hal_forms_templates(link.affordances, link.href)
        return {"_templates": templates} if templates else {}
