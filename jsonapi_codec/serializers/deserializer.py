"""Wire deserializer: JSON:API bytes to a typed entity graph."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import ValidationError

from jsonapi_codec.config import JSONAPIConfiguration
from jsonapi_codec.core.errors import JSONAPIErrorBuilder
from jsonapi_codec.core.exceptions import Malformed, UnknownType
from jsonapi_codec.core.inspection import EntityInspector
from jsonapi_codec.core.model import ErrorObject, Link, ResourceIdentifier
from jsonapi_codec.core.registry import TypeRegistry
from jsonapi_codec.schemas import JSONAPIResource, JSONAPIResourceIdentifier

logger = logging.getLogger(__name__)

_LINK_MEMBERS = ("title", "type", "hreflang")


@dataclass(frozen=True)
class ParsedDocument:
    """Typed result of a deserialization.

    ``data`` is an entity, a list of entities or None. ``resources`` maps
    every identified resource of the document (primary and included) to its
    entity. Linkage without a matching resource object is represented by a
    :class:`ResourceIdentifier` placeholder.
    """

    data: Any = None
    included: tuple[Any, ...] = ()
    resources: Mapping[ResourceIdentifier, Any] = field(default_factory=dict)
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None
    errors: tuple[ErrorObject, ...] = ()
    jsonapi: Mapping[str, Any] | None = None
    has_data: bool = False


@dataclass
class _Parsed:
    pointer: str
    resource: JSONAPIResource
    primary: bool
    entity: Any = None


def _key(type_: str, id_: str | None, lid: str | None) -> tuple[str, str, str] | None:
    if id_ is not None:
        return (type_, "id", id_)
    if lid is not None:
        return (type_, "lid", lid)
    return None


class JSONAPIDeserializer:
    """Parse JSON:API documents into entities of registered classes."""

    def __init__(
        self,
        configuration: JSONAPIConfiguration,
        registry: TypeRegistry,
        inspector: EntityInspector,
    ) -> None:
        self.configuration = configuration
        self.registry = registry
        self.inspector = inspector
        self.errors = JSONAPIErrorBuilder()

    def deserialize(
        self, payload: bytes | str | Mapping[str, Any], expected: type | None = None
    ) -> ParsedDocument:
        """Parse ``payload``; ``expected`` is the class of the primary data, if known."""
        document = self._load(payload)
        has_data = "data" in document
        has_errors = "errors" in document
        if has_data and has_errors:
            raise Malformed("a document must not contain both data and errors")
        if not (has_data or has_errors or "meta" in document):
            raise Malformed("a document must contain at least one of data, errors and meta")

        meta = self._object(document, "meta", "/meta")
        links = self._links(document.get("links"), "/links")
        jsonapi = self._object(document, "jsonapi", "/jsonapi")

        if has_errors:
            return ParsedDocument(
                links=links,
                meta=meta,
                errors=self._errors(document["errors"]),
                jsonapi=jsonapi,
            )

        parsed = self._resources(document)
        index: dict[tuple[str, str, str], _Parsed] = {}
        for item in parsed:
            key = _key(item.resource.type, item.resource.id, item.resource.lid)
            if key is None:
                continue
            if key in index:
                raise Malformed("duplicate resource object", item.pointer)
            index[key] = item

        # Attributes first so that linkage can point at any resource, cycles included.
        for item in parsed:
            item.entity = self._instantiate(item, expected)
        for item in parsed:
            self._link(item, index)

        primary = [item.entity for item in parsed if item.primary]
        data_raw = document.get("data")
        data: Any
        if isinstance(data_raw, list):
            data = primary
        else:
            data = primary[0] if primary else None
        resources = {
            ResourceIdentifier(item.resource.type, item.resource.id): item.entity
            for item in parsed
            if item.resource.id is not None
        }
        logger.debug(
            "Parsed document with %d primary and %d included resource(s)",
            len(primary),
            len(parsed) - len(primary),
        )
        return ParsedDocument(
            data=data,
            included=tuple(item.entity for item in parsed if not item.primary),
            resources=resources,
            links=links,
            meta=meta,
            jsonapi=jsonapi,
            has_data=has_data,
        )

    def _load(self, payload: bytes | str | Mapping[str, Any]) -> dict[str, Any]:
        if isinstance(payload, Mapping):
            document: Any = dict(payload)
        else:
            try:
                document = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise Malformed(f"invalid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise Malformed("the top-level value must be an object")
        return document

    def _object(self, container: Mapping[str, Any], key: str, pointer: str) -> dict[str, Any] | None:
        value = container.get(key)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise Malformed(f"'{key}' must be an object", pointer)
        return value

    def _errors(self, raw: Any) -> tuple[ErrorObject, ...]:
        if not isinstance(raw, list):
            raise Malformed("'errors' must be an array", "/errors")
        errors = []
        for position, item in enumerate(raw):
            if not isinstance(item, dict):
                raise Malformed("error object must be an object", f"/errors/{position}")
            errors.append(self.errors.from_dict(item))
        return tuple(errors)

    def _links(self, raw: Any, pointer: str) -> tuple[Link, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, dict):
            raise Malformed("'links' must be an object", pointer)
        links: list[Link] = []
        for rel, value in raw.items():
            values = value if isinstance(value, list) else [value]
            for item in values:
                link = self._link_value(rel, item, f"{pointer}/{rel}")
                if link is not None:
                    links.append(link)
        return tuple(links)

    def _link_value(self, rel: str, value: Any, pointer: str) -> Link | None:
        if value is None:
            return None
        if isinstance(value, str):
            return Link(value, rel=rel)
        if isinstance(value, dict) and isinstance(value.get("href"), str):
            meta = value.get("meta")
            if meta is not None and not isinstance(meta, dict):
                raise Malformed("link meta must be an object", f"{pointer}/meta")
            members = {name: value.get(name) for name in _LINK_MEMBERS}
            return Link(value["href"], rel=rel, meta=meta, **members)
        raise Malformed("link must be a string or an object with 'href'", pointer)

    def _resources(self, document: Mapping[str, Any]) -> list[_Parsed]:
        parsed: list[_Parsed] = []
        data = document.get("data")
        if isinstance(data, list):
            for position, item in enumerate(data):
                parsed.append(self._resource(item, f"/data/{position}", primary=True))
        elif isinstance(data, dict):
            parsed.append(self._resource(data, "/data", primary=True))
        elif data is not None:
            raise Malformed("'data' must be an object, an array or null", "/data")

        included = document.get("included", [])
        if not isinstance(included, list):
            raise Malformed("'included' must be an array", "/included")
        for position, item in enumerate(included):
            parsed.append(self._resource(item, f"/included/{position}", primary=False))
        return parsed

    def _resource(self, raw: Any, pointer: str, *, primary: bool) -> _Parsed:
        if not isinstance(raw, dict):
            raise Malformed("resource object must be an object", pointer)
        if "type" not in raw:
            raise Malformed("resource object is missing 'type'", pointer)
        if not primary and "id" not in raw and "lid" not in raw:
            raise Malformed("included resource object is missing 'id'", pointer)
        relationships = raw.get("relationships")
        if relationships is not None:
            if not isinstance(relationships, dict):
                raise Malformed("'relationships' must be an object", f"{pointer}/relationships")
            for name, relationship in relationships.items():
                self._check_relationship(relationship, f"{pointer}/relationships/{name}")
        try:
            resource = JSONAPIResource.model_validate(raw)
        except ValidationError as exc:
            detail = exc.errors()[0]
            location = "/".join(str(part) for part in detail["loc"])
            raise Malformed(f"invalid resource object: {detail['msg']}", f"{pointer}/{location}") from exc
        return _Parsed(pointer, resource, primary)

    def _check_relationship(self, relationship: Any, pointer: str) -> None:
        if not isinstance(relationship, dict):
            raise Malformed("relationship must be an object", pointer)
        if "data" not in relationship:
            return
        data = relationship["data"]
        if data is None:
            return
        if isinstance(data, dict):
            self._check_identifier(data, f"{pointer}/data")
        elif isinstance(data, list):
            for position, item in enumerate(data):
                self._check_identifier(item, f"{pointer}/data/{position}")
        else:
            raise Malformed("relationship data must be an object, an array or null", f"{pointer}/data")

    def _check_identifier(self, raw: Any, pointer: str) -> None:
        if not isinstance(raw, dict):
            raise Malformed("resource identifier must be an object", pointer)
        try:
            identifier = JSONAPIResourceIdentifier.model_validate(raw)
        except ValidationError as exc:
            raise Malformed("invalid resource identifier", pointer) from exc
        if identifier.id is None and identifier.lid is None:
            raise Malformed("resource identifier is missing 'id'", pointer)

    def _resolve_class(self, item: _Parsed, expected: type | None) -> type:
        resource = item.resource
        if item.primary and expected is not None:
            if not self.configuration.type_used_for_deserialization:
                return expected
            try:
                return self.registry.type_to_class(resource.type, resource.attributes)
            except UnknownType:
                if self.registry.class_to_type(expected) == resource.type:
                    return expected
                raise UnknownType(resource.type, f"{item.pointer}/type") from None
        try:
            return self.registry.type_to_class(resource.type, resource.attributes)
        except UnknownType:
            raise UnknownType(resource.type, f"{item.pointer}/type") from None

    def _instantiate(self, item: _Parsed, expected: type | None) -> Any:
        resource = item.resource
        cls = self._resolve_class(item, expected)
        values: dict[str, Any] = dict(resource.attributes or {})
        if resource.id is not None:
            id_field = self.inspector.id_field_for_class(cls)
            try:
                values[id_field] = self.inspector.coerce_id(cls, id_field, resource.id)
            except ValueError as exc:
                raise Malformed(f"invalid id for {cls.__qualname__}", f"{item.pointer}/id") from exc
        for name in resource.relationships or {}:
            kind = self.inspector.relationship_kind(cls, name)
            if kind == "many":
                values.setdefault(name, [])
            elif kind == "one":
                values.setdefault(name, None)
        try:
            return self.inspector.instantiate(cls, values)
        except (TypeError, ValueError) as exc:
            raise Malformed(f"cannot build {cls.__qualname__}: {exc}", item.pointer) from exc

    def _link(self, item: _Parsed, index: Mapping[tuple[str, str, str], _Parsed]) -> None:
        for name, relationship in (item.resource.relationships or {}).items():
            if "data" not in relationship.model_fields_set:
                continue
            data = relationship.data
            if data is None:
                value: Any = None
            elif isinstance(data, list):
                value = [self._target(raw, index) for raw in data]
            else:
                value = self._target(data, index)
            self.inspector.assign(item.entity, name, value)

    def _target(self, raw: Mapping[str, Any], index: Mapping[tuple[str, str, str], _Parsed]) -> Any:
        identifier = JSONAPIResourceIdentifier.model_validate(raw)
        found = index.get(_key(identifier.type, identifier.id, identifier.lid))
        if found is not None:
            return found.entity
        return ResourceIdentifier(identifier.type, identifier.id or identifier.lid, identifier.meta)
