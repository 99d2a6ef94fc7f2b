"""Immutable JSON:API document tree."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

# Page and document link relations.
SELF = "self"
RELATED = "related"
FIRST = "first"
PREV = "prev"
NEXT = "next"
LAST = "last"


@dataclass(frozen=True)
class ResourceIdentifier:
    """Resource identifier object: type + id."""

    type: str
    id: str
    meta: Mapping[str, Any] | None = field(default=None, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        """Return the resource identifier object."""
        result: dict[str, Any] = {"type": self.type, "id": self.id}
        if self.meta:
            result["meta"] = dict(self.meta)
        return result


@dataclass(frozen=True)
class AffordanceField:
    """Input or query property of an affordance."""

    name: str
    type: str = "text"
    required: bool = False


@dataclass(frozen=True)
class Affordance:
    """A possible action on a resource (edit, delete, search, ...)."""

    name: str
    method: str = "GET"
    target: str | None = None
    input_fields: tuple[AffordanceField, ...] = ()
    query_fields: tuple[AffordanceField, ...] = ()

    @property
    def http_method(self) -> str:
        return self.method.upper()


@dataclass(frozen=True)
class Link:
    """Hypermedia link; renders as a bare URL or a link object."""

    href: str
    rel: str = SELF
    title: str | None = None
    type: str | None = None
    hreflang: str | None = None
    name: str | None = None
    profile: str | None = None
    deprecation: str | None = None
    templated: bool = False
    meta: Mapping[str, Any] | None = None
    affordances: tuple[Affordance, ...] = ()

    def with_rel(self, rel: str) -> Link:
        """Return a copy of the link with a different relation."""
        return replace(self, rel=rel)

    def with_affordances(self, affordances: Iterable[Affordance]) -> Link:
        """Return a copy of the link carrying additional affordances."""
        return replace(self, affordances=self.affordances + tuple(affordances))


@dataclass(frozen=True)
class ToOne:
    """To-one linkage; ``identifier=None`` is an explicit null."""

    identifier: ResourceIdentifier | None


@dataclass(frozen=True)
class ToMany:
    """To-many linkage."""

    identifiers: tuple[ResourceIdentifier, ...] = ()


@dataclass(frozen=True)
class RawData:
    """Linkage given verbatim by the caller."""

    value: Any


RelationshipData = ToOne | ToMany | RawData


@dataclass(frozen=True)
class Relationship:
    """Relationship object; ``data=None`` means no linkage was attached."""

    data: RelationshipData | None = None
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None
    always_array: bool = False

    def identifiers(self) -> tuple[ResourceIdentifier, ...]:
        """Return the resource identifiers referenced by this relationship."""
        if isinstance(self.data, ToOne):
            return () if self.data.identifier is None else (self.data.identifier,)
        if isinstance(self.data, ToMany):
            return self.data.identifiers
        return ()


@dataclass(frozen=True)
class ResourceObject:
    """A resource object owned by a document's dedup table."""

    identifier: ResourceIdentifier
    attributes: Mapping[str, Any] = field(default_factory=dict)
    relationships: Mapping[str, Relationship] = field(default_factory=dict)
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None
    id_rendered: bool = True

    @property
    def type(self) -> str:
        return self.identifier.type

    @property
    def id(self) -> str:
        return self.identifier.id


@dataclass(frozen=True)
class ErrorObject:
    """JSON:API error object."""

    id: str | None = None
    status: str | None = None
    code: str | None = None
    title: str | None = None
    detail: str | None = None
    source_pointer: str | None = None
    source_parameter: str | None = None
    about_link: str | None = None
    meta: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form of the error object."""
        error: dict[str, Any] = {}
        if self.id is not None:
            error["id"] = self.id
        if self.about_link is not None:
            error["links"] = {"about": self.about_link}
        for key in ("status", "code", "title", "detail"):
            value = getattr(self, key)
            if value is not None:
                error[key] = value
        source: dict[str, str] = {}
        if self.source_pointer is not None:
            source["pointer"] = self.source_pointer
        if self.source_parameter is not None:
            source["parameter"] = self.source_parameter
        if source:
            error["source"] = source
        if self.meta:
            error["meta"] = dict(self.meta)
        return error


@dataclass(frozen=True)
class Document:
    """Resolved top-level JSON:API document."""

    data: ResourceObject | tuple[ResourceObject, ...] | None = None
    included: tuple[ResourceObject, ...] = ()
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None
    errors: tuple[ErrorObject, ...] = ()
    jsonapi_version: str | None = None
    has_data: bool = True

    def __post_init__(self) -> None:
        if self.errors and (self.data is not None or self.included):
            raise ValueError("A JSON:API document must not contain both data and errors.")
        seen: set[ResourceIdentifier] = set()
        for resource in self.primary_resources() + self.included:
            if resource.identifier in seen:
                raise ValueError(f"Duplicate resource object {resource.identifier}.")
            seen.add(resource.identifier)

    def primary_resources(self) -> tuple[ResourceObject, ...]:
        """Return primary data as a tuple."""
        if self.data is None:
            return ()
        if isinstance(self.data, ResourceObject):
            return (self.data,)
        return self.data
