"""Resolve document models into deduplicated, cycle-safe JSON:API documents."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Mapping

from jsonapi_codec.config import JSONAPIConfiguration
from jsonapi_codec.pagination import PAGE, PageNumberPagination

from .affordances import AffordanceProvider
from .document import MANY, ONE, RAW, DocumentModel, EntityModel, RelationshipSpec
from .exceptions import CodecError, SparseFieldsetConflict
from .inspection import EntityDescription, EntityInspector
from .model import (
    FIRST,
    LAST,
    NEXT,
    PREV,
    SELF,
    Document,
    Link,
    RawData,
    Relationship,
    RelationshipData,
    ResourceIdentifier,
    ResourceObject,
    ToMany,
    ToOne,
)
from .registry import TypeRegistry

logger = logging.getLogger(__name__)

_PAGE_RELATIONS = frozenset({FIRST, PREV, NEXT, LAST})


@dataclass
class _Pending:
    """A resource waiting in the traversal frontier."""

    identifier: ResourceIdentifier
    entity: EntityModel
    relationships: Mapping[str, RelationshipSpec] = field(default_factory=dict)
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None


class _Traversal:
    """State of one resolution pass; never shared between calls."""

    def __init__(self, resolver: ResourceResolver, fields: Mapping[str, tuple[str, ...]]) -> None:
        self.resolver = resolver
        self.fields: dict[str, tuple[str, ...]] = dict(fields)
        self.visited: set[ResourceIdentifier] = set()
        self.frontier: deque[_Pending] = deque()
        self.table: dict[ResourceIdentifier, ResourceObject] = {}
        self.descriptions: dict[int, tuple[Any, EntityDescription]] = {}

    def describe(self, content: Any) -> EntityDescription:
        cached = self.descriptions.get(id(content))
        if cached is not None and cached[0] is content:
            return cached[1]
        description = self.resolver.inspector.describe(content)
        # Keep the entity alive so its id() is not reused during this pass.
        self.descriptions[id(content)] = (content, description)
        return description

    def identify(self, target: Any) -> ResourceIdentifier:
        if isinstance(target, ResourceIdentifier):
            return target
        content = target.content if isinstance(target, EntityModel) else target
        type_ = self.resolver.registry.class_to_type(type(content))
        description = self.describe(content)
        return ResourceIdentifier(type_, str(description.id_value))

    def stage(self, pending: _Pending) -> bool:
        """Add a resource to the frontier unless it was already visited."""
        if pending.identifier in self.visited:
            return False
        self.visited.add(pending.identifier)
        self.frontier.append(pending)
        return True


class ResourceResolver:
    """Walk primary data and relationship targets breadth-first.

    Each distinct ``(type, id)`` is visited exactly once: a resource that is
    reached again (including through a cycle back to itself) is referenced
    by identifier but not processed a second time. Relationships only ever
    hold identifiers; resource objects live in the dedup table.
    """

    def __init__(
        self,
        configuration: JSONAPIConfiguration,
        registry: TypeRegistry,
        inspector: EntityInspector,
        affordance_provider: AffordanceProvider | None = None,
    ) -> None:
        self.configuration = configuration
        self.registry = registry
        self.inspector = inspector
        self.affordance_provider = affordance_provider

    def resolve(self, model: DocumentModel) -> Document:
        """Resolve ``model`` into an immutable document."""
        if model.relationships and model.primary is None:
            raise CodecError("Relationships require a single primary resource.")
        traversal = _Traversal(self, model.fields)
        primary: list[ResourceIdentifier] = []
        includes: list[EntityModel] = list(model.included)

        for item in model.data:
            pending = self._primary_pending(traversal, model, item, includes)
            if traversal.stage(pending):
                primary.append(pending.identifier)
            else:
                logger.debug("Skipping duplicate primary resource %s", pending.identifier)

        for entity in includes:
            identifier = traversal.identify(entity)
            traversal.stage(_Pending(identifier, entity, links=entity.links, meta=entity.meta))

        while traversal.frontier:
            pending = traversal.frontier.popleft()
            traversal.table[pending.identifier] = self._resource_object(traversal, pending)

        primary_set = set(primary)
        included = tuple(
            resource for ident, resource in traversal.table.items() if ident not in primary_set
        )
        data: ResourceObject | tuple[ResourceObject, ...] | None
        if model.is_collection:
            data = tuple(traversal.table[ident] for ident in primary)
        elif primary:
            data = traversal.table[primary[0]]
        else:
            data = None

        meta = self._document_meta(model)
        links = self._document_links(model)
        logger.debug(
            "Resolved document: %d primary resource(s), %d included", len(primary), len(included)
        )
        return Document(
            data=data,
            included=included,
            links=links,
            meta=meta or None,
            jsonapi_version=(
                self.configuration.jsonapi_version
                if self.configuration.jsonapi_version_rendered
                else None
            ),
            has_data=model.has_model or not (meta or links),
        )

    def _primary_pending(
        self,
        traversal: _Traversal,
        model: DocumentModel,
        item: Any,
        includes: list[EntityModel],
    ) -> _Pending:
        if isinstance(item, DocumentModel):
            # Collection item built with its own builder.
            entity = item.primary
            if entity is None:
                raise CodecError("A collection item model must hold a single primary resource.")
            includes.extend(item.included)
            for type_, names in item.fields.items():
                traversal.fields.setdefault(type_, names)
            return _Pending(
                traversal.identify(entity),
                entity,
                relationships=item.relationships,
                links=entity.links + item.links,
                meta={**(entity.meta or {}), **item.meta} or None,
            )
        return _Pending(
            traversal.identify(item),
            item,
            relationships=model.relationships if not model.is_collection else {},
            links=item.links,
            meta=item.meta,
        )

    def _resource_object(self, traversal: _Traversal, pending: _Pending) -> ResourceObject:
        content = pending.entity.content
        identifier = pending.identifier
        description = traversal.describe(content)

        attributes: dict[str, Any] = {}
        if self.configuration.id_attribute_rendered:
            attributes[description.id_field] = description.id_value
        attributes.update(description.attributes)

        specs: dict[str, RelationshipSpec] = {}
        for name, value in description.relationships.items():
            specs[name] = self._spec_from_field(type(content), name, value)
        for name, spec in pending.relationships.items():
            existing = specs.get(name)
            if existing is not None and spec.kind is None:
                spec = RelationshipSpec(
                    name,
                    existing.kind,
                    existing.targets,
                    existing.raw,
                    spec.links,
                    spec.meta,
                    spec.always_array,
                )
            specs[name] = spec

        fieldset = traversal.fields.get(identifier.type)
        if fieldset is not None:
            for name in fieldset:
                if name not in attributes and name not in specs:
                    raise SparseFieldsetConflict(identifier.type, name)
            attributes = {k: v for k, v in attributes.items() if k in fieldset}
            specs = {k: v for k, v in specs.items() if k in fieldset}

        relationships = {
            name: self._relationship(traversal, spec) for name, spec in specs.items()
        }

        sentinel = self.configuration.id_sentinel_for(identifier.type)
        return ResourceObject(
            identifier=identifier,
            attributes=attributes,
            relationships=relationships,
            links=self._resource_links(content, pending.links),
            meta=dict(pending.meta) if pending.meta else None,
            id_rendered=sentinel is None or identifier.id != sentinel,
        )

    def _spec_from_field(self, cls: type, name: str, value: Any) -> RelationshipSpec:
        if isinstance(value, list):
            return RelationshipSpec(name, MANY, tuple(value))
        if value is None:
            if self.inspector.relationship_kind(cls, name) == MANY:
                return RelationshipSpec(name, MANY)
            return RelationshipSpec(name, ONE)
        return RelationshipSpec(name, ONE, (value,))

    def _relationship(self, traversal: _Traversal, spec: RelationshipSpec) -> Relationship:
        data: RelationshipData | None
        if spec.kind == RAW:
            data = RawData(spec.raw)
        elif spec.kind is None:
            data = ToMany(()) if spec.always_array else None
        else:
            identifiers = tuple(self._link_target(traversal, target) for target in spec.targets)
            if spec.kind == MANY or spec.always_array:
                data = ToMany(identifiers)
            else:
                data = ToOne(identifiers[0] if identifiers else None)
        return Relationship(
            data=data,
            links=spec.links,
            meta=dict(spec.meta) if spec.meta else None,
            always_array=spec.always_array,
        )

    def _link_target(self, traversal: _Traversal, target: Any) -> ResourceIdentifier:
        identifier = traversal.identify(target)
        if isinstance(target, ResourceIdentifier):
            return identifier
        entity = EntityModel.of(target)
        traversal.stage(_Pending(identifier, entity, links=entity.links, meta=entity.meta))
        return identifier

    def _resource_links(self, content: Any, links: tuple[Link, ...]) -> tuple[Link, ...]:
        if self.affordance_provider is None:
            return links
        affordances = tuple(self.affordance_provider.affordances_for(content))
        if not affordances:
            return links
        if not any(link.rel == SELF for link in links):
            logger.debug("Dropping affordances of %r: resource has no self link", content)
            return links
        return tuple(
            link.with_affordances(affordances) if link.rel == SELF else link for link in links
        )

    def _document_meta(self, model: DocumentModel) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if model.page is not None and self.configuration.page_meta_automatically_created:
            meta[PAGE] = PageNumberPagination().get_meta(model.page)
        # Builder meta overrides generated page meta.
        meta.update(model.meta)
        return meta

    def _document_links(self, model: DocumentModel) -> tuple[Link, ...]:
        links = model.links
        if model.page is None or not self.configuration.pagination_links_automatically_created:
            return links
        if any(link.rel in _PAGE_RELATIONS for link in links):
            return links
        self_link = next((link for link in links if link.rel == SELF), None)
        if self_link is None:
            return links
        pagination = PageNumberPagination(
            self.configuration.page_number_request_parameter,
            self.configuration.page_size_request_parameter,
        )
        return links + tuple(pagination.get_links(self_link.href, model.page))
