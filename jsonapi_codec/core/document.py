"""Fluent assembly of JSON:API document models."""

from __future__ import annotations

import logging
import types
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

from jsonapi_codec.pagination import PAGE, PagedModel, PageMetadata, PageNumberPagination

from .exceptions import BuilderReused
from .model import RELATED, SELF, Link

logger = logging.getLogger(__name__)

_MISSING: Any = object()

ONE = "one"
MANY = "many"
RAW = "raw"


@dataclass(frozen=True)
class EntityModel:
    """An entity with resource-level links and meta."""

    content: Any
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None

    @classmethod
    def of(
        cls,
        content: Any,
        links: Iterable[Link] = (),
        meta: Mapping[str, Any] | None = None,
    ) -> EntityModel:
        if isinstance(content, EntityModel):
            return content
        return cls(content, tuple(links), dict(meta) if meta else None)


@dataclass(frozen=True)
class RelationshipSpec:
    """A relationship as staged by the builder, still holding raw targets.

    ``kind`` is None when only links or meta were attached. A ``ONE`` spec
    with no targets is an explicit null.
    """

    name: str
    kind: str | None = None
    targets: tuple[Any, ...] = ()
    raw: Any = None
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] | None = None
    always_array: bool = False


@dataclass(frozen=True)
class DocumentModel:
    """Immutable result of :meth:`JSONAPIDocumentBuilder.build`."""

    data: tuple[Any, ...] = ()
    has_model: bool = False
    is_collection: bool = False
    relationships: Mapping[str, RelationshipSpec] = field(default_factory=dict)
    included: tuple[EntityModel, ...] = ()
    links: tuple[Link, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)
    fields: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    page: PageMetadata | None = None

    @property
    def primary(self) -> Any:
        """Return the single primary item, or None."""
        if self.is_collection or not self.data:
            return None
        return self.data[0]


def jsonapi_model() -> JSONAPIDocumentBuilder:
    """Return a fresh document builder."""
    return JSONAPIDocumentBuilder()


# Entities may themselves be iterable (pydantic models yield field pairs), so
# only real containers count as collections.
_COLLECTION_TYPES = (list, tuple, set, frozenset, types.GeneratorType)


def _is_collection(value: Any) -> bool:
    return isinstance(value, _COLLECTION_TYPES)


class JSONAPIDocumentBuilder:
    """Accumulate primary data, relationships, includes, links and meta.

    A builder is consumed once by :meth:`build`; any later call raises
    :class:`BuilderReused`.
    """

    def __init__(self) -> None:
        self._data: tuple[Any, ...] = ()
        self._has_model = False
        self._is_collection = False
        self._page: PageMetadata | None = None
        self._relationships: dict[str, RelationshipSpec] = {}
        self._included: list[EntityModel] = []
        self._links: list[Link] = []
        self._meta: dict[str, Any] = {}
        self._fields: dict[str, tuple[str, ...]] = {}
        self._built = False

    def model(self, model: Any) -> JSONAPIDocumentBuilder:
        """Set the primary data: an entity, an EntityModel, a collection or a PagedModel."""
        self._check_not_built("model")
        if model is None:
            raise ValueError("Model must not be None.")
        if self._has_model:
            raise ValueError("Model object already set.")
        if isinstance(model, PagedModel):
            self._page = model.page
            items: Any = model.content
        elif isinstance(model, (EntityModel, DocumentModel)) or not _is_collection(model):
            items = None
        else:
            items = model

        if items is None:
            if isinstance(model, DocumentModel):
                raise ValueError("A built document model can only be used as a collection item.")
            self._data = (EntityModel.of(model),)
        else:
            if self._relationships:
                raise ValueError("Relationships can only be attached to a single primary resource.")
            self._data = tuple(
                item if isinstance(item, DocumentModel) else EntityModel.of(item)
                for item in items
            )
            self._is_collection = True
        self._has_model = True
        return self

    def relationship(
        self,
        name: str,
        data: Any = _MISSING,
        *,
        self_link: str | None = None,
        related_link: str | None = None,
        links: Iterable[Link] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> JSONAPIDocumentBuilder:
        """Attach relationship data, links and/or meta to the primary resource.

        ``data`` may be an entity, an EntityModel, a ResourceIdentifier, a
        collection of those, a raw mapping used verbatim as linkage, or None
        for an explicit null to-one relationship. Adding a second target to a
        to-one relationship turns it into a to-many relationship. None is
        rejected once the relationship holds targets or is to-many.
        """
        self._check_not_built("relationship")
        if not name:
            raise ValueError("Relationship name must not be empty.")
        if self._is_collection:
            raise ValueError("Relationships can only be attached to a single primary resource.")
        if data is _MISSING and self_link is None and related_link is None and links is None and meta is None:
            raise ValueError("At least one of data, links and meta must be given.")

        spec = self._relationships.get(name, RelationshipSpec(name))
        if data is not _MISSING:
            spec = self._add_data(spec, data)
        if self_link is not None or related_link is not None or links is not None:
            spec = self._replace_links(spec, self_link, related_link, links)
        if meta is not None:
            spec = replace(spec, meta={**(spec.meta or {}), **meta})
        self._relationships[name] = spec
        return self

    def relationship_with_data_array(self, name: str) -> JSONAPIDocumentBuilder:
        """Always render the relationship's data as an array, even when empty."""
        self._check_not_built("relationship_with_data_array")
        if not name:
            raise ValueError("Relationship name must not be empty.")
        spec = self._relationships.get(name, RelationshipSpec(name))
        self._relationships[name] = replace(spec, always_array=True)
        return self

    def included(self, value: Any) -> JSONAPIDocumentBuilder:
        """Stage one entity or a collection of entities as included resources."""
        self._check_not_built("included")
        if value is None:
            raise ValueError("Included entity must not be None.")
        items = value if _is_collection(value) else (value,)
        self._included.extend(EntityModel.of(item) for item in items)
        return self

    def link(self, link: Link | str, rel: str = SELF) -> JSONAPIDocumentBuilder:
        """Add a top-level link."""
        self._check_not_built("link")
        self._links.append(link if isinstance(link, Link) else Link(link, rel=rel))
        return self

    def links(self, links: Iterable[Link]) -> JSONAPIDocumentBuilder:
        """Add several top-level links."""
        self._check_not_built("links")
        self._links.extend(links)
        return self

    def meta(self, key: str, value: Any) -> JSONAPIDocumentBuilder:
        """Add a top-level meta entry."""
        self._check_not_built("meta")
        self._meta[key] = value
        return self

    def page_meta(self) -> JSONAPIDocumentBuilder:
        """Add ``meta.page`` from the page metadata of the paged primary collection."""
        self._check_not_built("page_meta")
        page = self._require_page()
        self._meta[PAGE] = PageNumberPagination().get_meta(page)
        return self

    def page_links(
        self,
        link_base: str,
        number_parameter: str = "page[number]",
        size_parameter: str = "page[size]",
    ) -> JSONAPIDocumentBuilder:
        """Add first/prev/next/last links for the paged primary collection."""
        self._check_not_built("page_links")
        page = self._require_page()
        pagination = PageNumberPagination(number_parameter, size_parameter)
        self._links.extend(pagination.get_links(link_base, page))
        return self

    def fields(self, type_: str, *names: str) -> JSONAPIDocumentBuilder:
        """Restrict rendered attributes and relationships of resources of ``type_``."""
        self._check_not_built("fields")
        if not type_:
            raise ValueError("Sparse fieldset type must not be empty.")
        existing = self._fields.get(type_, ())
        self._fields[type_] = existing + tuple(n for n in names if n not in existing)
        return self

    def build(self) -> DocumentModel:
        """Freeze the accumulated state into an immutable document model."""
        self._check_not_built("build")
        self._built = True
        logger.debug(
            "Built document model with %d primary item(s), %d relationship(s), %d include(s)",
            len(self._data),
            len(self._relationships),
            len(self._included),
        )
        return DocumentModel(
            data=self._data,
            has_model=self._has_model,
            is_collection=self._is_collection,
            relationships=dict(self._relationships),
            included=tuple(self._included),
            links=tuple(self._links),
            meta=dict(self._meta),
            fields=dict(self._fields),
            page=self._page,
        )

    def _check_not_built(self, operation: str) -> None:
        if self._built:
            raise BuilderReused(operation)

    def _require_page(self) -> PageMetadata:
        if not self._has_model:
            raise ValueError("Model object (PagedModel) must be set.")
        if self._page is None:
            raise ValueError("Model object must be a PagedModel.")
        return self._page

    def _add_data(self, spec: RelationshipSpec, data: Any) -> RelationshipSpec:
        if isinstance(data, MappingABC):
            if spec.kind not in (None, RAW):
                raise ValueError(f"Relationship '{spec.name}' already holds resource linkage.")
            return replace(spec, kind=RAW, raw=dict(data))
        if spec.kind == RAW:
            raise ValueError(f"Relationship '{spec.name}' already holds raw data.")
        if data is None:
            if spec.targets or spec.kind == MANY:
                raise ValueError(
                    f"Relationship '{spec.name}' already holds linkage and cannot be set to null."
                )
            return replace(spec, kind=ONE, targets=())
        if _is_collection(data):
            return replace(spec, kind=MANY, targets=spec.targets + tuple(data))
        if spec.kind is None or (spec.kind == ONE and not spec.targets):
            return replace(spec, kind=ONE, targets=(data,))
        return replace(spec, kind=MANY, targets=spec.targets + (data,))

    def _replace_links(
        self,
        spec: RelationshipSpec,
        self_link: str | None,
        related_link: str | None,
        links: Iterable[Link] | None,
    ) -> RelationshipSpec:
        new_links = list(links or ())
        if self_link and self_link.strip():
            new_links.append(Link(self_link, rel=SELF))
        if related_link and related_link.strip():
            new_links.append(Link(related_link, rel=RELATED))
        if not any(link.rel in (SELF, RELATED) for link in new_links):
            raise ValueError(
                'JSON:API relationship links must contain a "self" link or a "related" link.'
            )
        return replace(spec, links=tuple(new_links))

