"""Bidirectional mapping between entity classes and JSON:API types."""

from __future__ import annotations

import logging
from collections.abc import Mapping as MappingABC
from typing import Any, Iterable, Mapping

import inflect

from jsonapi_codec.config import JSONAPIConfiguration

from .exceptions import UnknownType, UnresolvableType

logger = logging.getLogger(__name__)

_inflector = inflect.engine()

# Values of these classes are never resources.
_NON_ENTITY_TYPES: tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    int,
    float,
    complex,
    bool,
    list,
    tuple,
    set,
    frozenset,
    type(None),
)


class TypeRegistry:
    """Resolve JSON:API type strings for classes and classes for type strings.

    Serialization resolves in this order: an explicit registration for the
    exact class (including ``type_for_class`` overrides of the configuration),
    a ``__jsonapi_type__`` class attribute, and finally the class name with the
    configured casing and pluralization applied.

    Deserialization only consults explicit registrations, plus a fallback over
    registered candidates when exactly one candidate matches, because a
    derived name cannot be inverted safely.
    """

    def __init__(self, configuration: JSONAPIConfiguration | None = None) -> None:
        self.configuration = configuration or JSONAPIConfiguration()
        self._class_to_type: dict[type, str] = dict(self.configuration.type_for_class)
        self._type_to_class: dict[str, type] = {
            type_: cls for cls, type_ in self.configuration.type_for_class.items()
        }
        self._candidates: list[type] = []
        self._derived: dict[type, str] = {}

    def register(self, cls: type, type_: str | None = None) -> TypeRegistry:
        """Register ``cls`` for both directions under ``type_`` (or its derived type)."""
        resolved = type_ or self._annotated_or_derived(cls)
        existing = self._type_to_class.get(resolved)
        if existing is not None and existing is not cls:
            raise ValueError(
                f"JSON:API type '{resolved}' is already registered for {existing.__qualname__}"
            )
        self._class_to_type[cls] = resolved
        self._type_to_class[resolved] = cls
        logger.debug("Registered JSON:API type %r for %s", resolved, cls.__qualname__)
        return self

    def register_all(self, classes: Iterable[type]) -> TypeRegistry:
        """Register several classes under their annotated or derived types."""
        for cls in classes:
            self.register(cls)
        return self

    def register_candidate(self, cls: type) -> TypeRegistry:
        """Register ``cls`` as a deserialization fallback without an explicit type."""
        if cls not in self._candidates:
            self._candidates.append(cls)
        return self

    def is_registered(self, cls: type) -> bool:
        """Return True if ``cls`` was registered explicitly."""
        return cls in self._class_to_type

    def registered_classes(self) -> tuple[type, ...]:
        """Return explicitly registered classes."""
        return tuple(self._class_to_type)

    def class_to_type(self, cls: type) -> str:
        """Return the JSON:API type for ``cls``."""
        explicit = self._class_to_type.get(cls)
        if explicit is not None:
            return explicit
        return self._annotated_or_derived(cls)

    def type_of(self, entity: Any) -> str:
        """Return the JSON:API type for an entity instance."""
        return self.class_to_type(type(entity))

    def type_to_class(
        self, type_: str, attributes: Mapping[str, Any] | None = None
    ) -> type:
        """Return the class registered for ``type_``."""
        cls = self._type_to_class.get(type_)
        if cls is not None:
            return cls
        matches = [
            candidate
            for candidate in self._candidates
            if self._annotated_or_derived(candidate) == type_
        ]
        if len(matches) > 1 and attributes is not None:
            matches = [
                candidate for candidate in matches if _has_fields(candidate, attributes)
            ]
        if len(matches) == 1:
            logger.debug("Resolved JSON:API type %r through candidate fallback", type_)
            return matches[0]
        raise UnknownType(type_)

    def _annotated_or_derived(self, cls: type) -> str:
        annotated = getattr(cls, "__jsonapi_type__", None)
        if annotated is not None:
            if not isinstance(annotated, str) or not annotated:
                raise UnresolvableType(cls, "__jsonapi_type__ must be a non-empty string")
            return annotated
        cached = self._derived.get(cls)
        if cached is not None:
            return cached
        return self._derived.setdefault(cls, self._derive(cls))

    def _derive(self, cls: type) -> str:
        if not isinstance(cls, type):
            raise UnresolvableType(cls, "not a class")
        if issubclass(cls, _NON_ENTITY_TYPES) or issubclass(cls, MappingABC):
            raise UnresolvableType(cls, "builtin values are not JSON:API resources")
        name = cls.__name__
        if self.configuration.lowercased_type_rendered:
            name = name.lower()
        if self.configuration.pluralized_type_rendered:
            name = _inflector.plural_noun(name) or name
        return name


def _has_fields(cls: type, attributes: Mapping[str, Any]) -> bool:
    fields: set[str] = set()
    model_fields = getattr(cls, "model_fields", None)
    if isinstance(model_fields, dict):
        fields.update(model_fields)
    dataclass_fields = getattr(cls, "__dataclass_fields__", None)
    if isinstance(dataclass_fields, dict):
        fields.update(dataclass_fields)
    fields.update(getattr(cls, "__annotations__", {}))
    return set(attributes) <= fields
