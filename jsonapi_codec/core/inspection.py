"""Entity inspection: identity field, attributes and relationships of objects."""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, runtime_checkable

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper
from sqlalchemy.orm.attributes import NO_VALUE
from sqlalchemy.orm.interfaces import MANYTOONE

from .exceptions import AmbiguousIdentity
from .registry import TypeRegistry

logger = logging.getLogger(__name__)

ID_LITERAL = "id"
_COLLECTION_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class EntityDescription:
    """Identity and named field values of one entity."""

    id_field: str
    id_value: Any
    attributes: dict[str, Any] = field(default_factory=dict)
    # name -> entity, list of entities, or None
    relationships: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class EntityInspector(Protocol):
    """Capability the codec needs from the object-mapping layer."""

    def describe(self, entity: Any) -> EntityDescription:
        """Return identity, attributes and relationships of ``entity``."""
        ...

    def id_field_for_class(self, cls: type) -> str:
        """Return the name of the identity field of ``cls``."""
        ...

    def relationship_kind(self, cls: type, name: str) -> str | None:
        """Return "one", "many" or None when ``name`` is not a declared relationship."""
        ...

    def coerce_id(self, cls: type, id_field: str, value: str) -> Any:
        """Convert a wire id to the type of the identity field."""
        ...

    def instantiate(self, cls: type, values: Mapping[str, Any]) -> Any:
        """Create an instance of ``cls`` from attribute values."""
        ...

    def assign(self, entity: Any, name: str, value: Any) -> None:
        """Set a relationship value on ``entity``."""
        ...


def _mapper_for(cls: type) -> Mapper | None:
    mapper = sa_inspect(cls, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def _is_pydantic(cls: type) -> bool:
    return isinstance(getattr(cls, "model_fields", None), dict) and hasattr(
        cls, "model_validate"
    )


def _type_hints(cls: type) -> dict[str, Any]:
    if _is_pydantic(cls):
        return {name: info.annotation for name, info in cls.model_fields.items()}
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to raw annotations.
        return dict(getattr(cls, "__annotations__", {}))


class DefaultEntityInspector:
    """Inspect dataclasses, pydantic models, SQLAlchemy models and plain objects.

    A field is treated as a relationship when its value is an instance of a
    class registered in the type registry (or a collection of such instances),
    when its annotation refers to a registered class, or when it is a loaded
    SQLAlchemy relationship.
    """

    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry

    def id_field_for_class(self, cls: type) -> str:
        """Return the name of the identity field of ``cls``."""
        explicit = getattr(cls, "__jsonapi_id__", None)
        if isinstance(explicit, str) and explicit:
            return explicit
        if dataclasses.is_dataclass(cls):
            for dc_field in dataclasses.fields(cls):
                if dc_field.metadata.get("jsonapi_id"):
                    return dc_field.name
        if _is_pydantic(cls):
            for name, info in cls.model_fields.items():
                extra = info.json_schema_extra
                if isinstance(extra, dict) and extra.get("jsonapi_id"):
                    return name
        mapper = _mapper_for(cls)
        if mapper is not None:
            primary_key = mapper.primary_key
            if len(primary_key) == 1:
                return mapper.get_property_by_column(primary_key[0]).key
            raise AmbiguousIdentity(cls, "composite primary keys are not supported")
        names = self._declared_fields(cls)
        if names is None or ID_LITERAL in names:
            return ID_LITERAL
        raise AmbiguousIdentity(cls, "no identity field declared")

    def describe(self, entity: Any) -> EntityDescription:
        """Return identity, attributes and relationships of ``entity``."""
        cls = type(entity)
        id_field = self.id_field_for_class(cls)
        if not hasattr(entity, id_field):
            raise AmbiguousIdentity(cls, f"missing identity field '{id_field}'")
        id_value = getattr(entity, id_field)
        if id_value is None:
            raise AmbiguousIdentity(cls, f"identity field '{id_field}' is None")

        attributes: dict[str, Any] = {}
        relationships: dict[str, Any] = {}
        mapper = _mapper_for(cls)
        if mapper is not None:
            self._describe_mapped(entity, mapper, id_field, attributes, relationships)
        else:
            for name, value in self._field_values(entity):
                if name == id_field:
                    continue
                kind = self.relationship_kind(cls, name)
                if kind is not None or self._holds_entities(value):
                    relationships[name] = list(value) if _is_collection(value) else value
                else:
                    attributes[name] = value
        return EntityDescription(id_field, id_value, attributes, relationships)

    def relationship_kind(self, cls: type, name: str) -> str | None:
        """Return "one", "many" or None when ``name`` is not a declared relationship."""
        mapper = _mapper_for(cls)
        if mapper is not None:
            relationship = mapper.relationships.get(name)
            if relationship is None:
                return None
            return "many" if relationship.uselist else "one"
        hint = _type_hints(cls).get(name)
        if hint is None:
            return None
        return self._annotation_kind(hint)

    def coerce_id(self, cls: type, id_field: str, value: str) -> Any:
        """Convert a wire id to the type of the identity field."""
        target: Any = None
        mapper = _mapper_for(cls)
        if mapper is not None:
            column = mapper.columns.get(id_field)
            if column is not None:
                try:
                    target = column.type.python_type
                except NotImplementedError:
                    target = None
        else:
            target = _type_hints(cls).get(id_field)
            if typing.get_origin(target) in (typing.Union, types.UnionType):
                args = [arg for arg in typing.get_args(target) if arg is not type(None)]
                target = args[0] if len(args) == 1 else None
        if target is int:
            return int(value)
        if target is uuid.UUID:
            return uuid.UUID(value)
        return value

    def instantiate(self, cls: type, values: Mapping[str, Any]) -> Any:
        """Create an instance of ``cls`` from attribute values."""
        if _is_pydantic(cls):
            return self._instantiate_pydantic(cls, values)
        if dataclasses.is_dataclass(cls):
            init_fields = {f.name for f in dataclasses.fields(cls) if f.init}
            instance = cls(**{k: v for k, v in values.items() if k in init_fields})
            for name, value in values.items():
                if name not in init_fields:
                    setattr(instance, name, value)
            return instance
        mapper = _mapper_for(cls)
        if mapper is not None:
            known = set(mapper.attrs.keys())
            return cls(**{k: v for k, v in values.items() if k in known})
        instance = cls.__new__(cls)
        for name, value in values.items():
            setattr(instance, name, value)
        return instance

    def assign(self, entity: Any, name: str, value: Any) -> None:
        """Set a relationship value on ``entity``."""
        cls = type(entity)
        if _is_pydantic(cls) and name not in cls.model_fields:
            logger.debug("Ignoring relationship %r not declared on %s", name, cls.__qualname__)
            return
        mapper = _mapper_for(cls)
        if mapper is not None and name in mapper.relationships:
            # Mapped relationships only hold mapped instances, never placeholders.
            if isinstance(value, list):
                value = [item for item in value if _mapper_for(type(item)) is not None]
            elif value is not None and _mapper_for(type(value)) is None:
                logger.debug("Skipping unresolved linkage %r on %s", name, cls.__qualname__)
                return
        setattr(entity, name, value)

    def _instantiate_pydantic(self, cls: Any, values: Mapping[str, Any]) -> Any:
        """Validate attribute fields only; relationship fields are set by :meth:`assign`.

        Relationship placeholders would fail validation of required to-one
        fields, so they bypass it through ``model_construct``.
        """
        linked = {name for name in cls.model_fields if self.relationship_kind(cls, name) is not None}
        if not linked:
            return cls.model_validate(dict(values))
        attributes = {
            name: value
            for name, value in values.items()
            if name in cls.model_fields and name not in linked
        }
        missing = [
            name
            for name, info in cls.model_fields.items()
            if name not in values and info.is_required()
        ]
        if missing:
            raise ValueError(f"missing required fields {missing}")
        instance = cls.model_construct(**{k: v for k, v in values.items() if k in linked})
        for name, value in attributes.items():
            cls.__pydantic_validator__.validate_assignment(instance, name, value)
        return instance

    def _describe_mapped(
        self,
        entity: Any,
        mapper: Mapper,
        id_field: str,
        attributes: dict[str, Any],
        relationships: dict[str, Any],
    ) -> None:
        state = sa_inspect(entity)
        # Foreign keys backing a to-one relationship are rendered as its linkage.
        foreign_keys = {
            column
            for relationship in mapper.relationships
            if relationship.direction is MANYTOONE
            for column in relationship.local_columns
        }
        for column_attr in mapper.column_attrs:
            if column_attr.key == id_field:
                continue
            if any(column in foreign_keys for column in column_attr.columns):
                continue
            attributes[column_attr.key] = getattr(entity, column_attr.key)
        for relationship in mapper.relationships:
            # Unloaded relationships are left out instead of triggering a lazy load.
            if state.attrs[relationship.key].loaded_value is NO_VALUE:
                continue
            related = getattr(entity, relationship.key)
            if relationship.uselist:
                relationships[relationship.key] = list(related or [])
            else:
                relationships[relationship.key] = related

    def _declared_fields(self, cls: type) -> tuple[str, ...] | None:
        if dataclasses.is_dataclass(cls):
            return tuple(f.name for f in dataclasses.fields(cls))
        if _is_pydantic(cls):
            return tuple(cls.model_fields)
        return None

    def _field_values(self, entity: Any) -> list[tuple[str, Any]]:
        cls = type(entity)
        names = self._declared_fields(cls)
        if names is not None:
            return [(name, getattr(entity, name)) for name in names]
        return [
            (name, value)
            for name, value in vars(entity).items()
            if not name.startswith("_")
        ]

    def _is_entity(self, value: Any) -> bool:
        return self.registry.is_registered(type(value)) or _mapper_for(type(value)) is not None

    def _holds_entities(self, value: Any) -> bool:
        if _is_collection(value):
            return bool(value) and all(self._is_entity(item) for item in value)
        return value is not None and self._is_entity(value)

    def _annotation_kind(self, hint: Any) -> str | None:
        origin = typing.get_origin(hint)
        args = typing.get_args(hint)
        if origin in _COLLECTION_TYPES:
            items = [arg for arg in args if arg is not Ellipsis]
            if items and all(self._refers_to_entity(arg) for arg in items):
                return "many"
            return None
        if args and origin is not None:
            # Optional[X] / X | None
            non_null = [arg for arg in args if arg is not type(None)]
            if len(non_null) == 1:
                return self._annotation_kind(non_null[0])
            return None
        return "one" if self._refers_to_entity(hint) else None

    def _refers_to_entity(self, hint: Any) -> bool:
        return isinstance(hint, type) and (
            self.registry.is_registered(hint) or _mapper_for(hint) is not None
        )


def _is_collection(value: Any) -> bool:
    return isinstance(value, _COLLECTION_TYPES)
