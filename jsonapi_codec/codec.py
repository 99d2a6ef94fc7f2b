"""Codec facade wiring registry, inspector, resolver and wire (de)serializers."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .config import JSONAPIConfiguration
from .core.affordances import AffordanceProvider
from .core.document import DocumentModel
from .core.exceptions import CodecError
from .core.inspection import DefaultEntityInspector, EntityInspector
from .core.model import Document, ErrorObject, Link
from .core.registry import TypeRegistry
from .core.resolver import ResourceResolver
from .serializers.base import JSONAPISerializer
from .serializers.deserializer import JSONAPIDeserializer, ParsedDocument


class JSONAPICodec:
    """Serialize document models to JSON:API bytes and parse them back.

    The codec holds no per-call state; one instance can be shared by every
    request of an application once its registry is populated.
    """

    def __init__(
        self,
        configuration: JSONAPIConfiguration | None = None,
        registry: TypeRegistry | None = None,
        inspector: EntityInspector | None = None,
        affordance_provider: AffordanceProvider | None = None,
    ) -> None:
        self.configuration = configuration or JSONAPIConfiguration()
        self.registry = registry or TypeRegistry(self.configuration)
        self.inspector = inspector or DefaultEntityInspector(self.registry)
        self.resolver = ResourceResolver(
            self.configuration, self.registry, self.inspector, affordance_provider
        )
        self.serializer = JSONAPISerializer(self.configuration, self.resolver)
        self.deserializer = JSONAPIDeserializer(self.configuration, self.registry, self.inspector)

    def register(self, cls: type, type_: str | None = None) -> JSONAPICodec:
        """Register an entity class; see :meth:`TypeRegistry.register`."""
        self.registry.register(cls, type_)
        return self

    def resolve(self, model: DocumentModel) -> Document:
        """Resolve a document model without rendering it."""
        return self.resolver.resolve(model)

    def to_dict(self, model: DocumentModel) -> dict[str, Any]:
        """Return the JSON:API object of a document model."""
        return self.serializer.to_dict(self.resolver.resolve(model))

    def serialize(self, model: DocumentModel) -> bytes:
        """Return the wire bytes of a document model."""
        return self.serializer.serialize(model)

    def deserialize(
        self, payload: bytes | str | Mapping[str, Any], expected: type | None = None
    ) -> ParsedDocument:
        """Parse a JSON:API document."""
        return self.deserializer.deserialize(payload, expected)

    def serialize_errors(
        self,
        errors: Iterable[ErrorObject | CodecError],
        *,
        meta: Mapping[str, Any] | None = None,
        links: Iterable[Link] = (),
    ) -> bytes:
        """Return the wire bytes of an error document."""
        objects = [
            error.to_error_object() if isinstance(error, CodecError) else error
            for error in errors
        ]
        return self.serializer.serialize_errors(objects, meta=meta, links=links)
