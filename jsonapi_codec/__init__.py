"""Bidirectional JSON:API v1.1 codec for Python object graphs."""

from .codec import JSONAPICodec
from .config import AffordanceType, JSONAPIConfiguration
from .core.document import EntityModel, JSONAPIDocumentBuilder, jsonapi_model
from .core.errors import JSONAPIErrorBuilder
from .core.exceptions import (
    AmbiguousIdentity,
    BuilderReused,
    CodecError,
    Malformed,
    SparseFieldsetConflict,
    UnknownType,
    UnresolvableType,
)
from .core.model import Link, ResourceIdentifier
from .core.registry import TypeRegistry
from .pagination import PagedModel, PageMetadata
from .serializers import JSONAPIDeserializer, JSONAPISerializer, ParsedDocument

__all__ = [
    "AffordanceType",
    "AmbiguousIdentity",
    "BuilderReused",
    "CodecError",
    "EntityModel",
    "JSONAPICodec",
    "JSONAPIConfiguration",
    "JSONAPIDeserializer",
    "JSONAPIDocumentBuilder",
    "JSONAPIErrorBuilder",
    "JSONAPISerializer",
    "Link",
    "Malformed",
    "PagedModel",
    "PageMetadata",
    "ParsedDocument",
    "ResourceIdentifier",
    "SparseFieldsetConflict",
    "TypeRegistry",
    "UnknownType",
    "UnresolvableType",
    "jsonapi_model",
]
