"""Core JSON:API model, errors and exceptions."""

from .errors import JSONAPIErrorBuilder
from .exceptions import (
    AmbiguousIdentity,
    BuilderReused,
    CodecError,
    Malformed,
    SparseFieldsetConflict,
    UnknownType,
    UnresolvableType,
)
from .model import (
    Affordance,
    AffordanceField,
    Document,
    ErrorObject,
    Link,
    Relationship,
    ResourceIdentifier,
    ResourceObject,
)

__all__ = [
    "Affordance",
    "AffordanceField",
    "AmbiguousIdentity",
    "BuilderReused",
    "CodecError",
    "Document",
    "ErrorObject",
    "JSONAPIErrorBuilder",
    "Link",
    "Malformed",
    "Relationship",
    "ResourceIdentifier",
    "ResourceObject",
    "SparseFieldsetConflict",
    "UnknownType",
    "UnresolvableType",
]
