"""Codec error taxonomy."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .model import ErrorObject


class CodecError(Exception):
    """Base class for all JSON:API codec failures."""

    status: int = HTTPStatus.INTERNAL_SERVER_ERROR.value
    title: str = "JSON:API Codec Error"
    code: str = "codec_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def error_source(self) -> dict[str, str] | None:
        """Return the JSON:API error source for this failure, if any."""
        return None

    def to_error_object(self) -> ErrorObject:
        """Convert the failure into a JSON:API error object."""
        from .errors import JSONAPIErrorBuilder

        source = self.error_source() or {}
        return JSONAPIErrorBuilder().error_object(
            status=str(self.status),
            code=self.code,
            title=self.title,
            detail=self.message,
            source_pointer=source.get("pointer"),
            source_parameter=source.get("parameter"),
        )


class UnresolvableType(CodecError):
    """The class of an entity cannot be mapped to a JSON:API type."""

    title = "Unresolvable Type"
    code = "unresolvable_type"

    def __init__(self, cls: Any, reason: str = "") -> None:
        self.cls = cls
        name = getattr(cls, "__qualname__", repr(cls))
        message = f"Cannot resolve JSON:API type for class {name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AmbiguousIdentity(CodecError):
    """No identity field can be discovered for an entity."""

    title = "Ambiguous Identity"
    code = "ambiguous_identity"

    def __init__(self, cls: Any, reason: str = "") -> None:
        self.cls = cls
        name = getattr(cls, "__qualname__", repr(cls))
        message = f"Cannot compute JSON:API resource id for class {name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnknownType(CodecError):
    """A wire type has no registered class."""

    status = HTTPStatus.BAD_REQUEST.value
    title = "Unknown Type"
    code = "unknown_type"

    def __init__(self, type_: str, pointer: str | None = None) -> None:
        self.type = type_
        self.pointer = pointer
        super().__init__(f"No class registered for JSON:API type '{type_}'")

    def error_source(self) -> dict[str, str] | None:
        return {"pointer": self.pointer} if self.pointer else None


class Malformed(CodecError):
    """An incoming document violates the JSON:API structure."""

    status = HTTPStatus.BAD_REQUEST.value
    title = "Malformed Document"
    code = "malformed"

    def __init__(self, reason: str, pointer: str | None = None) -> None:
        self.reason = reason
        self.pointer = pointer
        message = reason if pointer is None else f"{reason} (at {pointer})"
        super().__init__(message)

    def error_source(self) -> dict[str, str] | None:
        return {"pointer": self.pointer} if self.pointer else None


class BuilderReused(CodecError):
    """A document builder was mutated after build()."""

    title = "Builder Reused"
    code = "builder_reused"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Cannot call {operation}() on a document builder that has already been built"
        )


class SparseFieldsetConflict(CodecError):
    """A sparse fieldset names a field the resource type does not have."""

    status = HTTPStatus.BAD_REQUEST.value
    title = "Sparse Fieldset Conflict"
    code = "sparse_fieldset_conflict"

    def __init__(self, type_: str, field: str) -> None:
        self.type = type_
        self.field = field
        super().__init__(f"Resource type '{type_}' has no field '{field}'")

    def error_source(self) -> dict[str, str] | None:
        return {"parameter": f"fields[{self.type}]"}
