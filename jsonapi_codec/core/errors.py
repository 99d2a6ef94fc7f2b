"""JSON:API error objects and error documents."""

from typing import Any, Iterable, Mapping

from .model import ErrorObject


class JSONAPIErrorBuilder:
    """Build JSON:API error objects and error documents."""

    def error_object(
        self,
        *,
        id: str | None = None,
        status: str | None = None,
        code: str | None = None,
        title: str | None = None,
        detail: str | None = None,
        source_pointer: str | None = None,
        source_parameter: str | None = None,
        about_link: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> ErrorObject:
        """Return a JSON:API error object."""
        error = ErrorObject(
            id=id,
            status=status,
            code=code,
            title=title,
            detail=detail,
            source_pointer=source_pointer,
            source_parameter=source_parameter,
            about_link=about_link,
            meta=dict(meta) if meta is not None else None,
        )
        if not error.to_dict():
            raise ValueError("Error object must include at least one field.")
        return error

    def from_dict(self, payload: Mapping[str, Any]) -> ErrorObject:
        """Return an error object from its wire form."""
        source = payload.get("source") or {}
        links = payload.get("links") or {}
        about = links.get("about")
        if isinstance(about, Mapping):
            about = about.get("href")
        return ErrorObject(
            id=_optional_str(payload.get("id")),
            status=_optional_str(payload.get("status")),
            code=_optional_str(payload.get("code")),
            title=payload.get("title"),
            detail=payload.get("detail"),
            source_pointer=source.get("pointer"),
            source_parameter=source.get("parameter"),
            about_link=about,
            meta=payload.get("meta"),
        )

    def error_document(
        self,
        errors: Iterable[ErrorObject],
        *,
        meta: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Return a JSON:API document with an errors array."""
        document: dict[str, Any] = {"errors": [error.to_dict() for error in errors]}
        if meta:
            document["meta"] = dict(meta)
        return document


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
