"""Starlette response rendering JSON:API documents."""

from __future__ import annotations

from typing import Any, Mapping

from starlette.background import BackgroundTask
from starlette.responses import Response

from .codec import JSONAPICodec
from .core.document import DocumentModel
from .core.model import Document

MEDIA_TYPE = "application/vnd.api+json"


class JSONAPIResponse(Response):
    """Response with the ``application/vnd.api+json`` media type.

    ``content`` may be a :class:`DocumentModel`, a resolved :class:`Document`,
    a plain JSON:API mapping or pre-rendered bytes.
    """

    media_type = MEDIA_TYPE

    def __init__(
        self,
        content: Any = None,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        background: BackgroundTask | None = None,
        codec: JSONAPICodec | None = None,
    ) -> None:
        self.codec = codec or JSONAPICodec()
        super().__init__(content, status_code, headers, background=background)

    def render(self, content: Any) -> bytes:
        if content is None:
            return b""
        if isinstance(content, bytes):
            return content
        if isinstance(content, DocumentModel):
            return self.codec.serialize(content)
        if isinstance(content, Document):
            return self.codec.serializer.to_bytes(content)
        return self.codec.serializer.dumps(content)
