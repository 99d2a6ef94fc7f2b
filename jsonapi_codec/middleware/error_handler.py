"""JSON:API error handling for ASGI and FastAPI applications."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request

from jsonapi_codec.codec import JSONAPICodec
from jsonapi_codec.core.errors import JSONAPIErrorBuilder
from jsonapi_codec.core.exceptions import CodecError
from jsonapi_codec.responses import JSONAPIResponse

logger = logging.getLogger(__name__)


def error_response(exc: CodecError, codec: JSONAPICodec) -> JSONAPIResponse:
    """Return the JSON:API error response for a codec failure."""
    return JSONAPIResponse(
        codec.serialize_errors([exc]), status_code=exc.status, codec=codec
    )


class ErrorHandlerMiddleware:
    """Convert exceptions into JSON:API error documents."""

    def __init__(self, app: Any, codec: JSONAPICodec | None = None) -> None:
        """Store the ASGI app for middleware chaining."""
        self.app = app
        self.codec = codec or JSONAPICodec()

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        """Handle exceptions and serialize JSON:API error documents."""
        try:
            await self.app(scope, receive, send)
        except CodecError as exc:
            logger.debug("Codec error while handling request: %s", exc)
            await error_response(exc, self.codec)(scope, receive, send)
        except Exception:
            logger.exception("Unhandled error while handling request")
            status = HTTPStatus.INTERNAL_SERVER_ERROR
            error = JSONAPIErrorBuilder().error_object(
                status=str(status.value), title=status.phrase
            )
            response = JSONAPIResponse(
                self.codec.serialize_errors([error]),
                status_code=status.value,
                codec=self.codec,
            )
            await response(scope, receive, send)


def register_exception_handlers(app: FastAPI, codec: JSONAPICodec) -> None:
    """Render :class:`CodecError` raised by endpoints as JSON:API error documents."""

    @app.exception_handler(CodecError)
    async def _codec_error_handler(_request: Request, exc: CodecError) -> JSONAPIResponse:
        return error_response(exc, codec)
