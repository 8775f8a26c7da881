# src/restapi_errors/adapters/http/renderer.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Error response renderer (Adapters Layer).

Purpose:
    Write an :class:`ErrorRepresentation` as a JSON body, an XML body or as
    ``X-ERROR-*`` headers with an empty ``text/plain`` body, depending on the
    media types the client accepts. A representation that cannot be encoded
    as a body is written as headers instead.

Layer:
    adapters/http
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Final

from restapi_errors.adapters import codecs
from restapi_errors.adapters.http.headers import to_error_headers
from restapi_errors.adapters.http.media_types import (
    MediaType,
    ResponseFormat,
    negotiate_response_format,
)
from restapi_errors.domain.entities.error_representation import ErrorRepresentation

logger = logging.getLogger(__name__)

HEADER_ONLY_CONTENT_TYPE: Final[str] = "text/plain"
DEFAULT_STATUS: Final[int] = 500


@dataclass(frozen=True, slots=True)
class RenderedError:
    """A fully rendered error response.

    Attributes:
        body: Response body (empty in header-only mode).
        content_type: Response media type.
        status_code: HTTP status code.
        headers: Additional response headers.
        response_format: The negotiated wire format.
    """

    body: bytes
    content_type: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    response_format: ResponseFormat = ResponseFormat.JSON


class ErrorRenderer:
    """Render error representations according to the accepted media types.

    Args:
        clock: Source of the current time for the header-only timestamp.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def render(
        self,
        representation: ErrorRepresentation,
        accepted: str | Iterable[str | MediaType] | None,
    ) -> RenderedError:
        """Render ``representation``.

        Args:
            representation: The error to write.
            accepted: ``Accept`` header value or accepted/declared media types.

        Returns:
            The rendered response. The status defaults to 500.
        """
        status = representation.status or DEFAULT_STATUS
        response_format = negotiate_response_format(accepted)
        if response_format is ResponseFormat.HEADER:
            return self._headers_only(representation, status)
        try:
            body = codecs.encode(representation, response_format)
        except Exception:
            logger.warning(
                "error_renderer.encode_failed",
                exc_info=True,
                extra={"extra": {"format": response_format.value, "status": status}},
            )
            return self._headers_only(representation, status)
        return RenderedError(
            body=body,
            content_type=codecs.content_type_for(response_format),
            status_code=status,
            response_format=response_format,
        )

    def _headers_only(self, representation: ErrorRepresentation, status: int) -> RenderedError:
        return RenderedError(
            body=b"",
            content_type=HEADER_ONLY_CONTENT_TYPE,
            status_code=status,
            headers=to_error_headers(representation, now=self._clock()),
            response_format=ResponseFormat.HEADER,
        )
