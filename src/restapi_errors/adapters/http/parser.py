# src/restapi_errors/adapters/http/parser.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Error response parser (Adapters Layer).

Purpose:
    Rebuild an :class:`ErrorRepresentation` from a received error response.
    Structured bodies (JSON/XML) are decoded when possible; otherwise the
    ``X-ERROR-*`` headers and the raw body text are used.

Contract:
    ``parse`` is total: any input yields a representation. The transport
    status always wins over a status found in the body.

Layer:
    adapters/http
"""

from __future__ import annotations

import codecs as _charsets
import logging
from collections.abc import Mapping
from typing import Final

from restapi_errors.adapters import codecs
from restapi_errors.adapters.http.headers import MESSAGE_HEADER, from_error_headers
from restapi_errors.adapters.http.media_types import (
    MediaType,
    ResponseFormat,
    detect_content_format,
)
from restapi_errors.domain.entities.error_representation import (
    ErrorRepresentation,
    is_valid_status,
    status_text_for,
)
from restapi_errors.infrastructure.observability.metrics import (
    get_api_error_parse_fallbacks_total,
    inc_safely,
)

logger = logging.getLogger(__name__)

DEFAULT_CHARSET: Final[str] = "utf-8"


def _lowered(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


def _known_charset(name: str | None) -> str | None:
    if not name:
        return None
    try:
        return _charsets.lookup(name).name
    except LookupError:
        return None


class ErrorResponseParser:
    """Parse received error responses into representations.

    Args:
        default_charset: Charset for bodies that are neither JSON nor XML and
            declare no charset of their own.
    """

    def __init__(self, default_charset: str = DEFAULT_CHARSET) -> None:
        self._default_charset = _known_charset(default_charset) or DEFAULT_CHARSET

    def parse(
        self,
        body: bytes | str | None,
        status_code: int | None,
        headers: Mapping[str, str] | None,
    ) -> ErrorRepresentation:
        """Parse an error response.

        Args:
            body: Raw response body.
            status_code: Transport status code.
            headers: Response headers (names matched case-insensitively).

        Returns:
            The representation. Never raises.
        """
        lowered = _lowered(headers)
        try:
            media_type = MediaType.parse(lowered.get("content-type"))
            response_format = detect_content_format(media_type)
            raw = body or b""

            if response_format is not ResponseFormat.HEADER and _has_content(raw):
                charset = _known_charset(media_type.charset if media_type else None)
                try:
                    decoded = codecs.decode(raw, response_format, charset)
                except Exception:
                    logger.debug(
                        "error_parser.fallback",
                        exc_info=True,
                        extra={"extra": {"format": response_format.value}},
                    )
                    inc_safely(get_api_error_parse_fallbacks_total, reason="decode_error")
                else:
                    return self._with_transport_status(decoded, status_code)

            return self._from_headers(raw, media_type, status_code, lowered)
        except Exception:
            logger.debug("error_parser.unexpected_failure", exc_info=True)
            inc_safely(get_api_error_parse_fallbacks_total, reason="unexpected_error")
            return self._with_transport_status(ErrorRepresentation(), status_code)

    def _from_headers(
        self,
        raw: bytes | str,
        media_type: MediaType | None,
        status_code: int | None,
        headers: dict[str, str],
    ) -> ErrorRepresentation:
        representation = from_error_headers(headers)
        if MESSAGE_HEADER.lower() not in headers:
            text = self._body_text(raw, media_type)
            representation = representation.with_changes(message=text if text.strip() else None)
        return self._with_transport_status(representation, status_code)

    def _body_text(self, raw: bytes | str, media_type: MediaType | None) -> str:
        if isinstance(raw, str):
            return raw
        charset = _known_charset(media_type.charset if media_type else None)
        return raw.decode(charset or self._default_charset, errors="replace")

    @staticmethod
    def _with_transport_status(
        representation: ErrorRepresentation, status_code: int | None
    ) -> ErrorRepresentation:
        if status_code is None:
            return representation
        status_text = status_text_for(status_code) if is_valid_status(status_code) else None
        return representation.with_changes(status=status_code, status_text=status_text)


def _has_content(raw: bytes | str) -> bool:
    return bool(raw.strip())
