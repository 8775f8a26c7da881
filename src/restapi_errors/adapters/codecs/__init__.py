# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Structured-document codecs for error representations (Adapters Layer).

Exports:
    - encode: Encode a representation in a structured response format.
    - decode: Decode a structured document into a representation.
"""

from __future__ import annotations

from restapi_errors.adapters.codecs.json_codec import JSON_CONTENT_TYPE, decode_json, encode_json
from restapi_errors.adapters.codecs.xml_codec import XML_CONTENT_TYPE, decode_xml, encode_xml
from restapi_errors.adapters.http.media_types import ResponseFormat
from restapi_errors.domain.entities.error_representation import ErrorRepresentation

__all__ = [
    "JSON_CONTENT_TYPE",
    "XML_CONTENT_TYPE",
    "content_type_for",
    "decode",
    "encode",
]


def content_type_for(response_format: ResponseFormat) -> str:
    """Return the content type written for a structured response format."""
    if response_format is ResponseFormat.JSON:
        return JSON_CONTENT_TYPE
    if response_format is ResponseFormat.XML:
        return XML_CONTENT_TYPE
    raise ValueError(f"not a structured format: {response_format}")


def encode(representation: ErrorRepresentation, response_format: ResponseFormat) -> bytes:
    """Encode ``representation`` as JSON or XML.

    Raises:
        ValueError: If ``response_format`` is not a structured format.
    """
    if response_format is ResponseFormat.JSON:
        return encode_json(representation)
    if response_format is ResponseFormat.XML:
        return encode_xml(representation)
    raise ValueError(f"not a structured format: {response_format}")


def decode(
    data: bytes | str,
    response_format: ResponseFormat,
    charset: str | None = None,
) -> ErrorRepresentation:
    """Decode a JSON or XML document.

    JSON is always read as UTF-8; XML honours ``charset`` when given.

    Raises:
        ValueError: If the document cannot be decoded (pydantic's
            ``ValidationError`` is a ``ValueError``).
    """
    if response_format is ResponseFormat.JSON:
        return decode_json(data)
    if response_format is ResponseFormat.XML:
        return decode_xml(data, charset)
    raise ValueError(f"not a structured format: {response_format}")
