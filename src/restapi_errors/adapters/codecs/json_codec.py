# src/restapi_errors/adapters/codecs/json_codec.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""JSON codec for error representations.

Layer:
    adapters/codecs
"""

from __future__ import annotations

from typing import Final

from restapi_errors.adapters.schemas.http import ErrorRepresentationHTTP
from restapi_errors.domain.entities.error_representation import ErrorRepresentation

JSON_CONTENT_TYPE: Final[str] = "application/json"


def encode_json(representation: ErrorRepresentation) -> bytes:
    """Encode a representation as a UTF-8 JSON document, omitting absent fields."""
    model = ErrorRepresentationHTTP.from_entity(representation)
    return model.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def decode_json(data: bytes | str) -> ErrorRepresentation:
    """Decode a JSON document into a representation.

    Raises:
        pydantic.ValidationError: If the document is not a JSON object of the
            expected shape.
    """
    return ErrorRepresentationHTTP.model_validate_json(data).to_entity()
