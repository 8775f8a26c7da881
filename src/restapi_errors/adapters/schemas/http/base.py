# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Base HTTP Schema (Adapters Layer).

Purpose:
    Canonical Pydantic base for the wire schemas of error documents.
    Field names are snake_case in Python and camelCase on the wire.

Layer: adapters/schemas/http

Notes:
    - Transport-facing only. Domain code must not import from this module.
    - Validation accepts wire (camelCase) names only, so unknown snake_case
      keys sent by a peer are never mistaken for known fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseHTTPSchema(BaseModel):
    """Base class for error wire schemas.

    Provides:
        • camelCase aliases for every field.
        • Tolerant ``extra='ignore'`` validation (subclasses may opt into ``allow``).
        • Consistent `model_dump_http()` that omits absent fields.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=False,
        extra="ignore",
        ser_json_inf_nan="null",
        use_enum_values=True,
    )

    def model_dump_http(self, **kwargs: Any) -> dict[str, Any]:
        """Return a JSON-serializable dict using wire names, without ``None`` values."""
        kwargs.setdefault("by_alias", True)
        kwargs.setdefault("exclude_none", True)
        return self.model_dump(mode="json", **kwargs)
