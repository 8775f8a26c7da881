# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""HTTP Schemas package (Adapters Layer).

Purpose:
    Public, adapter-facing wire schemas of error representations. It
    intentionally does NOT expose BaseHTTPSchema to keep the base class
    internal to this package.

Layer:
    adapters/schemas/http
"""

from __future__ import annotations

from restapi_errors.adapters.schemas.http.error_schemas import (
    ErrorRepresentationHTTP,
    HandlerInfoHTTP,
    StackFrameHTTP,
    jsonable_extensions,
)

__all__ = [
    "ErrorRepresentationHTTP",
    "HandlerInfoHTTP",
    "StackFrameHTTP",
    "jsonable_extensions",
]
