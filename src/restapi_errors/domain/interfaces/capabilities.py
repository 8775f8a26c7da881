# src/restapi_errors/domain/interfaces/capabilities.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Exception capability protocols.

Purpose:
    Structural protocols an exception may satisfy to contribute its own
    status, error code, details or a pre-built representation. Exceptions opt
    in simply by exposing the attribute; no base class is required.

Layer:
    domain/interfaces
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from restapi_errors.domain.entities.error_representation import ErrorRepresentation


@runtime_checkable
class HasStatus(Protocol):
    """Exception that knows its own HTTP status."""

    http_status: int | None


@runtime_checkable
class HasErrorCode(Protocol):
    """Exception that knows its own application error code."""

    error_code: str | None


@runtime_checkable
class HasDetails(Protocol):
    """Exception carrying structured details exposed as representation extensions."""

    details: Mapping[str, Any]


@runtime_checkable
class CarriesRepresentation(Protocol):
    """Exception that already holds a representation, e.g. decoded from a remote service."""

    representation: ErrorRepresentation | None


@runtime_checkable
class ResponseStatusWrapper(Protocol):
    """Framework exception that wraps a response status.

    Starlette's and FastAPI's ``HTTPException`` satisfy this protocol.
    """

    status_code: int
    detail: Any
