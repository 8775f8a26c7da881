# src/restapi_errors/domain/interfaces/metadata_lookup.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Declared metadata lookup interface.

Purpose:
    Define how the resolver asks for status/reason and error-code metadata
    declared on handler callables, handler types and exception types, and
    describe the handling context of a failed request.

Layer:
    domain/interfaces

Notes:
    Implementations live in the adapters layer (see
    ``restapi_errors.adapters.metadata.decorators``). A lookup that finds
    nothing returns ``None``; that is a clean miss, not an error.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol


class DeclaredStatus(NamedTuple):
    """Status code and optional reason declared on a target."""

    code: int
    reason: str | None = None


class DeclaredMetadataLookup(Protocol):
    """Protocol for declared-metadata lookups."""

    def find_status(self, target: Any) -> DeclaredStatus | None:
        """Return the status declared on ``target`` (a callable or a type), if any."""

    def find_error_code(self, target: Any) -> str | None:
        """Return the error code declared on ``target`` (a callable or a type), if any."""


@dataclass(frozen=True, slots=True)
class HandlingContext:
    """The handler that was executing when a failure occurred.

    Attributes:
        handler:
            The handler callable (unbound function for methods).
        handler_type:
            The type declaring the handler, when it is a method.
    """

    handler: Callable[..., Any] | None = None
    handler_type: type | None = None

    @classmethod
    def from_endpoint(cls, endpoint: Any) -> HandlingContext | None:
        """Build a context from a routed endpoint.

        Args:
            endpoint: A function, bound method or callable instance.

        Returns:
            The handling context, or ``None`` when ``endpoint`` is not callable.
        """
        if endpoint is None or not callable(endpoint):
            return None
        if inspect.ismethod(endpoint):
            owner = endpoint.__self__
            owner_type = owner if isinstance(owner, type) else type(owner)
            return cls(handler=endpoint.__func__, handler_type=owner_type)
        if inspect.isfunction(endpoint):
            return cls(handler=endpoint)
        # Callable instance: the type is the handler type, __call__ the handler.
        call = getattr(type(endpoint), "__call__", None)
        return cls(handler=call, handler_type=type(endpoint))
