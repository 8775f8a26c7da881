# src/restapi_errors/domain/entities/error_representation.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Error Representation Entities.

Purpose:
    Immutable, transport-neutral description of a failure as it travels
    between services: status, error code, message, originating handler,
    stack frames and a nested cause (no I/O).

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from http import HTTPStatus
from types import MappingProxyType
from typing import Any


def status_text_for(status: int | None) -> str | None:
    """Return the standard reason phrase for an HTTP status code.

    Args:
        status: HTTP status code, if any.

    Returns:
        The reason phrase (e.g. ``"Not Found"``) or ``None`` when the code is
        missing or not a registered HTTP status.
    """
    if status is None:
        return None
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return None


def is_valid_status(status: object) -> bool:
    """Return True when ``status`` is a registered HTTP status code."""
    if not isinstance(status, int) or isinstance(status, bool):
        return False
    try:
        HTTPStatus(status)
    except ValueError:
        return False
    return True


@dataclass(frozen=True, slots=True)
class HandlerInfo:
    """Description of the request handler that produced a failure.

    Attributes:
        type_name:
            Qualified name of the type (or module) declaring the handler.
        method_name:
            Name of the handler callable.
        method_parameter_types:
            Names of the handler's declared parameter types, in order.
    """

    type_name: str | None = None
    method_name: str | None = None
    method_parameter_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.method_parameter_types, tuple):
            object.__setattr__(self, "method_parameter_types", tuple(self.method_parameter_types))


@dataclass(frozen=True, slots=True)
class StackFrame:
    """A single traceback entry."""

    declaring_type: str | None = None
    method_name: str | None = None
    file_name: str | None = None
    line_number: int | None = None


@dataclass(frozen=True, slots=True)
class ErrorRepresentation:
    """Wire-level description of a failure.

    Every field is optional; absent fields are omitted when serialized. The
    ``cause`` field nests another representation, forming an acyclic chain.

    Attributes:
        id:
            Opaque correlation id, typically only set for server errors.
        timestamp:
            UTC instant the failure was observed (naive values are normalized
            to UTC inside :meth:`__post_init__`).
        status:
            HTTP status code.
        status_text:
            Standard reason phrase of ``status``.
        error_code:
            Application-specific error code.
        error_code_inherited:
            True when ``error_code`` was copied from ``cause``. Always False
            when no code is present.
        message:
            Human-readable message.
        exception_type:
            Qualified name of the originating exception type.
        application:
            Name of the application that produced the failure.
        path:
            Request path the failure occurred on.
        handler:
            Handler description, see :class:`HandlerInfo`.
        stack_trace:
            Traceback frames, innermost first.
        cause:
            Representation of the underlying failure.
        extensions:
            Additional, unrecognized key/value pairs carried through the wire.
            Stored as a read-only copy of the mapping given at construction.
    """

    id: str | None = None
    timestamp: datetime | None = None
    status: int | None = None
    status_text: str | None = None
    error_code: str | None = None
    error_code_inherited: bool = False
    message: str | None = None
    exception_type: str | None = None
    application: str | None = None
    path: str | None = None
    handler: HandlerInfo | None = None
    stack_trace: tuple[StackFrame, ...] | None = None
    cause: ErrorRepresentation | None = None
    extensions: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize timestamps, collections and the inherited flag."""
        if self.timestamp is not None and self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=UTC))
        if not self.error_code:
            object.__setattr__(self, "error_code", None)
            object.__setattr__(self, "error_code_inherited", False)
        if self.stack_trace is not None and not isinstance(self.stack_trace, tuple):
            object.__setattr__(self, "stack_trace", tuple(self.stack_trace))
        object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))

    def with_changes(self, **changes: Any) -> ErrorRepresentation:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def iter_causes(self, max_depth: int = 32) -> list[ErrorRepresentation]:
        """Return this representation followed by its nested causes.

        Args:
            max_depth: Upper bound on the number of returned nodes.

        Returns:
            Nodes in order, outermost first.
        """
        nodes: list[ErrorRepresentation] = []
        node: ErrorRepresentation | None = self
        while node is not None and len(nodes) < max_depth:
            nodes.append(node)
            node = node.cause
        return nodes
