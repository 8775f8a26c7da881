# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Error representation wire schemas (Adapters Layer).

Purpose:
    Pydantic models describing the JSON document of an error representation,
    plus conversion to and from the domain entities.

Layer: adapters/schemas/http

Notes:
    Keys the schema does not know are kept as ``extensions`` of the entity
    and flattened back into the document on encode. Extension keys that
    collide with known wire names are dropped on encode, and extension values
    pydantic cannot serialize are written as their ``str``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field
from pydantic_core import to_jsonable_python

from restapi_errors.adapters.schemas.http.base import BaseHTTPSchema
from restapi_errors.domain.entities.error_representation import (
    ErrorRepresentation,
    HandlerInfo,
    StackFrame,
)


def jsonable_extensions(extensions: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``extensions`` with every value converted to JSON-compatible data."""
    result: dict[str, Any] = {}
    for key, value in extensions.items():
        try:
            result[key] = to_jsonable_python(value, fallback=str)
        except ValueError:
            # circular or otherwise unserializable structures
            result[key] = str(value)
    return result


class HandlerInfoHTTP(BaseHTTPSchema):
    """Wire shape of :class:`HandlerInfo`."""

    type_name: str | None = None
    method_name: str | None = None
    method_parameter_types: list[str] | None = None

    @classmethod
    def from_entity(cls, entity: HandlerInfo) -> HandlerInfoHTTP:
        return cls.model_validate(
            {
                "typeName": entity.type_name,
                "methodName": entity.method_name,
                "methodParameterTypes": list(entity.method_parameter_types) or None,
            }
        )

    def to_entity(self) -> HandlerInfo:
        return HandlerInfo(
            type_name=self.type_name,
            method_name=self.method_name,
            method_parameter_types=tuple(self.method_parameter_types or ()),
        )


class StackFrameHTTP(BaseHTTPSchema):
    """Wire shape of :class:`StackFrame`."""

    declaring_type: str | None = None
    method_name: str | None = None
    file_name: str | None = None
    line_number: int | None = None

    @classmethod
    def from_entity(cls, entity: StackFrame) -> StackFrameHTTP:
        return cls.model_validate(
            {
                "declaringType": entity.declaring_type,
                "methodName": entity.method_name,
                "fileName": entity.file_name,
                "lineNumber": entity.line_number,
            }
        )

    def to_entity(self) -> StackFrame:
        return StackFrame(
            declaring_type=self.declaring_type,
            method_name=self.method_name,
            file_name=self.file_name,
            line_number=self.line_number,
        )


class ErrorRepresentationHTTP(BaseHTTPSchema):
    """Wire shape of :class:`ErrorRepresentation`."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    timestamp: datetime | None = None
    status: int | None = None
    status_text: str | None = None
    error_code: str | None = None
    error_code_inherited: bool | None = None
    message: str | None = None
    exception_type: str | None = None
    application: str | None = None
    path: str | None = None
    handler: HandlerInfoHTTP | None = None
    stack_trace: list[StackFrameHTTP] | None = None
    cause: ErrorRepresentationHTTP | None = Field(default=None)

    @classmethod
    def wire_names(cls) -> frozenset[str]:
        """Return the wire (alias) names of the known fields."""
        return frozenset(f.alias or name for name, f in cls.model_fields.items())

    @classmethod
    def from_entity(cls, entity: ErrorRepresentation) -> ErrorRepresentationHTTP:
        """Build the wire model of ``entity`` and its causes (iteratively)."""
        known = cls.wire_names()
        result: ErrorRepresentationHTTP | None = None
        for node in reversed(entity.iter_causes(max_depth=1 << 16)):
            payload: dict[str, Any] = {
                k: v for k, v in jsonable_extensions(node.extensions).items() if k not in known
            }
            payload.update(
                {
                    "id": node.id,
                    "timestamp": node.timestamp,
                    "status": node.status,
                    "statusText": node.status_text,
                    "errorCode": node.error_code,
                    "errorCodeInherited": node.error_code_inherited if node.error_code else None,
                    "message": node.message,
                    "exceptionType": node.exception_type,
                    "application": node.application,
                    "path": node.path,
                    "handler": HandlerInfoHTTP.from_entity(node.handler) if node.handler else None,
                    "stackTrace": (
                        [StackFrameHTTP.from_entity(f) for f in node.stack_trace]
                        if node.stack_trace
                        else None
                    ),
                    "cause": result,
                }
            )
            result = cls.model_validate(payload)
        assert result is not None
        return result

    def to_entity(self) -> ErrorRepresentation:
        """Convert this wire model (and its causes) into the domain entity."""
        levels: list[ErrorRepresentationHTTP] = []
        node: ErrorRepresentationHTTP | None = self
        while node is not None:
            levels.append(node)
            node = node.cause
        result: ErrorRepresentation | None = None
        for level in reversed(levels):
            result = ErrorRepresentation(
                id=level.id,
                timestamp=level.timestamp,
                status=level.status,
                status_text=level.status_text,
                error_code=level.error_code,
                error_code_inherited=bool(level.error_code_inherited),
                message=level.message,
                exception_type=level.exception_type,
                application=level.application,
                path=level.path,
                handler=level.handler.to_entity() if level.handler else None,
                stack_trace=(
                    tuple(f.to_entity() for f in level.stack_trace)
                    if level.stack_trace is not None
                    else None
                ),
                cause=result,
                extensions=dict(level.model_extra or {}),
            )
        assert result is not None
        return result


ErrorRepresentationHTTP.model_rebuild()
