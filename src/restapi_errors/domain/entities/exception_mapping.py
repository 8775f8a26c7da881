# src/restapi_errors/domain/entities/exception_mapping.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Exception Mapping Entities.

Purpose:
    Configuration values that associate exception type patterns with a
    default status/message/code (:class:`MappingEntry`) and with the set of
    fields that may be exposed on the wire (:class:`FieldPolicy`).

Layer:
    domain/entities

Notes:
    A type pattern is ``"*"`` (catch-all), an exact qualified type name such as
    ``"myapp.errors.PetNotFound"`` or a prefix wildcard such as
    ``"myapp.errors.*"``. Builtin types are named without a module
    (``"ValueError"``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from restapi_errors.domain.entities.error_representation import is_valid_status

CATCH_ALL_PATTERN: Final[str] = "*"


@dataclass(frozen=True, slots=True)
class MappingEntry:
    """Default status, message and error code for matching exceptions.

    Attributes:
        type_pattern:
            Pattern matched against exception types.
        status:
            HTTP status code. Values that are not registered HTTP statuses
            fall back to 500.
        message:
            Default message, if any.
        error_code:
            Default error code, if any.
    """

    type_pattern: str = CATCH_ALL_PATTERN
    status: int = 500
    message: str | None = None
    error_code: str | None = None

    def __post_init__(self) -> None:
        if not is_valid_status(self.status):
            object.__setattr__(self, "status", 500)
        if not self.message:
            object.__setattr__(self, "message", None)
        if not self.error_code:
            object.__setattr__(self, "error_code", None)


@dataclass(frozen=True, slots=True)
class FieldPolicy:
    """Field exposure switches for matching exceptions.

    Attributes:
        type_pattern:
            Pattern matched against exception types.
        include_message:
            Expose ``message``.
        include_exception_type:
            Expose ``exception_type``.
        include_application:
            Expose ``application``.
        include_path:
            Expose ``path``.
        include_handler:
            Expose ``handler``.
        include_stack_trace:
            Expose ``stack_trace``.
        include_cause:
            Attach the nested ``cause``. Error-code inheritance from the cause
            happens regardless of this switch.
        evaluate_declared_metadata_first:
            Prefer declared metadata over the exception's own message and
            error code.
    """

    type_pattern: str = CATCH_ALL_PATTERN
    include_message: bool = True
    include_exception_type: bool = True
    include_application: bool = True
    include_path: bool = True
    include_handler: bool = False
    include_stack_trace: bool = False
    include_cause: bool = True
    evaluate_declared_metadata_first: bool = False

    @classmethod
    def include_all(cls, type_pattern: str = CATCH_ALL_PATTERN) -> FieldPolicy:
        """Return a policy that exposes every field."""
        return cls(
            type_pattern=type_pattern,
            include_handler=True,
            include_stack_trace=True,
        )


DEFAULT_MAPPING: Final[MappingEntry] = MappingEntry(
    type_pattern=CATCH_ALL_PATTERN,
    status=500,
    message="Internal Server Error",
)

DEFAULT_MAPPINGS: Final[tuple[MappingEntry, ...]] = (
    MappingEntry(type_pattern="ValueError", status=400, message="Bad Request"),
    MappingEntry(type_pattern="PermissionError", status=403, message="Forbidden"),
    MappingEntry(type_pattern="sqlalchemy.exc.NoResultFound", status=404, message="Not Found"),
    MappingEntry(
        type_pattern="fastapi.exceptions.RequestValidationError",
        status=422,
        message="Unprocessable Entity",
    ),
)

DEFAULT_FIELD_POLICY: Final[FieldPolicy] = FieldPolicy()
