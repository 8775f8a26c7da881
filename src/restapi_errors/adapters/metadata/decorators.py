# src/restapi_errors/adapters/metadata/decorators.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Declared metadata decorators (Adapters Layer).

Purpose:
    Let services declare a response status/reason and an error code on
    exception classes, handler classes and handler functions, and expose those
    declarations to the resolver through :class:`AttributeMetadataLookup`.

Usage:
    @response_status(409, reason="Pet already exists.")
    @error_code("PET_STORE:1234")
    class PetAlreadyExists(Exception):
        ...

Notes:
    Declarations are stored as attributes, so subclasses inherit the
    declarations of their bases through normal attribute lookup (MRO).

Layer:
    adapters/metadata
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final, TypeVar

from restapi_errors.domain.entities.error_representation import is_valid_status
from restapi_errors.domain.interfaces.metadata_lookup import DeclaredStatus

T = TypeVar("T")

_STATUS_ATTR: Final[str] = "__declared_response_status__"
_ERROR_CODE_ATTR: Final[str] = "__declared_error_code__"


def response_status(code: int, reason: str | None = None) -> Callable[[T], T]:
    """Declare the response status (and optional reason) of a class or function.

    Args:
        code: HTTP status code.
        reason: Message used when the exception carries none of its own.

    Returns:
        A decorator returning its target unchanged.

    Raises:
        ValueError: If ``code`` is not a registered HTTP status.
    """
    if not is_valid_status(code):
        raise ValueError(f"invalid HTTP status: {code!r}")
    declared = DeclaredStatus(code=code, reason=reason or None)

    def decorate(target: T) -> T:
        setattr(target, _STATUS_ATTR, declared)
        return target

    return decorate


def error_code(value: str) -> Callable[[T], T]:
    """Declare the application error code of a class or function.

    Raises:
        ValueError: If ``value`` is blank.
    """
    if not value or not value.strip():
        raise ValueError("error code must be non-blank")

    def decorate(target: T) -> T:
        setattr(target, _ERROR_CODE_ATTR, value)
        return target

    return decorate


class AttributeMetadataLookup:
    """Declared-metadata lookup reading the attributes set by the decorators above."""

    def find_status(self, target: Any) -> DeclaredStatus | None:
        declared = getattr(target, _STATUS_ATTR, None)
        return declared if isinstance(declared, DeclaredStatus) else None

    def find_error_code(self, target: Any) -> str | None:
        declared = getattr(target, _ERROR_CODE_ATTR, None)
        return declared if isinstance(declared, str) and declared else None
