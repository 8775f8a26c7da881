# src/restapi_errors/domain/services/exception_chain.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Bounded walks over exception cause chains and type hierarchies.

Layer:
    domain/services
"""

from __future__ import annotations

from typing import Final

MAX_DEPTH: Final[int] = 32


def qualified_type_name(cls: type) -> str:
    """Return ``module.QualName`` for a type; builtins are named bare.

    Args:
        cls: The type to name.

    Returns:
        The qualified type name, e.g. ``"myapp.errors.PetNotFound"`` or
        ``"ValueError"``.
    """
    module = getattr(cls, "__module__", None)
    name = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", repr(cls))
    if not module or module == "builtins":
        return name
    return f"{module}.{name}"


def cause_of(exc: BaseException) -> BaseException | None:
    """Return the underlying cause of an exception.

    The explicit ``__cause__`` wins; otherwise the implicit ``__context__`` is
    used unless it was suppressed with ``raise ... from None``.
    """
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def iter_cause_chain(exc: BaseException, max_depth: int = MAX_DEPTH) -> list[BaseException]:
    """Return ``exc`` followed by its causes, outermost first.

    The walk stops at ``max_depth`` entries or when an exception repeats.
    """
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and len(chain) < max_depth and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        current = cause_of(current)
    return chain


def iter_type_hierarchy(cls: type, max_depth: int = MAX_DEPTH) -> list[type]:
    """Return ``cls`` and its ancestors in MRO order, excluding ``object``."""
    return [t for t in cls.__mro__ if t is not object][:max_depth]
