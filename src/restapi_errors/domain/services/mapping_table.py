# src/restapi_errors/domain/services/mapping_table.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Exception Mapping Table.

Purpose:
    Select the :class:`MappingEntry` and the :class:`FieldPolicy` that apply to
    an exception by matching type patterns against the exception's type, its
    ancestors and, recursively, the exceptions in its cause chain.

Layer:
    domain/services

Notes:
    Entries are tried in configuration order and the first match wins. The
    catch-all default is consulted last.
"""

from __future__ import annotations

from collections.abc import Iterable

from restapi_errors.domain.entities.exception_mapping import (
    CATCH_ALL_PATTERN,
    DEFAULT_FIELD_POLICY,
    DEFAULT_MAPPING,
    DEFAULT_MAPPINGS,
    FieldPolicy,
    MappingEntry,
)
from restapi_errors.domain.services.exception_chain import (
    MAX_DEPTH,
    iter_cause_chain,
    iter_type_hierarchy,
    qualified_type_name,
)


def name_matches(type_name: str, pattern: str) -> bool:
    """Return True when a qualified type name matches a pattern.

    Args:
        type_name: Qualified type name, e.g. ``"myapp.errors.PetNotFound"``.
        pattern: ``"*"``, an exact name, or a ``"prefix.*"`` wildcard.
    """
    if not pattern:
        return False
    if pattern == CATCH_ALL_PATTERN:
        return True
    if pattern == type_name:
        return True
    if pattern.endswith(".*"):
        return type_name.startswith(pattern[:-1])
    return False


def type_matches(cls: type, pattern: str, max_depth: int = MAX_DEPTH) -> bool:
    """Return True when ``cls`` or one of its ancestors matches ``pattern``."""
    return any(
        name_matches(qualified_type_name(t), pattern) for t in iter_type_hierarchy(cls, max_depth)
    )


def exception_matches(exc: BaseException, pattern: str, max_depth: int = MAX_DEPTH) -> bool:
    """Return True when ``exc`` or any exception in its cause chain matches ``pattern``."""
    return any(
        type_matches(type(e), pattern, max_depth) for e in iter_cause_chain(exc, max_depth)
    )


class ExceptionMappingTable:
    """Ordered mapping entries and field policies with catch-all defaults.

    Args:
        mappings: Mapping entries, tried in order. Defaults to the built-in table.
        default_mapping: Catch-all entry (500 "Internal Server Error" by default).
        policies: Field policies, tried in order.
        default_policy: Catch-all policy.
        max_depth: Bound on cause-chain and type-hierarchy walks.
    """

    def __init__(
        self,
        mappings: Iterable[MappingEntry] | None = None,
        default_mapping: MappingEntry | None = None,
        policies: Iterable[FieldPolicy] = (),
        default_policy: FieldPolicy | None = None,
        *,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self._mappings: tuple[MappingEntry, ...] = (
            tuple(mappings) if mappings is not None else DEFAULT_MAPPINGS
        )
        self._default_mapping = default_mapping or DEFAULT_MAPPING
        self._policies: tuple[FieldPolicy, ...] = tuple(policies)
        self._default_policy = default_policy or DEFAULT_FIELD_POLICY
        self._max_depth = max(1, max_depth)

    @property
    def mappings(self) -> tuple[MappingEntry, ...]:
        return self._mappings

    @property
    def policies(self) -> tuple[FieldPolicy, ...]:
        return self._policies

    @property
    def default_mapping(self) -> MappingEntry:
        return self._default_mapping

    @property
    def default_policy(self) -> FieldPolicy:
        return self._default_policy

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def find_mapping(self, exc: BaseException) -> MappingEntry:
        """Return the first mapping entry matching ``exc``, else the catch-all."""
        for entry in self._mappings:
            if exception_matches(exc, entry.type_pattern, self._max_depth):
                return entry
        return self._default_mapping

    def find_policy(self, exc: BaseException) -> FieldPolicy:
        """Return the first field policy matching ``exc``, else the catch-all."""
        for policy in self._policies:
            if exception_matches(exc, policy.type_pattern, self._max_depth):
                return policy
        return self._default_policy
