# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Unit tests for type-pattern matching and the exception mapping table."""

from __future__ import annotations

import pytest

from restapi_errors.domain.entities.exception_mapping import FieldPolicy, MappingEntry
from restapi_errors.domain.services.exception_chain import (
    cause_of,
    iter_cause_chain,
    qualified_type_name,
)
from restapi_errors.domain.services.mapping_table import (
    ExceptionMappingTable,
    exception_matches,
    name_matches,
)


class PetError(Exception):
    pass


class PetNotFound(PetError):
    pass


@pytest.mark.parametrize(
    ("name", "pattern", "expected"),
    [
        ("myapp.errors.PetNotFound", "myapp.errors.PetNotFound", True),
        ("myapp.errors.PetNotFound", "myapp.errors.*", True),
        ("myapp.errors.sub.PetNotFound", "myapp.errors.*", True),
        ("myapp.errorsX.PetNotFound", "myapp.errors.*", False),
        ("myapp.errors.PetNotFound", "*", True),
        ("myapp.errors.PetNotFound", "myapp.errors.Pet", False),
        ("myapp.errors.PetNotFound", "", False),
    ],
)
def test_name_matches(name: str, pattern: str, expected: bool) -> None:
    assert name_matches(name, pattern) is expected


def test_builtins_are_named_without_module() -> None:
    assert qualified_type_name(ValueError) == "ValueError"
    assert qualified_type_name(PetNotFound).endswith(".PetNotFound")


def test_subclass_matches_ancestor_pattern() -> None:
    assert exception_matches(PetNotFound(), qualified_type_name(PetError))
    assert not exception_matches(PetError(), qualified_type_name(PetNotFound))


def test_cause_chain_is_searched() -> None:
    try:
        try:
            raise ValueError("bad")
        except ValueError as inner:
            raise RuntimeError("wrapped") from inner
    except RuntimeError as outer:
        exc = outer
    assert exception_matches(exc, "ValueError")


def test_suppressed_context_is_not_a_cause() -> None:
    try:
        try:
            raise ValueError("bad")
        except ValueError:
            raise RuntimeError("clean") from None
    except RuntimeError as outer:
        exc = outer
    assert cause_of(exc) is None
    assert not exception_matches(exc, "ValueError")


def test_cyclic_cause_chain_terminates() -> None:
    a = RuntimeError("a")
    b = RuntimeError("b")
    a.__cause__ = b
    b.__cause__ = a
    assert iter_cause_chain(a) == [a, b]
    assert not exception_matches(a, "KeyError")


def test_default_table_maps_builtin_errors(mapping_table: ExceptionMappingTable) -> None:
    assert mapping_table.find_mapping(ValueError("x")).status == 400
    assert mapping_table.find_mapping(PermissionError("x")).status == 403
    assert mapping_table.find_mapping(RuntimeError("x")).status == 500
    assert mapping_table.find_mapping(RuntimeError("x")).message == "Internal Server Error"


def test_first_matching_entry_wins() -> None:
    table = ExceptionMappingTable(
        mappings=[
            MappingEntry(type_pattern=qualified_type_name(PetNotFound), status=404),
            MappingEntry(type_pattern=qualified_type_name(PetError), status=409),
        ]
    )
    assert table.find_mapping(PetNotFound()).status == 404
    assert table.find_mapping(PetError()).status == 409


def test_policy_is_selected_independently_of_mapping() -> None:
    hidden = FieldPolicy(type_pattern=qualified_type_name(PetError), include_message=False)
    table = ExceptionMappingTable(policies=[hidden])
    assert table.find_policy(PetNotFound()) is hidden
    assert table.find_policy(ValueError()) is table.default_policy
    assert table.find_mapping(PetNotFound()) is table.default_mapping
