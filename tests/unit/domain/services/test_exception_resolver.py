# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Unit tests for status / error-code / message precedence."""

from __future__ import annotations

from typing import Any

import pytest
from starlette.exceptions import HTTPException

from restapi_errors.adapters.metadata.decorators import (
    AttributeMetadataLookup,
    error_code,
    response_status,
)
from restapi_errors.domain.entities.exception_mapping import FieldPolicy, MappingEntry
from restapi_errors.domain.exceptions.base import DomainError, ServiceError
from restapi_errors.domain.interfaces.metadata_lookup import DeclaredStatus, HandlingContext
from restapi_errors.domain.services.exception_chain import qualified_type_name
from restapi_errors.domain.services.exception_resolver import ExceptionResolver
from restapi_errors.domain.services.mapping_table import ExceptionMappingTable


@response_status(404, reason="Pet is gone")
@error_code("PET:GONE")
class PetGone(Exception):
    pass


class PetGoneForGood(PetGone):
    pass


class Unmapped(Exception):
    pass


@response_status(503, reason="Handler says unavailable")
@error_code("HANDLER:TYPE")
class PetController:
    @response_status(429, reason="Slow down")
    @error_code("HANDLER:METHOD")
    def list_pets(self) -> None:
        pass

    def get_pet(self, pet_id: int) -> None:
        pass


def _resolver(table: ExceptionMappingTable | None = None) -> ExceptionResolver:
    return ExceptionResolver(table or ExceptionMappingTable(), AttributeMetadataLookup())


def test_own_status_wins_over_declared_and_mapping() -> None:
    exc = ServiceError("Pet already exists.", http_status=409, error_code="PET_STORE:1234")
    ctx = HandlingContext(handler=PetController.list_pets, handler_type=PetController)
    meta = _resolver().resolve(exc, ctx)
    assert meta.status == 409
    assert meta.status_text == "Conflict"
    assert meta.error_code == "PET_STORE:1234"
    assert meta.message == "Pet already exists."


def test_framework_wrapper_status_and_detail() -> None:
    meta = _resolver().resolve(HTTPException(status_code=404, detail="No such pet"))
    assert meta.status == 404
    assert meta.message == "No such pet"


def test_framework_wrapper_with_structured_detail_has_no_own_message() -> None:
    exc = HTTPException(status_code=400, detail={"field": "name"})  # type: ignore[arg-type]
    table = ExceptionMappingTable(
        mappings=[MappingEntry(type_pattern=qualified_type_name(HTTPException), message="Bad")]
    )
    assert _resolver(table).resolve(exc).message == "Bad"


def test_declared_method_beats_type_beats_exception_type() -> None:
    resolver = _resolver()
    method_ctx = HandlingContext(handler=PetController.list_pets, handler_type=PetController)
    type_ctx = HandlingContext(handler=PetController.get_pet, handler_type=PetController)

    assert resolver.resolve_status(PetGone(), method_ctx) == 429
    assert resolver.resolve_status(PetGone(), type_ctx) == 503
    assert resolver.resolve_status(PetGone(), None) == 404


def test_declared_metadata_is_inherited_by_exception_subclasses() -> None:
    meta = _resolver().resolve(PetGoneForGood())
    assert meta.status == 404
    assert meta.error_code == "PET:GONE"
    assert meta.message == "Pet is gone"


def test_mapping_then_catch_all() -> None:
    table = ExceptionMappingTable(
        mappings=[
            MappingEntry(
                type_pattern=qualified_type_name(Unmapped),
                status=422,
                message="Mapped message",
                error_code="MAPPED",
            )
        ]
    )
    meta = _resolver(table).resolve(Unmapped())
    assert (meta.status, meta.message, meta.error_code) == (422, "Mapped message", "MAPPED")

    fallback = _resolver().resolve(RuntimeError())
    assert fallback.status == 500
    assert fallback.message == "Internal Server Error"
    assert fallback.error_code is None


def test_invalid_own_status_falls_through() -> None:
    class OddStatus(Exception):
        http_status = 999

    assert _resolver().resolve_status(OddStatus()) == 500


def test_own_error_code_wins_by_default() -> None:
    exc = PetGone()
    exc.error_code = "OWN:CODE"  # type: ignore[attr-defined]
    assert _resolver().resolve_error_code(exc) == "OWN:CODE"


def test_declared_first_swaps_code_and_message_order() -> None:
    exc = PetGone("own message")
    exc.error_code = "OWN:CODE"  # type: ignore[attr-defined]
    policy = FieldPolicy(evaluate_declared_metadata_first=True)
    resolver = _resolver()

    assert resolver.resolve_error_code(exc, None, policy) == "PET:GONE"
    assert resolver.resolve_message(exc, None, policy) == "Pet is gone"
    assert resolver.resolve_message(exc, None, FieldPolicy()) == "own message"


def test_blank_own_values_are_absent() -> None:
    exc = DomainError("   ", error_code="  ")
    meta = _resolver().resolve(exc)
    assert meta.error_code is None
    assert meta.message == "Internal Server Error"


def test_unprintable_exception_message_is_a_miss() -> None:
    class Unprintable(Exception):
        def __str__(self) -> str:
            raise RuntimeError("no")

    assert _resolver().resolve(Unprintable()).message == "Internal Server Error"


def test_failing_metadata_lookup_is_a_clean_miss() -> None:
    class Exploding:
        def find_status(self, target: Any) -> DeclaredStatus | None:
            raise RuntimeError("lookup failed")

        def find_error_code(self, target: Any) -> str | None:
            raise RuntimeError("lookup failed")

    resolver = ExceptionResolver(ExceptionMappingTable(), Exploding())
    meta = resolver.resolve(ValueError("bad input"))
    assert meta.status == 400
    assert meta.error_code is None
    assert meta.message == "bad input"


@pytest.mark.parametrize("status", [400, 404, 409, 503])
def test_service_error_status_round_trips(status: int) -> None:
    assert _resolver().resolve_status(ServiceError(http_status=status)) == status
