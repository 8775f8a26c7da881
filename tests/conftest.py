# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import UTC, datetime

import pytest

from restapi_errors.adapters.metadata.decorators import AttributeMetadataLookup
from restapi_errors.config.settings import get_settings
from restapi_errors.domain.services.exception_resolver import ExceptionResolver
from restapi_errors.domain.services.mapping_table import ExceptionMappingTable
from restapi_errors.domain.services.representation_builder import RepresentationBuilder

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 15, tzinfo=UTC)
FIXED_ERROR_ID = "error-id-1"


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    """Ensure each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def error_id() -> str:
    """Correlation id produced by builders from ``make_builder``."""
    return FIXED_ERROR_ID


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def mapping_table() -> ExceptionMappingTable:
    """Default mapping table (built-in mappings, default field policy)."""
    return ExceptionMappingTable()


@pytest.fixture
def make_builder(
    fixed_clock: Callable[[], datetime],
) -> Callable[..., RepresentationBuilder]:
    """Factory for builders with a fixed clock, fixed ids and decorator metadata."""

    def _make(
        table: ExceptionMappingTable | None = None,
        *,
        application_name: str | None = "pet-store",
        max_depth: int = 32,
    ) -> RepresentationBuilder:
        table = table or ExceptionMappingTable()
        return RepresentationBuilder(
            table,
            ExceptionResolver(table, AttributeMetadataLookup()),
            application_name=application_name,
            max_depth=max_depth,
            clock=fixed_clock,
            id_factory=lambda: FIXED_ERROR_ID,
        )

    return _make


@pytest.fixture
def builder(make_builder: Callable[..., RepresentationBuilder]) -> RepresentationBuilder:
    return make_builder()
