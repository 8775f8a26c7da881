# src/restapi_errors/config/settings.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Error Handling Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for building, rendering and parsing error
    representations: the application name, the API paths handled, the
    exception mapping table and field policies, charsets and limits.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch unknown fields.
    - Explicit field declarations with constrained types and ranges.
    - Structured values (mappings, policies) are read as JSON from the environment.
    - Singleton accessor `get_settings()` with LRU cache.

Example:
    API_PATHS="/api/*,/v2/*"
    ERROR_EXCEPTION_MAPPINGS='[{"type_pattern": "myapp.errors.*", "status": 409}]'
    ERROR_DEFAULT_FIELD_POLICY='{"include_stack_trace": true}'
"""

from __future__ import annotations

import codecs
import logging
from functools import lru_cache

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from restapi_errors.domain.entities.exception_mapping import (
    CATCH_ALL_PATTERN,
    DEFAULT_FIELD_POLICY,
    DEFAULT_MAPPING,
    DEFAULT_MAPPINGS,
    FieldPolicy,
    MappingEntry,
)
from restapi_errors.domain.services.exception_chain import MAX_DEPTH
from restapi_errors.domain.services.mapping_table import ExceptionMappingTable

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Typed configuration for error representation handling.

    Adapters and Infrastructure may read environment variables; other layers
    receive the derived objects (mapping table, builder) through dependency
    injection.
    """

    application_name: str | None = Field(
        default=None,
        description="Name exposed as `application` on error representations.",
        validation_alias="APPLICATION_NAME",
    )

    # Raw env for API paths; we compute the parsed list in a model validator.
    api_paths_raw: str | None = Field(
        default=None,
        description="Raw env for API path patterns (comma-separated globs).",
        validation_alias="API_PATHS",
    )

    api_path_patterns: list[str] = Field(
        default_factory=list,
        description=(
            "Request path patterns the exception handler is responsible for. "
            "Derived from API_PATHS. Empty means every request."
        ),
    )

    default_charset: str = Field(
        default="utf-8",
        description="Charset used to read error bodies that declare none.",
        validation_alias="ERROR_DEFAULT_CHARSET",
    )

    exception_mappings: list[MappingEntry] = Field(
        default_factory=lambda: list(DEFAULT_MAPPINGS),
        description="Ordered exception type patterns with default status/message/code.",
        validation_alias="ERROR_EXCEPTION_MAPPINGS",
    )

    default_exception_mapping: MappingEntry = Field(
        default=DEFAULT_MAPPING,
        description="Catch-all mapping used when no entry matches.",
        validation_alias="ERROR_DEFAULT_EXCEPTION_MAPPING",
    )

    field_policies: list[FieldPolicy] = Field(
        default_factory=list,
        description="Ordered exception type patterns with field exposure switches.",
        validation_alias="ERROR_FIELD_POLICIES",
    )

    default_field_policy: FieldPolicy = Field(
        default=DEFAULT_FIELD_POLICY,
        description="Catch-all field policy used when no policy matches.",
        validation_alias="ERROR_DEFAULT_FIELD_POLICY",
    )

    max_cause_depth: int = Field(
        default=MAX_DEPTH,
        ge=1,
        le=256,
        description="Maximum depth of cause chains and type hierarchy walks.",
        validation_alias="ERROR_MAX_CAUSE_DEPTH",
    )

    log_level: str | None = Field(
        default=None,
        description="Root log level (e.g. INFO, DEBUG).",
        validation_alias="LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
    )

    @field_validator("default_charset")
    @classmethod
    def _validate_charset(cls, value: str) -> str:
        """Reject charsets Python cannot decode."""
        try:
            return codecs.lookup(value).name
        except LookupError as exc:
            raise ValueError(f"unknown charset: {value!r}") from exc

    @model_validator(mode="after")
    def _compute_api_paths_and_defaults(self) -> Settings:
        """Compute API paths and force catch-all patterns on the defaults.

        Returns:
            Settings: The validated and possibly mutated settings instance.
        """
        raw = (self.api_paths_raw or "").strip()
        if raw:
            self.api_path_patterns = [p.strip() for p in raw.split(",") if p.strip()]

        if self.default_exception_mapping.type_pattern != CATCH_ALL_PATTERN:
            raise ValueError("ERROR_DEFAULT_EXCEPTION_MAPPING must use the '*' type pattern.")
        if self.default_field_policy.type_pattern != CATCH_ALL_PATTERN:
            raise ValueError("ERROR_DEFAULT_FIELD_POLICY must use the '*' type pattern.")
        return self

    def to_mapping_table(self) -> ExceptionMappingTable:
        """Build the exception mapping table described by these settings."""
        return ExceptionMappingTable(
            mappings=self.exception_mappings,
            default_mapping=self.default_exception_mapping,
            policies=self.field_policies,
            default_policy=self.default_field_policy,
            max_depth=self.max_cause_depth,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Returns:
        Settings: Validated settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
        logger.info(
            "Settings initialized",
            extra={
                "extra": {
                    "application_name": settings.application_name,
                    "api_path_patterns": settings.api_path_patterns,
                    "mapping_count": len(settings.exception_mappings),
                    "policy_count": len(settings.field_policies),
                    "max_cause_depth": settings.max_cause_depth,
                }
            },
        )
        return settings
    except ValidationError as exc:
        logger.exception("Invalid error handling configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
