# src/restapi_errors/dependencies/errors.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Dependency wiring for error representation handling.

Overview:
    Builds the mapping table, builder, renderer, parser and client decoder
    from :class:`Settings` and installs the API exception handler and the
    request id middleware on a FastAPI application.

Layer:
    dependencies

Design:
    * Providers accept an explicit ``Settings`` so tests never depend on the
      process environment; they fall back to the cached ``get_settings()``.
    * Settings are read once at installation; the installed objects are
      immutable afterwards.
"""

from __future__ import annotations

from fastapi import FastAPI

from restapi_errors.adapters.clients.error_decoder import ClientErrorDecoder
from restapi_errors.adapters.http.exception_handler import (
    ApiExceptionHandler,
    install_api_exception_handler,
)
from restapi_errors.adapters.http.parser import ErrorResponseParser
from restapi_errors.adapters.http.renderer import ErrorRenderer
from restapi_errors.adapters.metadata.decorators import AttributeMetadataLookup
from restapi_errors.config.settings import Settings, get_settings
from restapi_errors.domain.services.exception_resolver import ExceptionResolver
from restapi_errors.domain.services.representation_builder import RepresentationBuilder
from restapi_errors.infrastructure.logging.logger import configure_root_logging, get_json_logger
from restapi_errors.infrastructure.middleware.request_id import RequestIdMiddleware

logger = get_json_logger(__name__)


def get_representation_builder(settings: Settings | None = None) -> RepresentationBuilder:
    """Return a builder configured from settings, with decorator metadata lookup."""
    settings = settings or get_settings()
    table = settings.to_mapping_table()
    return RepresentationBuilder(
        table,
        ExceptionResolver(table, AttributeMetadataLookup()),
        application_name=settings.application_name,
        max_depth=settings.max_cause_depth,
    )


def get_error_parser(settings: Settings | None = None) -> ErrorResponseParser:
    """Return a wire parser using the configured default charset."""
    settings = settings or get_settings()
    return ErrorResponseParser(default_charset=settings.default_charset)


def get_client_error_decoder(settings: Settings | None = None) -> ClientErrorDecoder:
    """Return a client error decoder for httpx clients calling other services."""
    return ClientErrorDecoder(parser=get_error_parser(settings))


def install_error_handling(
    app: FastAPI,
    settings: Settings | None = None,
    *,
    configure_logging: bool = False,
) -> ApiExceptionHandler:
    """Install the API exception handler and request id middleware on ``app``.

    Args:
        app: FastAPI application.
        settings: Settings to use; the cached settings when omitted.
        configure_logging: Also configure JSON root logging at ``LOG_LEVEL``.

    Returns:
        The installed handler.
    """
    settings = settings or get_settings()
    if configure_logging:
        configure_root_logging(settings.log_level)

    handler = ApiExceptionHandler(
        get_representation_builder(settings),
        ErrorRenderer(),
        api_paths=settings.api_path_patterns,
    )
    install_api_exception_handler(app, handler)
    app.add_middleware(RequestIdMiddleware)
    logger.info(
        "error_handling.installed",
        extra={
            "extra": {
                "application_name": settings.application_name,
                "api_path_patterns": settings.api_path_patterns,
            }
        },
    )
    return handler
