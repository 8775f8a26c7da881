# src/restapi_errors/adapters/http/exception_handler.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""FastAPI exception handler writing error representations.

Purpose:
    Catch exceptions raised by API routes, build their
    :class:`ErrorRepresentation` and write it in the format the client
    accepts (JSON, XML or ``X-ERROR-*`` headers).

Contract:
    • Responsible only for requests whose path matches one of ``api_paths``
      (glob patterns such as ``/api/*``); every request when none are set.
    • Other requests get FastAPI's default error responses.
    • The request correlation id (see :func:`request_id_of`) replaces the
      generated ``id`` of server errors when available.

Layer:
    adapters/http
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable, Iterable

from fastapi import FastAPI, Request
from fastapi.exception_handlers import (
    http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import PlainTextResponse, Response

from restapi_errors.adapters.clients.errors import RestApiResponseError, RetryableError
from restapi_errors.adapters.http.renderer import ErrorRenderer
from restapi_errors.domain.exceptions.base import DomainError
from restapi_errors.domain.interfaces.metadata_lookup import HandlingContext
from restapi_errors.domain.services.representation_builder import RepresentationBuilder
from restapi_errors.infrastructure.middleware.request_id import request_id_of
from restapi_errors.infrastructure.observability.metrics import (
    get_api_errors_rendered_total,
    inc_safely,
)

logger = logging.getLogger(__name__)

IdProvider = Callable[[Request], str | None]


class ApiExceptionHandler:
    """Exception handler rendering error representations for API routes.

    Args:
        builder: Builds representations from exceptions.
        renderer: Writes representations in the negotiated format.
        api_paths: Glob patterns of request paths this handler is responsible for.
        id_provider: Supplies the id of server-error representations for a
            request; ``None`` keeps the id generated by the builder.
    """

    def __init__(
        self,
        builder: RepresentationBuilder,
        renderer: ErrorRenderer | None = None,
        *,
        api_paths: Iterable[str] = (),
        id_provider: IdProvider | None = request_id_of,
    ) -> None:
        self._builder = builder
        self._renderer = renderer or ErrorRenderer()
        self._api_paths = tuple(p for p in api_paths if p)
        self._id_provider = id_provider

    def is_responsible(self, request: Request) -> bool:
        """Return True when ``request`` is an API request."""
        if not self._api_paths:
            return True
        path = request.url.path
        return any(fnmatch.fnmatchcase(path, pattern) for pattern in self._api_paths)

    async def __call__(self, request: Request, exc: Exception) -> Response:
        """Render ``exc`` for ``request``."""
        if not self.is_responsible(request):
            return await self._fallback(request, exc)

        context = HandlingContext.from_endpoint(request.scope.get("endpoint"))
        representation = self._builder.build(exc, request.url.path, context)
        if self._id_provider is not None and representation.id:
            try:
                error_id = self._id_provider(request)
            except Exception:
                logger.debug("api_error.id_provider_failed", exc_info=True)
                error_id = None
            if error_id:
                representation = representation.with_changes(id=error_id)

        accept = ", ".join(request.headers.getlist("accept"))
        rendered = self._renderer.render(representation, accept)

        fields = {
            "status": rendered.status_code,
            "format": rendered.response_format.value,
            "path": request.url.path,
            "error_code": representation.error_code,
            "exception_type": type(exc).__name__,
        }
        if rendered.status_code >= 500:
            logger.error("api_error.rendered", exc_info=exc, extra={"extra": fields})
        else:
            logger.info("api_error.rendered", extra={"extra": fields})
        inc_safely(
            get_api_errors_rendered_total,
            format=rendered.response_format.value,
            status=str(rendered.status_code),
        )

        headers: dict[str, str] = {}
        if isinstance(exc, StarletteHTTPException) and exc.headers:
            headers.update(exc.headers)
        headers.update(rendered.headers)
        return Response(
            content=rendered.body,
            status_code=rendered.status_code,
            headers=headers,
            media_type=rendered.content_type,
        )

    @staticmethod
    async def _fallback(request: Request, exc: Exception) -> Response:
        if isinstance(exc, RequestValidationError):
            return await request_validation_exception_handler(request, exc)
        if isinstance(exc, StarletteHTTPException):
            return await http_exception_handler(request, exc)
        logger.error(
            "api_error.unhandled",
            exc_info=exc,
            extra={"extra": {"path": request.url.path}},
        )
        return PlainTextResponse("Internal Server Error", status_code=500)


def install_api_exception_handler(app: FastAPI, handler: ApiExceptionHandler) -> None:
    """Register ``handler`` for every exception type an API route may raise.

    Specific types are registered besides ``Exception`` so they are handled by
    Starlette's exception middleware and never re-raised to the server.
    """
    for exc_type in (
        StarletteHTTPException,
        RequestValidationError,
        DomainError,
        RestApiResponseError,
        RetryableError,
        Exception,
    ):
        app.add_exception_handler(exc_type, handler)  # type: ignore[arg-type]
