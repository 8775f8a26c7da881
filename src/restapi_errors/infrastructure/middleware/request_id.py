# src/restapi_errors/infrastructure/middleware/request_id.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Request ID Middleware.

Summary:
    Gives every request a correlation id that ties a server error seen by a
    client to the log lines of the failing request.

Contract:
    • Reads:  the correlation header (``X-Request-ID`` by default), when safe
    • Writes: the same header on every response that passes through
    • Stores: request.state.request_id (str), read back by :func:`request_id_of`
    • Enriches logs via contextvars for the duration of the request

Error correlation:
    :class:`~restapi_errors.adapters.http.exception_handler.ApiExceptionHandler`
    calls :func:`request_id_of` and uses the id in place of the generated
    ``id`` of 5xx error representations, so the ``id`` in the error body (or
    the ``X-ERROR-ID`` header) equals the correlation id of the request.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable
from typing import Final

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from restapi_errors.infrastructure.logging.logger import (
    reset_request_context,
    set_request_context,
)

REQUEST_ID_HEADER: Final[str] = "X-Request-ID"
STATE_ATTRIBUTE: Final[str] = "request_id"
_SAFE_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9\-_.:@]{1,128}$")


def _new_request_id() -> str:
    return str(uuid.uuid4())


def _coerce_request_id(raw: str | None, factory: Callable[[], str] = _new_request_id) -> str:
    """Return ``raw`` when it is a safe opaque token, otherwise a fresh id."""
    if raw and _SAFE_RE.match(raw):
        return raw
    return factory()


def request_id_of(request: Request) -> str | None:
    """Return the correlation id the middleware stored for ``request``, if any."""
    value = getattr(request.state, STATE_ATTRIBUTE, None)
    return value if isinstance(value, str) and value else None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign, expose and echo a per-request correlation id.

    Args:
        app: The wrapped ASGI application.
        header_name: Header carrying the id in both directions.
        id_factory: Generator for requests without a usable incoming id.
    """

    def __init__(
        self,
        app: ASGIApp,
        header_name: str = REQUEST_ID_HEADER,
        id_factory: Callable[[], str] = _new_request_id,
    ) -> None:
        super().__init__(app)
        self._header_name = header_name
        self._id_factory = id_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        req_id = _coerce_request_id(request.headers.get(self._header_name), self._id_factory)
        setattr(request.state, STATE_ATTRIBUTE, req_id)

        token = set_request_context(request_id=req_id)
        try:
            response: Response = await call_next(request)
        finally:
            reset_request_context(token)
        response.headers.setdefault(self._header_name, req_id)
        return response
