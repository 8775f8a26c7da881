# src/restapi_errors/adapters/clients/error_decoder.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Client-side error decoder for httpx.

Purpose:
    Convert an error response received from another service into a local
    exception: a :class:`RestApiResponseError` carrying the decoded remote
    representation, or a :class:`RetryableError` when the response carries a
    usable ``Retry-After`` header.

Usage:
    decoder = ClientErrorDecoder()
    client = httpx.Client(event_hooks={"response": [decoder.raise_for_error]})
    async_client = httpx.AsyncClient(event_hooks={"response": [decoder.araise_for_error]})

Layer:
    adapters/clients
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import httpx

from restapi_errors.adapters.clients.errors import RestApiResponseError, RetryableError
from restapi_errors.adapters.clients.retry_after import parse_retry_after
from restapi_errors.adapters.http.headers import RETRY_AFTER_HEADER
from restapi_errors.adapters.http.parser import ErrorResponseParser
from restapi_errors.infrastructure.observability.metrics import (
    get_api_error_retry_hints_total,
    inc_safely,
)

logger = logging.getLogger(__name__)


def _request_of(response: httpx.Response) -> httpx.Request | None:
    try:
        return response.request
    except RuntimeError:
        return None


def _response_body(response: httpx.Response) -> bytes:
    """Return the response body, reading it if needed; unreadable bodies are empty."""
    try:
        return response.content
    except httpx.ResponseNotRead:
        pass
    try:
        return response.read()
    except Exception:
        logger.debug("error_decoder.body_unreadable", exc_info=True)
        return b""


class ClientErrorDecoder:
    """Decode error responses into local exceptions.

    Args:
        parser: Wire parser; a default UTF-8 parser when omitted.
        clock: Source of the current time for delta-seconds retry hints.
    """

    def __init__(
        self,
        parser: ErrorResponseParser | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._parser = parser or ErrorResponseParser()
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def build_exception(
        self, response: httpx.Response, method_key: str | None = None
    ) -> RestApiResponseError:
        """Decode ``response`` without interpreting retry hints.

        Args:
            response: The error response.
            method_key: Identifies the client call in the message; defaults to
                ``"<METHOD> <URL>"`` of the request.

        Returns:
            The decoded error.
        """
        request = _request_of(response)
        if method_key is None:
            method_key = f"{request.method} {request.url}" if request is not None else "request"
        body = _response_body(response)
        representation = self._parser.parse(body, response.status_code, response.headers)
        return RestApiResponseError(
            response.status_code,
            representation,
            f"Status {response.status_code} reading {method_key}",
            method=request.method if request is not None else None,
            url=str(request.url) if request is not None else None,
            headers=response.headers,
            body=body,
        )

    def decode(self, method_key: str, response: httpx.Response) -> Exception:
        """Decode ``response`` into the exception a client call should raise.

        Args:
            method_key: Identifies the client call, e.g. ``"PetClient#get_pet"``.
            response: The error response.

        Returns:
            A :class:`RetryableError` (caused by the decoded error) when a
            ``Retry-After`` header parses, otherwise the
            :class:`RestApiResponseError`.
        """
        decoded = self.build_exception(response, method_key)
        raw_retry_after = response.headers.get(RETRY_AFTER_HEADER)
        retry_after = parse_retry_after(raw_retry_after, now=self._clock())
        if retry_after is None:
            outcome = "absent" if raw_retry_after is None else "invalid"
            inc_safely(get_api_error_retry_hints_total, outcome=outcome)
            return decoded

        inc_safely(get_api_error_retry_hints_total, outcome="retryable")
        retryable = RetryableError(
            response.status_code,
            str(decoded),
            decoded.method,
            retry_after,
        )
        retryable.__cause__ = decoded
        return retryable

    def raise_for_error(self, response: httpx.Response) -> None:
        """httpx ``response`` event hook raising the decoded error for 4xx/5xx responses."""
        if not response.is_error:
            return
        response.read()
        raise self.decode(self._method_key(response), response)

    async def araise_for_error(self, response: httpx.Response) -> None:
        """Async variant of :meth:`raise_for_error` for ``httpx.AsyncClient``."""
        if not response.is_error:
            return
        await response.aread()
        raise self.decode(self._method_key(response), response)

    @staticmethod
    def _method_key(response: httpx.Response) -> str:
        request = _request_of(response)
        return f"{request.method} {request.url}" if request is not None else "request"
