# src/restapi_errors/adapters/clients/errors.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Client-side error types.

Purpose:
    Exceptions raised by HTTP clients when a called service answers with an
    error. :class:`RestApiResponseError` carries the decoded remote
    representation, so re-raising it through this service's exception handler
    shows the remote failure one level down as ``cause``.
    :class:`RetryableError` signals that the remote service asked the caller to
    retry after a given instant.

Layer:
    adapters/clients
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from restapi_errors.domain.entities.error_representation import (
    ErrorRepresentation,
    is_valid_status,
)


class RestApiResponseError(Exception):
    """A remote service answered with an error response.

    Attributes:
        http_status: Transport status (invalid codes resolve to 500).
        representation: The decoded remote error representation.
        method: HTTP method of the failed request, if known.
        url: URL of the failed request, if known.
        headers: Response headers.
        body: Raw response body.
    """

    def __init__(
        self,
        http_status: int,
        representation: ErrorRepresentation,
        message: str | None = None,
        *,
        method: str | None = None,
        url: str | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        super().__init__(message or representation.message or f"Status {http_status}")
        self.http_status = http_status if is_valid_status(http_status) else 500
        self.representation = representation
        self.method = method
        self.url = url
        self.headers: dict[str, str] = dict(headers or {})
        self.body = body


class RetryableError(Exception):
    """The remote service asked the caller to retry later.

    The decoded :class:`RestApiResponseError` is chained as ``__cause__``.

    Attributes:
        http_status: Transport status.
        method: HTTP method of the failed request, if known.
        retry_after: UTC instant after which the request may be retried.
    """

    def __init__(
        self,
        http_status: int,
        message: str,
        method: str | None,
        retry_after: datetime,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status if is_valid_status(http_status) else 500
        self.method = method
        self.retry_after = retry_after
