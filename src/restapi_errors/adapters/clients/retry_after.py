# src/restapi_errors/adapters/clients/retry_after.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Retry-After header interpretation.

Purpose:
    Turn a ``Retry-After`` header value into the absolute instant after which
    a request may be retried.

Accepted forms:
    * delta-seconds: ``"30"`` or ``"30.0"`` (any fraction is truncated);
    * HTTP date: ``"Mon, 24 Dec 2007 18:21:00 GMT"``.

Anything else is treated as absent.

Layer:
    adapters/clients
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Final

from restapi_errors.adapters.http.headers import parse_http_date

logger = logging.getLogger(__name__)

_DELTA_SECONDS_RE: Final[re.Pattern[str]] = re.compile(r"^(\d+)(?:\.\d*)?$")
# Longer digit runs exceed any representable datetime offset.
_MAX_DELTA_DIGITS: Final[int] = 18


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> datetime | None:
    """Interpret a ``Retry-After`` header value.

    Args:
        value: Raw header value, if any.
        now: Reference instant for delta-seconds; the current time when omitted.

    Returns:
        The UTC instant to retry after, or ``None`` when the header is absent
        or cannot be interpreted.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None

    match = _DELTA_SECONDS_RE.match(raw)
    if match:
        reference = now or datetime.now(tz=UTC)
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=UTC)
        digits = match.group(1).lstrip("0") or "0"
        if len(digits) <= _MAX_DELTA_DIGITS:
            try:
                return reference + timedelta(seconds=int(digits))
            except OverflowError:
                pass
        logger.debug("retry_after.out_of_range", extra={"extra": {"retry_after": raw}})
        return None

    parsed = parse_http_date(raw)
    if parsed is None:
        logger.debug("retry_after.unparseable", extra={"extra": {"retry_after": raw}})
    return parsed
