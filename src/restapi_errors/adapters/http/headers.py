# src/restapi_errors/adapters/http/headers.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Header-only error encoding.

Purpose:
    Names of the ``X-ERROR-*`` headers and conversion between an
    :class:`ErrorRepresentation` and those headers, used when the client
    accepts neither JSON nor XML.

Layer:
    adapters/http
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import Final

from restapi_errors.domain.entities.error_representation import ErrorRepresentation

ID_HEADER: Final[str] = "X-ERROR-ID"
TIMESTAMP_HEADER: Final[str] = "X-ERROR-TIMESTAMP"
CODE_HEADER: Final[str] = "X-ERROR-CODE"
CODE_INHERITED_HEADER: Final[str] = "X-ERROR-CODE-INHERITED"
MESSAGE_HEADER: Final[str] = "X-ERROR-MESSAGE"
EXCEPTION_HEADER: Final[str] = "X-ERROR-EXCEPTION"
APPLICATION_HEADER: Final[str] = "X-ERROR-APPLICATION"
PATH_HEADER: Final[str] = "X-ERROR-PATH"
RETRY_AFTER_HEADER: Final[str] = "Retry-After"

_LINE_BREAKS_RE: Final[re.Pattern[str]] = re.compile(r"[\r\n]+")


def format_http_date(value: datetime) -> str:
    """Format an instant as an RFC 1123 HTTP date, e.g. ``Mon, 24 Dec 2007 18:21:00 GMT``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return format_datetime(value.astimezone(UTC), usegmt=True)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an RFC 1123 HTTP date into an aware UTC datetime.

    Returns:
        The instant, or ``None`` when ``value`` is missing or malformed.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _header_value(value: str) -> str:
    """Make ``value`` safe for an HTTP header (single line, Latin-1)."""
    value = _LINE_BREAKS_RE.sub(" ", value)
    return value.encode("latin-1", "replace").decode("latin-1")


def to_error_headers(
    representation: ErrorRepresentation,
    now: datetime | None = None,
) -> dict[str, str]:
    """Encode a representation as ``X-ERROR-*`` headers.

    Absent fields are not emitted. The timestamp header is always present and
    falls back to ``now``. The code headers are emitted only with a code.

    Args:
        representation: Representation to encode.
        now: Fallback timestamp; the current time when omitted.

    Returns:
        Header names mapped to values.
    """
    headers: dict[str, str] = {}
    if representation.id:
        headers[ID_HEADER] = _header_value(representation.id)
    timestamp = representation.timestamp or now or datetime.now(tz=UTC)
    headers[TIMESTAMP_HEADER] = format_http_date(timestamp)
    if representation.error_code:
        headers[CODE_HEADER] = _header_value(representation.error_code)
        headers[CODE_INHERITED_HEADER] = "true" if representation.error_code_inherited else "false"
    if representation.message:
        headers[MESSAGE_HEADER] = _header_value(representation.message)
    if representation.exception_type:
        headers[EXCEPTION_HEADER] = _header_value(representation.exception_type)
    if representation.application:
        headers[APPLICATION_HEADER] = _header_value(representation.application)
    if representation.path:
        headers[PATH_HEADER] = _header_value(representation.path)
    return headers


def from_error_headers(headers: Mapping[str, str]) -> ErrorRepresentation:
    """Decode ``X-ERROR-*`` headers into a representation.

    Args:
        headers: Response headers; names are matched case-insensitively.

    Returns:
        The representation (status fields are left to the caller).
    """
    lowered = {str(k).lower(): str(v) for k, v in headers.items()}

    def get(name: str) -> str | None:
        value = lowered.get(name.lower())
        return value if value else None

    code = get(CODE_HEADER)
    inherited = (get(CODE_INHERITED_HEADER) or "").strip().lower() == "true"
    return ErrorRepresentation(
        id=get(ID_HEADER),
        timestamp=parse_http_date(get(TIMESTAMP_HEADER)),
        error_code=code,
        error_code_inherited=bool(code) and inherited,
        message=get(MESSAGE_HEADER),
        exception_type=get(EXCEPTION_HEADER),
        application=get(APPLICATION_HEADER),
        path=get(PATH_HEADER),
    )
