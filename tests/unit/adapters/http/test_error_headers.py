# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Unit tests for the X-ERROR-* header encoding."""

from __future__ import annotations

from datetime import UTC, datetime

from restapi_errors.adapters.http.headers import (
    CODE_HEADER,
    CODE_INHERITED_HEADER,
    ID_HEADER,
    MESSAGE_HEADER,
    PATH_HEADER,
    TIMESTAMP_HEADER,
    format_http_date,
    from_error_headers,
    parse_http_date,
    to_error_headers,
)
from restapi_errors.domain.entities.error_representation import ErrorRepresentation


def test_http_date_format_and_parse() -> None:
    instant = datetime(2007, 12, 24, 18, 21, tzinfo=UTC)
    assert format_http_date(instant) == "Mon, 24 Dec 2007 18:21:00 GMT"
    assert parse_http_date("Mon, 24 Dec 2007 18:21:00 GMT") == instant


def test_parse_http_date_rejects_garbage() -> None:
    assert parse_http_date("yesterday") is None
    assert parse_http_date("") is None
    assert parse_http_date(None) is None


def test_to_error_headers_emits_present_fields(fixed_now: datetime) -> None:
    rep = ErrorRepresentation(
        id="abc",
        timestamp=fixed_now,
        status=409,
        error_code="PET_STORE:1234",
        message="Pet already exists.",
        path="/pets",
    )

    headers = to_error_headers(rep)

    assert headers == {
        ID_HEADER: "abc",
        TIMESTAMP_HEADER: "Wed, 01 May 2024 12:30:15 GMT",
        CODE_HEADER: "PET_STORE:1234",
        CODE_INHERITED_HEADER: "false",
        MESSAGE_HEADER: "Pet already exists.",
        PATH_HEADER: "/pets",
    }


def test_timestamp_is_always_present_and_code_headers_need_a_code(fixed_now: datetime) -> None:
    headers = to_error_headers(ErrorRepresentation(status=500), now=fixed_now)
    assert headers == {TIMESTAMP_HEADER: "Wed, 01 May 2024 12:30:15 GMT"}


def test_header_values_are_single_line_latin1(fixed_now: datetime) -> None:
    rep = ErrorRepresentation(timestamp=fixed_now, message="line one\r\nline two €")
    assert to_error_headers(rep)[MESSAGE_HEADER] == "line one line two ?"


def test_from_error_headers_is_case_insensitive() -> None:
    rep = from_error_headers(
        {
            "x-error-id": "abc",
            "X-Error-Timestamp": "Mon, 24 Dec 2007 18:21:00 GMT",
            "x-error-code": "C:1",
            "X-ERROR-CODE-INHERITED": "TRUE",
            "x-error-message": "boom",
            "x-error-exception": "myapp.Boom",
            "x-error-application": "pets",
            "x-error-path": "/pets",
            "content-type": "text/plain",
        }
    )
    assert rep.id == "abc"
    assert rep.timestamp == datetime(2007, 12, 24, 18, 21, tzinfo=UTC)
    assert rep.error_code == "C:1"
    assert rep.error_code_inherited is True
    assert rep.message == "boom"
    assert rep.exception_type == "myapp.Boom"
    assert rep.application == "pets"
    assert rep.path == "/pets"
    assert rep.status is None


def test_inherited_header_without_code_is_ignored() -> None:
    rep = from_error_headers({CODE_INHERITED_HEADER: "true"})
    assert rep.error_code is None
    assert rep.error_code_inherited is False
