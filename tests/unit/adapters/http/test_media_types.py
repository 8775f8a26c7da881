# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Unit tests for media type parsing and error-format negotiation."""

from __future__ import annotations

import pytest

from restapi_errors.adapters.http.media_types import (
    MediaType,
    ResponseFormat,
    detect_content_format,
    negotiate_response_format,
)


def test_parse_media_type_with_parameters() -> None:
    media_type = MediaType.parse('Application/Problem+JSON; charset="UTF-8"; q=0.9')
    assert media_type is not None
    assert (media_type.type, media_type.subtype) == ("application", "problem+json")
    assert media_type.charset == "UTF-8"
    assert media_type.suffix == "json"


@pytest.mark.parametrize("value", [None, "", "json", "/json", "application/"])
def test_parse_rejects_malformed(value: str | None) -> None:
    assert MediaType.parse(value) is None


def test_parse_list_splits_header_and_skips_garbage() -> None:
    parsed = MediaType.parse_list("text/html, bogus, application/json;q=0.5")
    assert [str(m).split(";")[0] for m in parsed] == ["text/html", "application/json"]


def test_wildcard_inclusion() -> None:
    any_type = MediaType.parse("*/*")
    text_any = MediaType.parse("text/*")
    plus_json = MediaType.parse("application/*+json")
    problem = MediaType.parse("application/problem+json")
    assert any_type and text_any and plus_json and problem
    assert any_type.includes(problem)
    assert text_any.includes(MediaType("text", "plain"))
    assert not text_any.includes(problem)
    assert plus_json.includes(problem)
    assert plus_json.includes(MediaType("application", "json"))
    assert not problem.includes(plus_json)
    assert problem.is_compatible_with(plus_json)


@pytest.mark.parametrize(
    ("accept", "expected"),
    [
        ("application/json", ResponseFormat.JSON),
        ("*/*", ResponseFormat.JSON),
        ("application/problem+json", ResponseFormat.JSON),
        ("text/plain", ResponseFormat.JSON),
        ("application/xml", ResponseFormat.XML),
        ("text/xml", ResponseFormat.XML),
        ("application/atom+xml", ResponseFormat.XML),
        ("application/xml, application/json", ResponseFormat.JSON),
        ("image/jpeg", ResponseFormat.HEADER),
        ("text/html", ResponseFormat.HEADER),
        ("", ResponseFormat.HEADER),
        (None, ResponseFormat.HEADER),
    ],
)
def test_negotiate_response_format(accept: str | None, expected: ResponseFormat) -> None:
    assert negotiate_response_format(accept) is expected


def test_negotiate_accepts_parsed_media_types() -> None:
    accepted = [MediaType("image", "png"), MediaType("text", "xml")]
    assert negotiate_response_format(accepted) is ResponseFormat.XML
    assert negotiate_response_format([]) is ResponseFormat.HEADER


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("application/json; charset=utf-8", ResponseFormat.JSON),
        ("application/problem+json", ResponseFormat.JSON),
        ("application/xml", ResponseFormat.XML),
        ("text/xml;charset=ISO-8859-1", ResponseFormat.XML),
        ("application/soap+xml", ResponseFormat.XML),
        ("text/plain", ResponseFormat.HEADER),
        ("text/html", ResponseFormat.HEADER),
        ("nonsense", ResponseFormat.HEADER),
        (None, ResponseFormat.HEADER),
    ],
)
def test_detect_content_format(content_type: str | None, expected: ResponseFormat) -> None:
    assert detect_content_format(content_type) is expected
