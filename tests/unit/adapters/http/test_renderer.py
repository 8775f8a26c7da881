# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Unit tests for ErrorRenderer."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime

import defusedxml.ElementTree as ET
import pytest

from restapi_errors.adapters import codecs
from restapi_errors.adapters.http.headers import CODE_HEADER, MESSAGE_HEADER, TIMESTAMP_HEADER
from restapi_errors.adapters.http.media_types import ResponseFormat
from restapi_errors.adapters.http.renderer import ErrorRenderer
from restapi_errors.domain.entities.error_representation import ErrorRepresentation

REP = ErrorRepresentation(
    status=409,
    status_text="Conflict",
    error_code="PET_STORE:1234",
    message="Pet already exists.",
)


def test_json_when_json_is_accepted(fixed_clock: Callable[[], datetime]) -> None:
    rendered = ErrorRenderer(fixed_clock).render(REP, "application/json")

    assert rendered.response_format is ResponseFormat.JSON
    assert rendered.status_code == 409
    assert rendered.content_type == "application/json"
    assert rendered.headers == {}
    assert json.loads(rendered.body)["errorCode"] == "PET_STORE:1234"


def test_xml_when_only_xml_is_accepted(fixed_clock: Callable[[], datetime]) -> None:
    rendered = ErrorRenderer(fixed_clock).render(REP, ["text/html", "application/xml"])

    assert rendered.response_format is ResponseFormat.XML
    assert rendered.content_type == "application/xml"
    assert ET.fromstring(rendered.body).findtext("message") == "Pet already exists."


def test_header_only_for_unsupported_media_types(fixed_clock: Callable[[], datetime]) -> None:
    rendered = ErrorRenderer(fixed_clock).render(REP, "image/jpeg")

    assert rendered.response_format is ResponseFormat.HEADER
    assert rendered.body == b""
    assert rendered.content_type == "text/plain"
    assert rendered.status_code == 409
    assert rendered.headers[CODE_HEADER] == "PET_STORE:1234"
    assert rendered.headers[MESSAGE_HEADER] == "Pet already exists."
    # No timestamp on the representation, so the renderer's clock is used.
    assert rendered.headers[TIMESTAMP_HEADER] == "Wed, 01 May 2024 12:30:15 GMT"


def test_missing_accept_renders_headers_and_defaults_status() -> None:
    rendered = ErrorRenderer().render(ErrorRepresentation(message="x"), None)
    assert rendered.response_format is ResponseFormat.HEADER
    assert rendered.status_code == 500
    assert TIMESTAMP_HEADER in rendered.headers


def test_encoding_failure_falls_back_to_headers(
    monkeypatch: pytest.MonkeyPatch, fixed_clock: Callable[[], datetime]
) -> None:
    def _fail(*args: object, **kwargs: object) -> bytes:
        raise ValueError("cannot encode")

    monkeypatch.setattr(codecs, "encode", _fail)

    rendered = ErrorRenderer(fixed_clock).render(REP, "application/json")

    assert rendered.response_format is ResponseFormat.HEADER
    assert rendered.body == b""
    assert rendered.status_code == 409
    assert rendered.headers[CODE_HEADER] == "PET_STORE:1234"
    assert rendered.headers[MESSAGE_HEADER] == "Pet already exists."
