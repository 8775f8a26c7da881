# src/restapi_errors/adapters/http/media_types.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Media types and content negotiation for error responses.

Purpose:
    Parse media types from ``Accept``/``Content-Type`` headers and decide
    whether an error is written as a JSON document, an XML document or as
    ``X-ERROR-*`` headers only.

Rules:
    * Rendering (by accepted types): JSON when an accepted type includes
      ``application/json``, is included by ``application/*+json`` or includes
      ``text/plain``; else XML when it includes ``application/xml``, is
      included by ``application/*+xml`` or includes ``text/xml``; else
      header-only.
    * Parsing (by content type): JSON when compatible with
      ``application/json`` or ``application/*+json``; XML when compatible with
      ``application/xml``, ``application/*+xml`` or ``text/xml``.

Layer:
    adapters/http
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Final


class ResponseFormat(str, Enum):
    """Wire format of an error response."""

    JSON = "json"
    XML = "xml"
    HEADER = "header"


@dataclass(frozen=True, slots=True)
class MediaType:
    """A parsed media type such as ``application/problem+json; charset=utf-8``."""

    type: str
    subtype: str
    parameters: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, value: str | None) -> MediaType | None:
        """Parse a single media type; returns ``None`` when malformed."""
        if not value:
            return None
        head, *params = value.split(";")
        head = head.strip().lower()
        if head == "*":
            head = "*/*"
        main, sep, sub = head.partition("/")
        if not sep or not main or not sub:
            return None
        parameters: dict[str, str] = {}
        for param in params:
            key, eq, val = param.partition("=")
            if eq and key.strip():
                parameters[key.strip().lower()] = val.strip().strip('"')
        return cls(type=main, subtype=sub, parameters=parameters)

    @classmethod
    def parse_list(cls, values: str | Iterable[str | MediaType] | None) -> list[MediaType]:
        """Parse a comma-separated header value or a sequence of media types."""
        if values is None:
            return []
        if isinstance(values, str):
            values = [values]
        parsed: list[MediaType] = []
        for value in values:
            if isinstance(value, MediaType):
                parsed.append(value)
                continue
            for part in value.split(","):
                media_type = cls.parse(part)
                if media_type is not None:
                    parsed.append(media_type)
        return parsed

    @property
    def charset(self) -> str | None:
        return self.parameters.get("charset") or None

    @property
    def is_wildcard_type(self) -> bool:
        return self.type == "*"

    @property
    def is_wildcard_subtype(self) -> bool:
        return self.subtype == "*" or self.subtype.startswith("*+")

    @property
    def suffix(self) -> str | None:
        _, plus, suffix = self.subtype.rpartition("+")
        return suffix if plus else None

    def includes(self, other: MediaType) -> bool:
        """Return True when this (possibly wildcard) type includes ``other``.

        ``*/*`` includes everything, ``text/*`` includes ``text/plain`` and
        ``application/*+json`` includes ``application/problem+json``.
        """
        if self.is_wildcard_type:
            return True
        if self.type != other.type:
            return False
        if self.subtype == other.subtype or self.subtype == "*":
            return True
        if self.subtype.startswith("*+"):
            this_suffix = self.subtype[2:]
            if other.subtype == this_suffix:
                return True
            if other.suffix == this_suffix:
                return True
        return False

    def is_compatible_with(self, other: MediaType) -> bool:
        """Return True when either type includes the other."""
        return self.includes(other) or other.includes(self)

    def __str__(self) -> str:
        params = "".join(f"; {k}={v}" for k, v in self.parameters.items())
        return f"{self.type}/{self.subtype}{params}"


APPLICATION_JSON: Final[MediaType] = MediaType("application", "json")
APPLICATION_PLUS_JSON: Final[MediaType] = MediaType("application", "*+json")
APPLICATION_XML: Final[MediaType] = MediaType("application", "xml")
APPLICATION_PLUS_XML: Final[MediaType] = MediaType("application", "*+xml")
TEXT_PLAIN: Final[MediaType] = MediaType("text", "plain")
TEXT_XML: Final[MediaType] = MediaType("text", "xml")


def _accepts_json(media_type: MediaType) -> bool:
    return (
        media_type.includes(APPLICATION_JSON)
        or APPLICATION_PLUS_JSON.includes(media_type)
        or media_type.includes(TEXT_PLAIN)
    )


def _accepts_xml(media_type: MediaType) -> bool:
    return (
        media_type.includes(APPLICATION_XML)
        or APPLICATION_PLUS_XML.includes(media_type)
        or media_type.includes(TEXT_XML)
    )


def negotiate_response_format(
    accepted: str | Iterable[str | MediaType] | None,
) -> ResponseFormat:
    """Choose the error response format for the accepted media types.

    Args:
        accepted: An ``Accept`` header value, or accepted/declared media types.

    Returns:
        JSON, XML or HEADER. An empty list yields HEADER.
    """
    media_types = MediaType.parse_list(accepted)
    if any(_accepts_json(m) for m in media_types):
        return ResponseFormat.JSON
    if any(_accepts_xml(m) for m in media_types):
        return ResponseFormat.XML
    return ResponseFormat.HEADER


def detect_content_format(content_type: str | MediaType | None) -> ResponseFormat:
    """Classify a response ``Content-Type`` for decoding.

    Returns:
        JSON or XML for structured documents, HEADER for everything else.
    """
    media_type = (
        content_type if isinstance(content_type, MediaType) else MediaType.parse(content_type)
    )
    if media_type is None:
        return ResponseFormat.HEADER
    if media_type.is_compatible_with(APPLICATION_JSON) or media_type.is_compatible_with(
        APPLICATION_PLUS_JSON
    ):
        return ResponseFormat.JSON
    if (
        media_type.is_compatible_with(APPLICATION_XML)
        or media_type.is_compatible_with(APPLICATION_PLUS_XML)
        or media_type.is_compatible_with(TEXT_XML)
    ):
        return ResponseFormat.XML
    return ResponseFormat.HEADER
