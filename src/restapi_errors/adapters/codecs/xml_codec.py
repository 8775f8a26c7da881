# src/restapi_errors/adapters/codecs/xml_codec.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""XML codec for error representations.

Purpose:
    Write error representations as XML documents rooted at
    ``<ErrorRepresentation>`` and read them back safely.

Document shape:
    <ErrorRepresentation>
      <status>404</status>
      <errorCode>PET_STORE:1234</errorCode>
      <handler>
        <typeName>..</typeName>
        <methodParameterTypes><methodParameterType>..</methodParameterType></methodParameterTypes>
      </handler>
      <stackTrace><stackFrame><methodName>..</methodName>..</stackFrame></stackTrace>
      <cause> ...same children... </cause>
      <anyExtension>value</anyExtension>
    </ErrorRepresentation>

Notes:
    Parsing uses ``defusedxml`` so entity-expansion and external-entity
    payloads from untrusted peers are rejected.

Layer:
    adapters/codecs
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Final, cast
from xml.etree.ElementTree import Element, SubElement, tostring  # stdlib typed

from defusedxml import ElementTree as ET

from restapi_errors.adapters.schemas.http import jsonable_extensions
from restapi_errors.domain.entities.error_representation import (
    ErrorRepresentation,
    HandlerInfo,
    StackFrame,
)

XML_CONTENT_TYPE: Final[str] = "application/xml"
ROOT_TAG: Final[str] = "ErrorRepresentation"

_XML_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")
_XML_DECLARATION_RE: Final[re.Pattern[str]] = re.compile(r"^\s*<\?xml[^>]*\?>")

_SCALAR_TAGS: Final[tuple[str, ...]] = (
    "id",
    "timestamp",
    "status",
    "statusText",
    "errorCode",
    "errorCodeInherited",
    "message",
    "exceptionType",
    "application",
    "path",
)
_KNOWN_TAGS: Final[frozenset[str]] = frozenset(_SCALAR_TAGS) | {"handler", "stackTrace", "cause"}
# Extension elements nested deeper than this are read as their text content.
_MAX_VALUE_DEPTH: Final[int] = 64


# --------------------------------------------------------------------------- #
# Encoding                                                                    #
# --------------------------------------------------------------------------- #


def _text(parent: Element, tag: str, value: Any) -> None:
    if value is None:
        return
    SubElement(parent, tag).text = _scalar_text(value)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _write_value(parent: Element, tag: str, value: Any) -> None:
    element = SubElement(parent, tag)
    if isinstance(value, Mapping):
        for key, item in value.items():
            if _XML_NAME_RE.match(str(key)):
                _write_value(element, str(key), item)
    elif isinstance(value, list | tuple):
        for item in value:
            _write_value(element, "item", item)
    elif value is not None:
        element.text = _scalar_text(value)


def _write_node(element: Element, node: ErrorRepresentation) -> None:
    _text(element, "id", node.id)
    _text(element, "timestamp", node.timestamp)
    _text(element, "status", node.status)
    _text(element, "statusText", node.status_text)
    _text(element, "errorCode", node.error_code)
    if node.error_code:
        _text(element, "errorCodeInherited", node.error_code_inherited)
    _text(element, "message", node.message)
    _text(element, "exceptionType", node.exception_type)
    _text(element, "application", node.application)
    _text(element, "path", node.path)
    if node.handler is not None:
        handler = SubElement(element, "handler")
        _text(handler, "typeName", node.handler.type_name)
        _text(handler, "methodName", node.handler.method_name)
        if node.handler.method_parameter_types:
            params = SubElement(handler, "methodParameterTypes")
            for name in node.handler.method_parameter_types:
                _text(params, "methodParameterType", name)
    if node.stack_trace:
        trace = SubElement(element, "stackTrace")
        for frame in node.stack_trace:
            frame_el = SubElement(trace, "stackFrame")
            _text(frame_el, "declaringType", frame.declaring_type)
            _text(frame_el, "methodName", frame.method_name)
            _text(frame_el, "fileName", frame.file_name)
            _text(frame_el, "lineNumber", frame.line_number)
    for key, value in jsonable_extensions(node.extensions).items():
        if key not in _KNOWN_TAGS and _XML_NAME_RE.match(key):
            _write_value(element, key, value)


def encode_xml(representation: ErrorRepresentation) -> bytes:
    """Encode a representation as a UTF-8 XML document, omitting absent fields."""
    root = Element(ROOT_TAG)
    element = root
    node: ErrorRepresentation | None = representation
    while node is not None:
        _write_node(element, node)
        node = node.cause
        if node is not None:
            element = SubElement(element, "cause")
    return cast(bytes, tostring(root, encoding="utf-8", xml_declaration=True))


# --------------------------------------------------------------------------- #
# Decoding                                                                    #
# --------------------------------------------------------------------------- #


def _child_text(element: Element, tag: str) -> str | None:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    return child.text


def _child_int(element: Element, tag: str) -> int | None:
    value = _child_text(element, tag)
    return int(value.strip()) if value and value.strip() else None


def _read_value(element: Element, depth: int = 0) -> Any:
    children = list(element)
    if not children:
        return element.text or ""
    if depth >= _MAX_VALUE_DEPTH:
        return "".join(element.itertext())
    if all(child.tag == "item" for child in children):
        return [_read_value(child, depth + 1) for child in children]
    result: dict[str, Any] = {}
    for child in children:
        value = _read_value(child, depth + 1)
        if child.tag in result:
            existing = result[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[child.tag] = [existing, value]
        else:
            result[child.tag] = value
    return result


def _read_handler(element: Element | None) -> HandlerInfo | None:
    if element is None:
        return None
    params = element.find("methodParameterTypes")
    names: tuple[str, ...] = ()
    if params is not None:
        names = tuple(p.text or "" for p in params.findall("methodParameterType"))
    return HandlerInfo(
        type_name=_child_text(element, "typeName"),
        method_name=_child_text(element, "methodName"),
        method_parameter_types=names,
    )


def _read_stack_trace(element: Element | None) -> tuple[StackFrame, ...] | None:
    if element is None:
        return None
    return tuple(
        StackFrame(
            declaring_type=_child_text(frame, "declaringType"),
            method_name=_child_text(frame, "methodName"),
            file_name=_child_text(frame, "fileName"),
            line_number=_child_int(frame, "lineNumber"),
        )
        for frame in element.findall("stackFrame")
    )


def _read_node(element: Element, cause: ErrorRepresentation | None) -> ErrorRepresentation:
    timestamp = _child_text(element, "timestamp")
    inherited = (_child_text(element, "errorCodeInherited") or "").strip().lower() == "true"
    extensions = {
        child.tag: _read_value(child) for child in element if child.tag not in _KNOWN_TAGS
    }
    return ErrorRepresentation(
        id=_child_text(element, "id"),
        timestamp=datetime.fromisoformat(timestamp.strip()) if timestamp else None,
        status=_child_int(element, "status"),
        status_text=_child_text(element, "statusText"),
        error_code=_child_text(element, "errorCode"),
        error_code_inherited=inherited,
        message=_child_text(element, "message"),
        exception_type=_child_text(element, "exceptionType"),
        application=_child_text(element, "application"),
        path=_child_text(element, "path"),
        handler=_read_handler(element.find("handler")),
        stack_trace=_read_stack_trace(element.find("stackTrace")),
        cause=cause,
        extensions=extensions,
    )


def decode_xml(data: bytes | str, charset: str | None = None) -> ErrorRepresentation:
    """Decode an XML document into a representation.

    Args:
        data: The document.
        charset: Charset declared by the transport. When given it overrides
            the document's own XML declaration.

    Returns:
        The decoded representation.

    Raises:
        ValueError: If the document is malformed, unsafe or not rooted at
            ``<ErrorRepresentation>``.
    """
    if isinstance(data, bytes) and charset:
        data = data.decode(charset, errors="replace")
    if isinstance(data, str):
        data = _XML_DECLARATION_RE.sub("", data, count=1).encode("utf-8")

    try:
        root = cast(Element, ET.fromstring(data))
    except Exception as exc:
        raise ValueError(f"malformed XML error document: {exc}") from exc
    if root.tag != ROOT_TAG:
        raise ValueError(f"unexpected XML root element: {root.tag!r}")

    levels: list[Element] = []
    element: Element | None = root
    while element is not None:
        levels.append(element)
        element = element.find("cause")
    result: ErrorRepresentation | None = None
    for level in reversed(levels):
        result = _read_node(level, result)
    assert result is not None
    return result
