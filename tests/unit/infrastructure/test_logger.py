# tests/unit/infrastructure/test_logger.py
from __future__ import annotations

import json
import logging
import sys
from typing import Any

import pytest

from restapi_errors.infrastructure.logging.logger import (
    _JsonFormatter,
    configure_root_logging,
    get_json_logger,
    get_request_id,
    reset_request_context,
    set_request_context,
)


def _render(msg: str, level: int = logging.INFO, **attrs: Any) -> dict[str, Any]:
    """Format a synthetic record and return the parsed JSON payload."""
    logger = logging.getLogger("test.error_logger")
    record = logger.makeRecord(
        name=logger.name,
        level=level,
        fn="test_logger",
        lno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return json.loads(_JsonFormatter().format(record))


@pytest.fixture
def restore_root_logger() -> Any:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_root_logging_is_idempotent(
    monkeypatch: pytest.MonkeyPatch, restore_root_logger: logging.Logger
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    restore_root_logger.handlers.clear()

    configure_root_logging()
    configure_root_logging()

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
    assert isinstance(restore_root_logger.handlers[0].formatter, _JsonFormatter)


def test_explicit_level_wins_over_env(
    monkeypatch: pytest.MonkeyPatch, restore_root_logger: logging.Logger
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    configure_root_logging("warning")
    assert restore_root_logger.level == logging.WARNING


def test_formatter_emits_stable_keys() -> None:
    payload = _render("api_error.rendered")
    assert payload["message"] == "api_error.rendered"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.error_logger"
    assert "ts" in payload


def test_structured_extra_is_merged() -> None:
    payload = _render("api_error.rendered", extra={"status": 409, "format": "json"})
    assert payload["status"] == 409
    assert payload["format"] == "json"


def test_request_id_from_record_then_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REQUEST_ID", raising=False)
    assert _render("x", request_id="rid-1")["request_id"] == "rid-1"

    monkeypatch.setenv("REQUEST_ID", "env-id")
    payload = _render("x")
    assert payload["request_id"] in {"env-id", get_request_id()}


def test_request_context_round_trip() -> None:
    token = set_request_context(request_id="ctx-1")
    assert get_request_id() == "ctx-1"
    assert set_request_context(request_id=None) is None
    assert get_request_id() == "ctx-1"
    assert _render("x")["request_id"] == "ctx-1"

    inner = set_request_context(request_id="ctx-2")
    reset_request_context(inner)
    assert get_request_id() == "ctx-1"
    reset_request_context(token)
    reset_request_context(None)


def test_exception_info_is_rendered() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("test.error_logger").makeRecord(
            "test.error_logger", logging.ERROR, "f", 1, "failure", (), sys.exc_info()
        )
    payload = json.loads(_JsonFormatter().format(record))
    assert payload["exc_type"] == "ValueError"
    assert payload["exc_message"] == "boom"


def test_get_json_logger_propagates() -> None:
    assert get_json_logger("restapi_errors.test").propagate is True
