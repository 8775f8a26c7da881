# src/restapi_errors/infrastructure/observability/metrics.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, hot-reload safe).

Counters returned by the accessors below are *singletons* bound to the
**current** ``prometheus_client.REGISTRY``:

- Safe under hot reload and tests that swap the default registry.
- No duplicate-registration errors.
- Cache automatically resets when the active registry changes.

Example:
    get_api_errors_rendered_total().labels(format="json", status="404").inc()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import suppress

import prometheus_client as prom
from prometheus_client import Counter

_log = logging.getLogger(__name__)

# Cache keyed by metric name within the currently-active registry.
_registry_id: int | None = None
_counter_cache: dict[str, Counter] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset the cache if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id is None or _registry_id != rid:
            _counter_cache.clear()
            _registry_id = rid


def _lookup_existing_counter(name: str) -> Counter | None:
    """Return a previously-registered ``Counter`` from the active registry.

    Args:
        name: Collector name.

    Returns:
        Counter | None: Existing collector if present and of the correct type.
    """
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, Counter):
                return col
    return None


def _get_or_create_counter(
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Counter:
    """Get or create a registry-bound ``Counter`` with stable identity.

    1. Return from module cache if present for the active registry.
    2. If the registry already has a collector by this name, reuse it.
    3. Otherwise, register a new collector on the active registry.
    4. If concurrent registration triggers a duplication error, retry step 2.

    Args:
        name: Metric name (snake_case, without the ``_total`` suffix).
        help_text: Human-readable description.
        labelnames: Optional label names tuple.

    Returns:
        Counter: Bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _counter_cache.get(name)
        if isinstance(cached, Counter):
            return cached

        existing = _lookup_existing_counter(name)
        if isinstance(existing, Counter):
            _counter_cache[name] = existing
            return existing

        try:
            c = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
            _counter_cache[name] = c
            return c
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing_counter(name)
                if isinstance(again, Counter):
                    _counter_cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus counter %s", name)
            raise


# ---------------------------------------------------------------------------
# Error handling metrics


def get_api_errors_rendered_total() -> Counter:
    """Return counter for error responses written by the API exception handler.

    Labels:
        format: ``json``, ``xml`` or ``header``.
        status: HTTP status code as a string.
    """
    return _get_or_create_counter(
        name="api_errors_rendered",
        help_text="Error responses rendered, by wire format and status.",
        labelnames=("format", "status"),
    )


def get_api_error_parse_fallbacks_total() -> Counter:
    """Return counter for error bodies that could not be decoded as documents.

    Labels:
        reason: ``decode_error`` or ``unexpected_error``.
    """
    return _get_or_create_counter(
        name="api_error_parse_fallbacks",
        help_text="Error responses parsed from headers after a body decode failure.",
        labelnames=("reason",),
    )


def get_api_error_retry_hints_total() -> Counter:
    """Return counter for Retry-After handling on decoded error responses.

    Labels:
        outcome: ``retryable``, ``absent`` or ``invalid``.
    """
    return _get_or_create_counter(
        name="api_error_retry_hints",
        help_text="Retry-After headers seen on error responses, by outcome.",
        labelnames=("outcome",),
    )


def inc_safely(counter_factory: Callable[[], Counter], **labels: str) -> None:
    """Increment a labelled counter, logging (not raising) on failure."""
    try:
        counter_factory().labels(**labels).inc()
    except Exception:
        _log.debug("prom.metrics_record_failed", exc_info=True)
