# src/restapi_errors/domain/services/exception_resolver.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Status / Error-Code / Message Resolver.

Purpose:
    Derive the HTTP status, application error code and message of an exception
    from, in order of precedence, the exception itself, metadata declared on
    the handler and exception types, and the mapping table.

Layer:
    domain/services

Precedence:
    Status:
        1. the exception's own ``http_status`` (:class:`HasStatus`);
        2. a framework response-status wrapper (``status_code``);
        3. declared metadata on the handling method;
        4. declared metadata on the handling type;
        5. declared metadata on the exception type (inherited);
        6. the mapping table (catch-all 500).
    Error code:
        own ``error_code`` → declared metadata → mapping → absent.
    Message:
        own message → declared reason → mapping message → absent.

    With ``FieldPolicy.evaluate_declared_metadata_first`` the first two steps
    of the error-code and message chains are swapped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, TypeVar

from restapi_errors.domain.entities.error_representation import is_valid_status, status_text_for
from restapi_errors.domain.entities.exception_mapping import FieldPolicy
from restapi_errors.domain.interfaces.capabilities import (
    HasErrorCode,
    HasStatus,
    ResponseStatusWrapper,
)
from restapi_errors.domain.interfaces.metadata_lookup import (
    DeclaredMetadataLookup,
    DeclaredStatus,
    HandlingContext,
)
from restapi_errors.domain.services.mapping_table import ExceptionMappingTable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _non_blank(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True, slots=True)
class ResolvedMeta:
    """Result of resolving an exception.

    Attributes:
        status: Resolved HTTP status code (always a registered status).
        status_text: Standard reason phrase of ``status``.
        error_code: Resolved error code, or ``None``.
        message: Resolved message, or ``None``.
    """

    status: int
    status_text: str | None
    error_code: str | None
    message: str | None


class ExceptionResolver:
    """Resolve status, error code and message for exceptions.

    Args:
        table: Mapping table supplying defaults and field policies.
        metadata: Declared-metadata lookup, or ``None`` to skip declared metadata.
    """

    def __init__(
        self,
        table: ExceptionMappingTable,
        metadata: DeclaredMetadataLookup | None = None,
    ) -> None:
        self._table = table
        self._metadata = metadata

    @property
    def table(self) -> ExceptionMappingTable:
        return self._table

    def resolve(
        self,
        exc: BaseException,
        context: HandlingContext | None = None,
        policy: FieldPolicy | None = None,
    ) -> ResolvedMeta:
        """Resolve all metadata for ``exc``.

        Args:
            exc: The exception.
            context: Handler that was running when ``exc`` was raised, if known.
            policy: Field policy; matched from the table when omitted.

        Returns:
            The resolved metadata.
        """
        policy = policy or self._table.find_policy(exc)
        status = self.resolve_status(exc, context)
        return ResolvedMeta(
            status=status,
            status_text=status_text_for(status),
            error_code=self.resolve_error_code(exc, context, policy),
            message=self.resolve_message(exc, context, policy),
        )

    def resolve_status(self, exc: BaseException, context: HandlingContext | None = None) -> int:
        """Resolve the HTTP status of ``exc``; the catch-all yields 500."""
        if isinstance(exc, HasStatus) and is_valid_status(exc.http_status):
            return int(exc.http_status)  # type: ignore[arg-type]
        if isinstance(exc, ResponseStatusWrapper) and is_valid_status(exc.status_code):
            return int(exc.status_code)
        for declared in self._declared_statuses(exc, context):
            if is_valid_status(declared.code):
                return int(declared.code)
        return self._table.find_mapping(exc).status

    def resolve_error_code(
        self,
        exc: BaseException,
        context: HandlingContext | None = None,
        policy: FieldPolicy | None = None,
    ) -> str | None:
        """Resolve the application error code of ``exc``, or ``None``."""
        policy = policy or self._table.find_policy(exc)

        def own() -> str | None:
            if isinstance(exc, HasErrorCode):
                return _non_blank(exc.error_code)
            return None

        def declared() -> str | None:
            for target in self._targets(exc, context):
                code = _non_blank(self._lookup(self._find_error_code, target))
                if code:
                    return code
            return None

        def mapped() -> str | None:
            return _non_blank(self._table.find_mapping(exc).error_code)

        steps = (declared, own) if policy.evaluate_declared_metadata_first else (own, declared)
        return _first(*steps, mapped)

    def resolve_message(
        self,
        exc: BaseException,
        context: HandlingContext | None = None,
        policy: FieldPolicy | None = None,
    ) -> str | None:
        """Resolve the message of ``exc``, or ``None``."""
        policy = policy or self._table.find_policy(exc)

        def own() -> str | None:
            return _own_message(exc)

        def declared() -> str | None:
            for status in self._declared_statuses(exc, context):
                reason = _non_blank(status.reason)
                if reason:
                    return reason
            return None

        def mapped() -> str | None:
            return _non_blank(self._table.find_mapping(exc).message)

        steps = (declared, own) if policy.evaluate_declared_metadata_first else (own, declared)
        return _first(*steps, mapped)

    # ------------------------------------------------------------------
    # Declared metadata
    # ------------------------------------------------------------------

    @staticmethod
    def _targets(exc: BaseException, context: HandlingContext | None) -> Iterator[Any]:
        if context is not None:
            if context.handler is not None:
                yield context.handler
            if context.handler_type is not None:
                yield context.handler_type
        yield type(exc)

    def _declared_statuses(
        self, exc: BaseException, context: HandlingContext | None
    ) -> Iterator[DeclaredStatus]:
        for target in self._targets(exc, context):
            declared = self._lookup(self._find_status, target)
            if declared is not None:
                yield declared

    def _find_status(self, target: Any) -> DeclaredStatus | None:
        if self._metadata is None:
            return None
        return self._metadata.find_status(target)

    def _find_error_code(self, target: Any) -> str | None:
        if self._metadata is None:
            return None
        return self._metadata.find_error_code(target)

    @staticmethod
    def _lookup(fn: Callable[[Any], T | None], target: Any) -> T | None:
        try:
            return fn(target)
        except Exception:
            logger.debug(
                "metadata_lookup.failed",
                exc_info=True,
                extra={"extra": {"target": repr(target)}},
            )
            return None


def _first(*steps: Callable[[], str | None]) -> str | None:
    for step in steps:
        value = step()
        if value:
            return value
    return None


def _own_message(exc: BaseException) -> str | None:
    """Return the exception's own message, or ``None`` when blank."""
    if isinstance(exc, ResponseStatusWrapper):
        detail = _non_blank(getattr(exc, "detail", None))
        if detail:
            return detail
        # Starlette fills ``detail`` with the reason phrase; anything else is structured.
        return None
    try:
        return _non_blank(str(exc))
    except Exception:
        logger.debug("exception.str_failed", exc_info=True)
        return None
