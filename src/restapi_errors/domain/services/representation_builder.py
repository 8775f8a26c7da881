# src/restapi_errors/domain/services/representation_builder.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Representation Builder.

Purpose:
    Turn an exception, the request path and the handling context into an
    :class:`ErrorRepresentation`, honouring the field policy matched for each
    exception in the cause chain.

Layer:
    domain/services

Design:
    * The cause chain is collected with an explicit bounded loop and then
      assembled innermost first, so deep chains never recurse.
    * An exception that already carries a representation (e.g. one decoded
      from a remote service) ends the walk; its representation is re-filtered
      with :func:`reconfigure` and attached as the cause.
    * A node without an error code inherits its cause's code and is flagged
      ``error_code_inherited``. This happens even when the policy does not
      attach the cause.
    * Building never raises: a failing field is omitted, and a failing node
      degrades to a bare status-500 representation.
"""

from __future__ import annotations

import inspect
import logging
import traceback
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from types import TracebackType
from typing import Any, TypeVar

from restapi_errors.domain.entities.error_representation import (
    ErrorRepresentation,
    HandlerInfo,
    StackFrame,
    status_text_for,
)
from restapi_errors.domain.entities.exception_mapping import FieldPolicy
from restapi_errors.domain.interfaces.capabilities import CarriesRepresentation, HasDetails
from restapi_errors.domain.interfaces.metadata_lookup import HandlingContext
from restapi_errors.domain.services.exception_chain import (
    MAX_DEPTH,
    cause_of,
    qualified_type_name,
)
from restapi_errors.domain.services.exception_resolver import ExceptionResolver, ResolvedMeta
from restapi_errors.domain.services.mapping_table import ExceptionMappingTable

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _random_id() -> str:
    return str(uuid.uuid4())


def _safely(label: str, fn: Callable[[], T], default: T) -> T:
    try:
        return fn()
    except Exception:
        logger.debug(
            "representation_builder.step_failed",
            exc_info=True,
            extra={"extra": {"step": label}},
        )
        return default


def _carried_representation(exc: BaseException) -> ErrorRepresentation | None:
    if isinstance(exc, CarriesRepresentation) and isinstance(
        exc.representation, ErrorRepresentation
    ):
        return exc.representation
    return None


def reconfigure(
    representation: ErrorRepresentation,
    policy: FieldPolicy,
    max_depth: int = MAX_DEPTH,
) -> ErrorRepresentation:
    """Re-filter an existing representation under a field policy.

    Identity fields (id, timestamp, status, status text, error code and the
    inherited flag) and extensions are always copied. Message, exception
    type, application, path, handler and stack trace are copied only when the
    policy permits. The cause is re-filtered with the same policy and attached
    only when ``include_cause`` is set.

    Args:
        representation: Representation to filter.
        policy: Policy to apply at every level.
        max_depth: Bound on the number of nested causes kept.

    Returns:
        A new representation.
    """
    if policy.include_cause:
        levels = representation.iter_causes(max(1, max_depth))
    else:
        levels = [representation]
    result: ErrorRepresentation | None = None
    for node in reversed(levels):
        result = ErrorRepresentation(
            id=node.id,
            timestamp=node.timestamp,
            status=node.status,
            status_text=node.status_text,
            error_code=node.error_code,
            error_code_inherited=node.error_code_inherited,
            message=node.message if policy.include_message else None,
            exception_type=node.exception_type if policy.include_exception_type else None,
            application=node.application if policy.include_application else None,
            path=node.path if policy.include_path else None,
            handler=node.handler if policy.include_handler else None,
            stack_trace=node.stack_trace if policy.include_stack_trace else None,
            cause=result,
            extensions=dict(node.extensions),
        )
    assert result is not None
    return result


def handler_info(context: HandlingContext) -> HandlerInfo | None:
    """Describe the handler of a handling context.

    Args:
        context: The handling context.

    Returns:
        The handler info, or ``None`` when the context names no handler.
    """
    handler = context.handler
    if handler is None:
        if context.handler_type is None:
            return None
        return HandlerInfo(type_name=qualified_type_name(context.handler_type))

    if context.handler_type is not None:
        type_name = qualified_type_name(context.handler_type)
    else:
        type_name = getattr(handler, "__module__", None)

    parameter_types: list[str] = []
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        signature = None
    if signature is not None:
        for name, parameter in signature.parameters.items():
            if name in ("self", "cls"):
                continue
            parameter_types.append(_annotation_name(parameter.annotation))

    return HandlerInfo(
        type_name=type_name,
        method_name=getattr(handler, "__name__", None),
        method_parameter_types=tuple(parameter_types),
    )


def _annotation_name(annotation: Any) -> str:
    if annotation is inspect.Parameter.empty:
        return "Any"
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, type):
        return qualified_type_name(annotation)
    return str(annotation)


def stack_frames(exc: BaseException) -> tuple[StackFrame, ...] | None:
    """Return the traceback of ``exc`` as frames, innermost first.

    Returns:
        The frames, or ``None`` when the exception was never raised.
    """
    tb: TracebackType | None = exc.__traceback__
    if tb is None:
        return None
    frames: list[StackFrame] = []
    for frame, line_number in traceback.walk_tb(tb):
        code = frame.f_code
        owner = frame.f_locals.get("self")
        declaring_type = (
            qualified_type_name(type(owner))
            if owner is not None
            else frame.f_globals.get("__name__")
        )
        frames.append(
            StackFrame(
                declaring_type=declaring_type,
                method_name=code.co_name,
                file_name=code.co_filename,
                line_number=line_number,
            )
        )
    frames.reverse()
    return tuple(frames) or None


class RepresentationBuilder:
    """Build error representations from exceptions.

    Args:
        table: Mapping table supplying field policies.
        resolver: Status/code/message resolver; built from ``table`` when omitted.
        application_name: Value exposed as ``application``.
        max_depth: Maximum number of representation levels (cause chain depth).
        clock: Source of the current time.
        id_factory: Source of correlation ids for server errors.
    """

    def __init__(
        self,
        table: ExceptionMappingTable,
        resolver: ExceptionResolver | None = None,
        *,
        application_name: str | None = None,
        max_depth: int = MAX_DEPTH,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._table = table
        self._resolver = resolver or ExceptionResolver(table)
        self._application_name = application_name
        self._max_depth = max(1, max_depth)
        self._clock = clock or _utcnow
        self._id_factory = id_factory or _random_id

    @property
    def table(self) -> ExceptionMappingTable:
        return self._table

    @property
    def application_name(self) -> str | None:
        return self._application_name

    def build(
        self,
        exc: BaseException,
        request_path: str | None = None,
        context: HandlingContext | None = None,
    ) -> ErrorRepresentation:
        """Build the representation of ``exc``.

        Args:
            exc: The exception to describe.
            request_path: Path of the failed request, if any.
            context: Handler that was running, if known.

        Returns:
            The representation. Never raises.
        """
        try:
            chain = self._collect_chain(exc)
            cause: ErrorRepresentation | None = None
            for depth in range(len(chain) - 1, -1, -1):
                cause = self._build_node(
                    chain[depth],
                    native_cause=cause,
                    depth=depth,
                    request_path=request_path,
                    context=context,
                )
            assert cause is not None
            return cause
        except Exception:
            logger.warning("representation_builder.failed", exc_info=True)
            return ErrorRepresentation(
                timestamp=self._clock(),
                status=500,
                status_text=status_text_for(500),
            )

    def reconfigure(
        self, representation: ErrorRepresentation, policy: FieldPolicy
    ) -> ErrorRepresentation:
        """Re-filter ``representation`` under ``policy``. See :func:`reconfigure`."""
        return reconfigure(representation, policy, self._max_depth)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collect_chain(self, exc: BaseException) -> list[BaseException]:
        chain: list[BaseException] = []
        seen: set[int] = set()
        current: BaseException | None = exc
        while current is not None and len(chain) < self._max_depth and id(current) not in seen:
            seen.add(id(current))
            chain.append(current)
            if _carried_representation(current) is not None:
                break
            current = cause_of(current)
        return chain

    def _build_node(
        self,
        exc: BaseException,
        *,
        native_cause: ErrorRepresentation | None,
        depth: int,
        request_path: str | None,
        context: HandlingContext | None,
    ) -> ErrorRepresentation:
        top = depth == 0
        try:
            policy = self._table.find_policy(exc)
            handling = context if top else None
            meta = _safely(
                "resolve",
                lambda: self._resolver.resolve(exc, handling, policy),
                ResolvedMeta(
                    status=500,
                    status_text=status_text_for(500),
                    error_code=None,
                    message=None,
                ),
            )

            carried = _carried_representation(exc)
            cause = native_cause
            # levels left below this node
            remaining = self._max_depth - depth - 1
            if carried is not None:
                cause = (
                    _safely(
                        "reconfigure",
                        lambda: reconfigure(carried, policy, remaining),
                        None,
                    )
                    if remaining > 0
                    else None
                )

            error_code = meta.error_code
            inherited = False
            if not error_code and cause is not None and cause.error_code:
                error_code = cause.error_code
                inherited = True

            return ErrorRepresentation(
                id=self._id_factory() if top and meta.status >= 500 else None,
                timestamp=self._clock() if top else None,
                status=meta.status,
                status_text=meta.status_text,
                error_code=error_code,
                error_code_inherited=inherited,
                message=meta.message if policy.include_message else None,
                exception_type=(
                    qualified_type_name(type(exc)) if policy.include_exception_type else None
                ),
                application=(
                    self._application_name if top and policy.include_application else None
                ),
                path=request_path if top and policy.include_path else None,
                handler=(
                    _safely("handler", lambda: handler_info(context), None)
                    if top and policy.include_handler and context is not None
                    else None
                ),
                stack_trace=(
                    _safely("stack_trace", lambda: stack_frames(exc), None)
                    if policy.include_stack_trace
                    else None
                ),
                cause=cause if policy.include_cause else None,
                extensions=_safely("extensions", lambda: _details_of(exc), {}),
            )
        except Exception:
            logger.debug("representation_builder.node_failed", exc_info=True)
            return ErrorRepresentation(
                timestamp=self._clock() if top else None,
                status=500,
                status_text=status_text_for(500),
            )


def _details_of(exc: BaseException) -> dict[str, Any]:
    if isinstance(exc, HasDetails) and isinstance(exc.details, Mapping):
        return {str(k): v for k, v in exc.details.items()}
    return {}
