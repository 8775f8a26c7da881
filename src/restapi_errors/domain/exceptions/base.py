# src/restapi_errors/domain/exceptions/base.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Canonical base classes for domain/application exceptions. They expose an
    error code, structured details and (for :class:`ServiceError`) an HTTP
    status, so the error representation builder can map them without any
    further configuration.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any

from restapi_errors.domain.entities.error_representation import is_valid_status, status_text_for


class DomainError(Exception):
    """Base class for all domain/application exceptions.

    Attributes:
        error_code:
            Stable application error code, or ``None`` to let declared metadata
            or the mapping table decide.
        details:
            Optional machine-readable diagnostic payload. It is exposed as the
            ``extensions`` of the error representation.
    """

    error_code: str | None = None

    def __init__(
        self,
        message: str = "",
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize a DomainError instance.

        Args:
            message:
                Human-readable error message, safe to surface to API clients.
            error_code:
                Overrides the class-level ``error_code`` when provided.
            details:
                Optional structured diagnostic payload.
        """
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code
        self.details: dict[str, Any] = details or {}


class ServiceError(DomainError):
    """Domain exception with an explicit HTTP status.

    When no message is given the standard reason phrase of the status is used.

    Example:
        raise ServiceError("Pet already exists.", http_status=409, error_code="PET_STORE:1234")
    """

    http_status: int = 500

    def __init__(
        self,
        message: str = "",
        *,
        http_status: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        status = http_status if http_status is not None else type(self).http_status
        if not is_valid_status(status):
            status = 500
        super().__init__(
            message or status_text_for(status) or "",
            error_code=error_code,
            details=details,
        )
        self.http_status = status

    @classmethod
    def bad_request(cls, message: str = "", *, error_code: str | None = None) -> ServiceError:
        """Return a 400 error."""
        return cls(message, http_status=400, error_code=error_code)

    @classmethod
    def forbidden(cls, message: str = "", *, error_code: str | None = None) -> ServiceError:
        """Return a 403 error."""
        return cls(message, http_status=403, error_code=error_code)

    @classmethod
    def not_found(
        cls,
        entity_name: str | None = None,
        entity_id: Any = None,
        *,
        error_code: str | None = None,
    ) -> ServiceError:
        """Return a 404 error for a missing entity.

        Args:
            entity_name: Name of the entity that was looked up.
            entity_id: Identifier that was looked up.
            error_code: Optional application error code.

        Returns:
            The error; its message names the entity when one is given.
        """
        message = ""
        if entity_name:
            message = f"{entity_name} not found"
            if entity_id is not None:
                message = f"{entity_name} with id {entity_id} not found"
        return cls(message, http_status=404, error_code=error_code)

    @classmethod
    def conflict(cls, message: str = "", *, error_code: str | None = None) -> ServiceError:
        """Return a 409 error."""
        return cls(message, http_status=409, error_code=error_code)

    @classmethod
    def internal_server_error(
        cls, message: str = "", *, error_code: str | None = None
    ) -> ServiceError:
        """Return a 500 error."""
        return cls(message, http_status=500, error_code=error_code)
