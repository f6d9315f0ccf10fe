"""
Error types for the catalog core.

This module defines the exception types raised by the core:
- CatalogError: Base exception
- UrnError: Caller supplied an invalid or inapplicable URN
- NotFoundError: Referenced series or unit does not exist
- ConflictError: Resource already exists
- AccessDeniedError: Actor is not authorized to edit a target

Invariants:
    - All errors inherit from CatalogError
    - Errors carry a stable code for translation at the HTTP boundary
    - Errors are never retried inside the core
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class UrnErrorKind(Enum):
    """Why a URN was rejected."""

    MALFORMED = "malformed"
    UNKNOWN_NAMESPACE = "unknown_namespace"
    UNKNOWN_TYPE = "unknown_type"
    INVALID_COMPONENT = "invalid_component"
    TOO_LONG = "too_long"
    EMPTY = "empty"
    NOT_APPLICABLE = "not_applicable"


class CatalogError(Exception):
    """Base exception for all catalog core errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "CATALOG_ERROR"
        self.details = details or {}


class UrnError(CatalogError, ValueError):
    """A URN (or a component used to build one) was rejected.

    Raised when:
    - Parsing fails (bad prefix, segment count, namespace or type)
    - A component holds characters outside [a-zA-Z0-9_-]
    - A length limit is exceeded
    - A valid URN is used where its kind does not apply
    """

    def __init__(
        self,
        kind: UrnErrorKind,
        message: str,
        value: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code=f"URN_{kind.name}",
            details={"kind": kind.value, "value": value},
        )
        self.kind = kind
        self.value = value


class NotFoundError(CatalogError):
    """Resource not found."""

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: str,
    ) -> None:
        super().__init__(
            message,
            code="NOT_FOUND",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(CatalogError):
    """Resource already exists."""

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: str,
    ) -> None:
        super().__init__(
            message,
            code="CONFLICT",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class AccessDeniedError(CatalogError):
    """Access denied.

    Raised when:
    - Actor is neither owner, parent-series owner nor an allowed editor
    """

    def __init__(
        self,
        message: str,
        actor: str,
        resource_id: str,
    ) -> None:
        super().__init__(
            message,
            code="ACCESS_DENIED",
            details={
                "actor": actor,
                "resource_id": resource_id,
            },
        )
        self.actor = actor
        self.resource_id = resource_id
