"""Cortex Error Hierarchy.

The document core (decoder, encoder, mutations, numbering) is total and never
raises for malformed input or unknown block ids. Errors only exist at the
edges of the system:

- CortexError: Base exception for all application errors
- ValidationError: Invalid payloads handed to the core (e.g. block diffs)
- PathValidationError: A vault path that escapes the vault root
- StoreError: File store read/write failures
- DocumentNotFoundError: A document path that does not exist

Each error type includes:
- Descriptive message
- Recoverable flag for retry logic
- Structured representation for CLI/RPC responses

Usage:
    from cortex.errors import StoreError

    try:
        data = store.read("notes/today.md")
    except StoreError as e:
        logger.error("Open failed: %s", e.to_dict())
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Error Base Class
# =============================================================================


class CortexError(Exception):
    """Base exception for all Cortex application errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the operation can be retried
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured dictionary for CLI/RPC responses."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(CortexError):
    """Input validation failed.

    Example:
        raise ValidationError("Unknown diff operation", field="operation", value="swap")
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if constraint:
            context["constraint"] = constraint
        if value is not None:
            context["value"] = _truncate(str(value), 100)
        super().__init__(message, recoverable=False, context=context)
        self.field = field
        self.constraint = constraint


class PathValidationError(ValidationError):
    """Vault path validation failed (traversal attempt, absolute path, etc)."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(
            message,
            field="path",
            constraint=reason,
            context={"path": _truncate(path, 200) if path else None},
        )


# =============================================================================
# Store Errors
# =============================================================================


class StoreError(CortexError):
    """File store operation failed.

    Raised for I/O failures while reading or writing documents.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        path: str | None = None,
        recoverable: bool = False,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if operation:
            context["operation"] = operation
        if path:
            context["path"] = _truncate(path, 200)
        super().__init__(message, recoverable=recoverable, context=context)
        self.operation = operation
        self.path = path


class DocumentNotFoundError(StoreError):
    """Document does not exist in the vault."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message, operation="read", path=path)


# =============================================================================
# Helpers
# =============================================================================


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."
