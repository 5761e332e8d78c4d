"""
Core Type Definitions and Exceptions

Service-wide exception taxonomy. Every error raised across a module
boundary derives from GlobalNewsError so the HTTP layer can map it to a
status code in one place.
"""
from __future__ import annotations

from typing import Any, Optional


class GlobalNewsError(Exception):
    """Base exception for all global news service errors."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class NotFoundError(GlobalNewsError):
    """Raised when an article (or other document) does not exist."""

    def __init__(
        self,
        message: str,
        resource: str = "article",
        key: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["resource"] = resource
        if key is not None:
            ctx["key"] = key
        super().__init__(message, ctx)
        self.resource = resource
        self.key = key


class InvalidArgumentError(GlobalNewsError):
    """Raised when a caller-supplied value is malformed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if field:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = repr(value)[:100]  # Truncate long values
        super().__init__(message, ctx)
        self.field = field
        self.value = value


class ConflictError(GlobalNewsError):
    """Raised when a write collides with an existing document."""


class StoreUnavailableError(GlobalNewsError):
    """Raised when the article store cannot complete an operation."""

    def __init__(
        self,
        message: str,
        operation: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["operation"] = operation
        super().__init__(message, ctx)
        self.operation = operation


class InvalidActionError(GlobalNewsError):
    """Raised when a multi-purpose endpoint receives an unknown action."""

    def __init__(
        self,
        message: str,
        action: Any = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if action is not None:
            ctx["action"] = repr(action)[:100]
        super().__init__(message, ctx)
        self.action = action
