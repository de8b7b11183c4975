"""TransTerm Error Hierarchy.

Provides a structured error hierarchy for glossary operations:
- TransTermError: Base exception for all application errors
- ValidationError: Empty or malformed user input
- AuthorizationError: Write attempted without an active session
- NotFoundError: Term or translation does not exist
- PersistenceFailure: The store rejected or failed a read/write
- ConfigurationError: Backend settings are missing or inconsistent

Each error type includes:
- Descriptive message
- Optional context for debugging
- Recoverable flag (persistence failures can be retried by the user)
- Structured representation for RPC responses

Usage:
    from transterm.errors import ValidationError

    if not name.strip():
        raise ValidationError("Term name is required", field="name")
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Base Class
# =============================================================================


class TransTermError(Exception):
    """Base exception for all TransTerm application errors.

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
        """Convert to structured dictionary for RPC responses."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(TransTermError):
    """Input validation failed.

    Raised before any remote call when a required text field is empty.

    Example:
        raise ValidationError("Every translation needs text", field="translations", index=2)
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = _truncate(str(value), 100)
        context.update(kwargs)
        super().__init__(message, recoverable=False, context=context)
        self.field = field


# =============================================================================
# Access Errors
# =============================================================================


class AuthorizationError(TransTermError):
    """Write operation attempted without write permission."""

    def __init__(
        self,
        message: str = "Sign in to change the glossary",
        *,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"operation": operation},
        )


class NotFoundError(TransTermError):
    """Resource not found."""

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | int | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"resource_type": resource_type, "resource_id": resource_id},
        )


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceFailure(TransTermError):
    """A store read or write failed.

    Never retried automatically; the caller rolls back and tells the user.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        table: str | None = None,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if operation:
            context["operation"] = operation
        if table:
            context["table"] = table
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, recoverable=True, context=context)
        self.operation = operation


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TransTermError):
    """Configuration or setup issue."""

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"setting": setting, "suggestion": suggestion},
        )


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


# =============================================================================
# RPC Error Code Mapping
# =============================================================================


ERROR_CODES: dict[type[TransTermError], int] = {
    ValidationError: -32000,
    AuthorizationError: -32002,
    NotFoundError: -32003,
    PersistenceFailure: -32020,
    ConfigurationError: -32030,
}


def get_error_code(exc: TransTermError) -> int:
    """Get the JSON-RPC error code for a domain error."""
    if type(exc) in ERROR_CODES:
        return ERROR_CODES[type(exc)]
    for error_type, code in ERROR_CODES.items():
        if isinstance(exc, error_type):
            return code
    return -32603
