"""Exception hierarchy used across DealDesk."""

from __future__ import annotations

from typing import Any


class DealDeskError(Exception):
    """Base class for all DealDesk specific errors."""


class UnknownFieldError(DealDeskError, KeyError):
    """Raised when a field identifier is not part of the deal registry."""

    def __init__(self, field: str) -> None:
        """Remember offending *field* for callers."""
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"unknown deal field: {self.field}"


class InvalidFieldValueError(DealDeskError, ValueError):
    """Raised when an edited value cannot be coerced to the field type."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        """Store *field*, rejected *value* and a human readable *reason*."""
        super().__init__(f"invalid value for {field}: {value!r} ({reason})")
        self.field = field
        self.value = value
        self.reason = reason


class ResizeInProgressError(DealDeskError, RuntimeError):
    """Raised when a second column resize starts before the first ended."""

    def __init__(self, active_field: str) -> None:
        """Record the column that currently owns the resize session."""
        super().__init__(f"column resize already active for {active_field}")
        self.active_field = active_field


class PreferenceStoreError(DealDeskError, OSError):
    """Raised by preference stores when a key cannot be read or written."""


class NotificationError(DealDeskError):
    """Failure inside the notification pipeline with a structured payload."""

    def __init__(self, code: str, message: str, *, status: int = 500) -> None:
        """Initialise error with machine *code*, *message* and HTTP-like *status*."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    def to_payload(self) -> dict[str, Any]:
        """Return error details suitable for a JSON response body."""
        return {"code": self.code, "message": self.message}
