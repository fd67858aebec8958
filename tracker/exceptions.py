"""
Exception hierarchy for the tracker engine.

``ValidationError`` and ``NotFoundError`` reject a ledger mutation and leave
the ledger untouched. ``ConfigError`` marks malformed alert settings; the
settings collaborator reports it and falls back to defaults instead of
blocking the dashboard.
"""

from typing import Optional


class TrackerError(Exception):
    """
    Base exception class for all tracker errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        msg = self.message
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            msg = f"{msg} ({detail_str})"
        return msg


class ValidationError(TrackerError):
    """Raised when a transaction record is malformed."""
    pass


class NotFoundError(TrackerError):
    """Raised when an operation references a transaction id the ledger does not hold."""
    pass


class ConfigError(TrackerError):
    """Raised when configuration loading or validation fails."""
    pass


class StorageError(TrackerError):
    """Raised when the storage collaborator cannot read or write its data."""
    pass
