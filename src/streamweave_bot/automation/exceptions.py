"""Custom exceptions for the automation package."""

from __future__ import annotations


class AutomationError(Exception):
    """Base exception for automation errors."""

    pass


class DocumentLoadError(AutomationError):
    """Raised when an automation document cannot be read or parsed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            path: Document that failed to load
        """
        self.path = path
        super().__init__(message)
