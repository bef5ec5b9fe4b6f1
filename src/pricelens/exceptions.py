"""
Custom exceptions for PriceLens.

Insufficient data is never an error in the analytics engine; these
exceptions cover caller mistakes and configuration problems only.
"""

from typing import Any


class PriceLensError(Exception):
    """Base exception for all PriceLens errors."""

    pass


class InvalidParameterError(PriceLensError, ValueError):
    """Exception raised when a computation receives an unusable parameter."""

    def __init__(self, name: str, value: Any, reason: str = "must be positive") -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid parameter '{name}'={value!r}: {reason}")


class ConfigError(PriceLensError):
    """Exception raised when settings cannot be loaded or validated."""

    def __init__(
        self, message: str, file_path: str | None = None, details: dict[str, Any] | None = None
    ):
        """Initialize the configuration error.

        Args:
            message: Error message
            file_path: Optional path to the settings file being loaded
            details: Optional additional details about the error
        """
        self.file_path = file_path
        self.details = details or {}
        full_message = f"Configuration error: {message}"
        if file_path:
            full_message += f" (file: {file_path})"
        super().__init__(full_message)
