"""Core exception classes for the AutoScaling binding."""

from typing import Any, Dict, Optional


class AutoScalingBindingError(Exception):
    """Base exception for all AutoScaling binding errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize exception.

        Args:
            message: Error message.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AutoScalingBindingError):
    """Invalid, missing or unrecognized connection configuration."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        """Initialize configuration error.

        Args:
            message: Error message.
            field: Configuration field name.
            value: Invalid value.
        """
        details = {}
        if field is not None:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details)
        self.field = field
        self.value = value


class UnknownRegionError(ConfigurationError, ValueError):
    """Region is not one the mock backend knows about."""
    pass


class CredentialsError(AutoScalingBindingError):
    """Credentials could not be fetched or refreshed."""
    pass
