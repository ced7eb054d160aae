"""Exceptions raised for errors reported by the AutoScaling API."""

from typing import Optional

from ..core.exceptions import AutoScalingBindingError


class AutoScalingError(AutoScalingBindingError):
    """Base exception for errors reported by the AutoScaling API.

    Raised directly for error codes without a dedicated subclass, in which
    case the message reads ``"<code> => <message>"``.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ):
        """Initialize API error.

        Args:
            message: Error message.
            code: Provider error code if available.
            status_code: HTTP status code if available.
            original_error: Transport error this one was translated from.
        """
        details = {}
        if code is not None:
            details["code"] = code
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.code = code
        self.status_code = status_code
        self.original_error = original_error

    @classmethod
    def slurp(cls, error: BaseException, message: str, **kwargs) -> "AutoScalingError":
        """Build an instance that wraps ``error`` and keeps its traceback."""
        instance = cls(message, original_error=error, **kwargs)
        instance.__cause__ = error
        return instance.with_traceback(error.__traceback__)


class IdentifierTaken(AutoScalingError):
    """A resource with the requested name already exists."""
    pass


class ResourceInUse(AutoScalingError):
    """The resource is in use and cannot be changed or deleted."""
    pass


class ValidationError(AutoScalingError):
    """The API rejected one or more request parameters."""
    pass
