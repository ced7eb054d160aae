"""Validation utilities for connection options."""

import re
from typing import Any, Iterable, List, Mapping, Optional

from .exceptions import ConfigurationError


class Validator:
    """Base validator class."""

    def __init__(self, field_name: str):
        """Initialize validator.

        Args:
            field_name: Name of the option being validated.
        """
        self.field_name = field_name

    def validate(self, value: Any) -> Any:
        """Validate a value.

        Args:
            value: Value to validate.

        Returns:
            Validated value (may be transformed).

        Raises:
            ConfigurationError: If validation fails.
        """
        raise NotImplementedError

    def fail(self, message: str, value: Any = None) -> None:
        raise ConfigurationError(message, field=self.field_name, value=value)


class RequiredValidator(Validator):
    """Validates that a value is present (not None or empty)."""

    def validate(self, value: Any) -> Any:
        """Validate value is set."""
        if value is None or value == "":
            self.fail(f"{self.field_name} is required")
        return value


class OptionalValidator(Validator):
    """Wraps another validator and skips it when the value is None."""

    def __init__(self, inner: Validator):
        super().__init__(inner.field_name)
        self.inner = inner

    def validate(self, value: Any) -> Any:
        if value is None:
            return value
        return self.inner.validate(value)


class TypeValidator(Validator):
    """Validates that a value is of the correct type."""

    def __init__(self, field_name: str, expected_type: type):
        """Initialize type validator.

        Args:
            field_name: Name of the option being validated.
            expected_type: Expected Python type.
        """
        super().__init__(field_name)
        self.expected_type = expected_type

    def validate(self, value: Any) -> Any:
        """Validate value type."""
        if not isinstance(value, self.expected_type):
            self.fail(
                f"{self.field_name} must be of type {self.expected_type.__name__}, "
                f"got {type(value).__name__}",
                value,
            )
        return value


class RangeValidator(Validator):
    """Validates that a numeric value is within a range."""

    def __init__(self, field_name: str, min_value: Optional[float] = None, max_value: Optional[float] = None):
        """Initialize range validator.

        Args:
            field_name: Name of the option being validated.
            min_value: Minimum allowed value (inclusive).
            max_value: Maximum allowed value (inclusive).
        """
        super().__init__(field_name)
        self.min_value = min_value
        self.max_value = max_value

    def validate(self, value: Any) -> Any:
        """Validate value is within range."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.fail(f"{self.field_name} must be numeric", value)

        if self.min_value is not None and value < self.min_value:
            self.fail(f"{self.field_name} must be >= {self.min_value}", value)

        if self.max_value is not None and value > self.max_value:
            self.fail(f"{self.field_name} must be <= {self.max_value}", value)

        return value


class ChoiceValidator(Validator):
    """Validates that a value is one of allowed choices."""

    def __init__(self, field_name: str, choices: Iterable[Any]):
        """Initialize choice validator.

        Args:
            field_name: Name of the option being validated.
            choices: Allowed values.
        """
        super().__init__(field_name)
        self.choices = list(choices)

    def validate(self, value: Any) -> Any:
        """Validate value is in choices."""
        if value not in self.choices:
            self.fail(f"{self.field_name} must be one of {self.choices}", value)
        return value


class RegexValidator(Validator):
    """Validates that a string matches a regular expression."""

    def __init__(self, field_name: str, pattern: str, flags: int = 0):
        """Initialize regex validator.

        Args:
            field_name: Name of the option being validated.
            pattern: Regular expression pattern.
            flags: Regex flags.
        """
        super().__init__(field_name)
        self.pattern = re.compile(pattern, flags)

    def validate(self, value: Any) -> Any:
        """Validate value matches pattern."""
        if not isinstance(value, str):
            self.fail(f"{self.field_name} must be a string", value)

        if not self.pattern.match(value):
            self.fail(f"{self.field_name} does not match required format", value)

        return value


class HostnameValidator(RegexValidator):
    """Validates hostname format."""

    def __init__(self, field_name: str):
        """Initialize hostname validator."""
        pattern = r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
        super().__init__(field_name, pattern)


class PortValidator(RangeValidator):
    """Validates port number."""

    def __init__(self, field_name: str):
        """Initialize port validator."""
        super().__init__(field_name, 1, 65535)


class PathValidator(RegexValidator):
    """Validates a request path (must be absolute)."""

    def __init__(self, field_name: str):
        super().__init__(field_name, r'^/')


def validate_field(value: Any, validators: List[Validator]) -> Any:
    """Validate a field using multiple validators.

    Args:
        value: Value to validate.
        validators: List of validators to apply.

    Returns:
        Validated value.

    Raises:
        ConfigurationError: If any validation fails.
    """
    for validator in validators:
        value = validator.validate(value)
    return value


def validate_known_keys(options: Mapping[str, Any], recognized: Iterable[str]) -> None:
    """Reject option keys that are not in the recognized set.

    Args:
        options: Options mapping supplied by the caller.
        recognized: Names accepted by the service.

    Raises:
        ConfigurationError: If an unrecognized key is present.
    """
    allowed = set(recognized)
    unknown = sorted(str(key) for key in options if key not in allowed)
    if unknown:
        raise ConfigurationError(
            f"Unrecognized arguments: {', '.join(unknown)}",
            field=unknown[0],
        )
