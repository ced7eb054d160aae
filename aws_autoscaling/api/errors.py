"""Translation of AutoScaling error responses into typed exceptions."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import AutoScalingError, IdentifierTaken, ResourceInUse, ValidationError


ERROR_BODY_PATTERN = re.compile(r"<Code>(.*?)</Code>.*?<Message>(.*?)</Message>", re.DOTALL)


class ProviderErrorCode(Enum):
    """Error codes with a dedicated exception type."""
    ALREADY_EXISTS = "AlreadyExists"
    RESOURCE_IN_USE = "ResourceInUse"
    VALIDATION_ERROR = "ValidationError"
    OTHER = None

    @classmethod
    def from_code(cls, code: str) -> "ProviderErrorCode":
        """Map a raw code string to a member, falling back to OTHER."""
        for member in cls:
            if member.value == code:
                return member
        return cls.OTHER


EXCEPTION_TYPES = {
    ProviderErrorCode.ALREADY_EXISTS: IdentifierTaken,
    ProviderErrorCode.RESOURCE_IN_USE: ResourceInUse,
    ProviderErrorCode.VALIDATION_ERROR: ValidationError,
}


@dataclass(frozen=True)
class ProviderError:
    """Code and message extracted from an error response body."""

    code: str
    message: str

    @property
    def kind(self) -> ProviderErrorCode:
        return ProviderErrorCode.from_code(self.code)

    def exception_message(self) -> str:
        """Message for the raised exception."""
        if self.kind is ProviderErrorCode.OTHER:
            return f"{self.code} => {self.message}"
        return self.message


def parse_error_body(body: Optional[str]) -> Optional[ProviderError]:
    """Extract the first ``<Code>``/``<Message>`` pair from an error body.

    Args:
        body: Response body text.

    Returns:
        The parsed error, or None if the body does not have that shape.
    """
    if not body:
        return None
    match = ERROR_BODY_PATTERN.search(body)
    if match is None:
        return None
    return ProviderError(code=match.group(1), message=match.group(2))


def translate_error(
    error: BaseException,
    body: Optional[str],
    status_code: Optional[int] = None,
) -> Optional[AutoScalingError]:
    """Build the typed exception for a failed request.

    Args:
        error: Transport error raised for the response.
        body: Response body text.
        status_code: HTTP status of the response.

    Returns:
        The exception to raise in place of ``error``, or None when the body
        carries no provider error and ``error`` should propagate unchanged.
    """
    provider_error = parse_error_body(body)
    if provider_error is None:
        return None

    exception_type = EXCEPTION_TYPES.get(provider_error.kind, AutoScalingError)
    return exception_type.slurp(
        error,
        provider_error.exception_message(),
        code=provider_error.code,
        status_code=status_code,
    )
