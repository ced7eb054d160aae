"""Configuration data models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..core.exceptions import ConfigurationError
from ..core.validators import (
    ChoiceValidator,
    HostnameValidator,
    OptionalValidator,
    PathValidator,
    PortValidator,
    RequiredValidator,
    TypeValidator,
    validate_field,
    validate_known_keys,
)


API_VERSION = "2011-01-01"
DEFAULT_REGION = "us-east-1"
DEFAULT_INSTRUMENTOR_NAME = "aws_autoscaling.auto_scaling"

REQUIRED_OPTIONS = ("aws_access_key_id", "aws_secret_access_key")

RECOGNIZED_OPTIONS = (
    "host",
    "path",
    "port",
    "scheme",
    "persistent",
    "region",
    "use_iam_profile",
    "aws_access_key_id",
    "aws_secret_access_key",
    "aws_session_token",
    "aws_credentials_expire_at",
    "instrumentor",
    "instrumentor_name",
    "connection_options",
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce an ISO 8601 string or naive datetime into an aware UTC datetime."""
    if value is None or isinstance(value, datetime) and value.tzinfo is not None:
        return value
    if isinstance(value, datetime):
        return value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ConfigurationError(
                "aws_credentials_expire_at must be an ISO 8601 timestamp",
                field="aws_credentials_expire_at",
                value=value,
            )
        return parse_timestamp(parsed)
    raise ConfigurationError(
        "aws_credentials_expire_at must be a datetime or ISO 8601 string",
        field="aws_credentials_expire_at",
        value=value,
    )


TRUE_STRINGS = ("1", "true", "yes", "on")
FALSE_STRINGS = ("0", "false", "no", "off", "")


def parse_bool(value: Any, field_name: str) -> Any:
    """Turn a true/false string (as substituted from the environment) into a bool.

    Non-string values are returned unchanged for the type validators to check.
    """
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ConfigurationError(f"{field_name} must be a boolean, got {value!r}", field=field_name, value=value)


def parse_int(value: Any) -> Any:
    """Turn a digit string into an int; anything else is returned unchanged."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


@dataclass
class ConnectionConfig:
    """Options accepted when connecting to the AutoScaling service."""

    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    aws_credentials_expire_at: Optional[datetime] = None
    region: str = DEFAULT_REGION
    host: Optional[str] = None
    path: str = "/"
    port: int = 443
    scheme: str = "https"
    persistent: bool = False
    use_iam_profile: bool = False
    instrumentor: Any = None
    instrumentor_name: str = DEFAULT_INSTRUMENTOR_NAME
    connection_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.region is None:
            self.region = DEFAULT_REGION
        if self.host is None:
            self.host = f"autoscaling.{self.region}.amazonaws.com"
        if self.instrumentor_name is None:
            self.instrumentor_name = DEFAULT_INSTRUMENTOR_NAME
        if self.connection_options is None:
            self.connection_options = {}
        self.persistent = parse_bool(self.persistent, "persistent")
        self.use_iam_profile = parse_bool(self.use_iam_profile, "use_iam_profile")
        self.port = parse_int(self.port)

        validate_field(self.region, [TypeValidator("region", str)])
        validate_field(self.host, [RequiredValidator("host"), HostnameValidator("host")])
        validate_field(self.path, [PathValidator("path")])
        validate_field(self.port, [PortValidator("port")])
        validate_field(self.scheme, [ChoiceValidator("scheme", ["http", "https"])])
        validate_field(self.aws_session_token, [OptionalValidator(TypeValidator("aws_session_token", str))])
        validate_field(self.connection_options, [TypeValidator("connection_options", dict)])
        validate_field(self.persistent, [TypeValidator("persistent", bool)])
        validate_field(self.use_iam_profile, [TypeValidator("use_iam_profile", bool)])
        self.aws_credentials_expire_at = parse_timestamp(self.aws_credentials_expire_at)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "ConnectionConfig":
        """Build a configuration from a flat options mapping.

        Args:
            options: Option names mapped to values.
            **kwargs: Additional options, merged over ``options``.

        Returns:
            Validated configuration.

        Raises:
            ConfigurationError: If an option is unrecognized or invalid.
        """
        merged = dict(options or {})
        merged.update(kwargs)
        validate_known_keys(merged, RECOGNIZED_OPTIONS)
        return cls(**merged)

    def require_credentials(self) -> None:
        """Ensure the access key id and secret are present.

        Raises:
            ConfigurationError: If either is missing.
        """
        missing = [name for name in REQUIRED_OPTIONS if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required arguments: {', '.join(missing)}",
                field=missing[0],
            )

    @property
    def endpoint(self) -> str:
        """Full URL requests are posted to."""
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"

    def as_options(self) -> Dict[str, Any]:
        """Return the configuration as an options mapping."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            raise ValueError(f"Log level must be one of {valid_log_levels}")


@dataclass
class ClientSettings:
    """Everything loaded from a settings file."""

    connection: ConnectionConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    mock: bool = False
