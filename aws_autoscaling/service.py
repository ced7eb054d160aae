"""Entry points that pick the real or mock backend."""

import logging
import os
from typing import Any, Mapping, Optional, Union

from .api.client import AutoScalingClient
from .config.manager import ConfigManager
from .config.models import ConnectionConfig
from .logging.setup import setup_logging
from .mock.client import MockAutoScalingClient
from .mock.store import MockStore


logger = logging.getLogger(__name__)

MOCK_ENV_VAR = "AWS_AUTOSCALING_MOCK"

Backend = Union[AutoScalingClient, MockAutoScalingClient]


def mocking_enabled() -> bool:
    """True when the ``AWS_AUTOSCALING_MOCK`` environment variable is set to a true value."""
    return os.getenv(MOCK_ENV_VAR, "").lower() in ("1", "true", "yes")


def connect(
    options: Optional[Mapping[str, Any]] = None,
    mock: Optional[bool] = None,
    store: Optional[MockStore] = None,
    **kwargs: Any,
) -> Backend:
    """Build a backend from connection options.

    Args:
        options: Recognized connection options.
        mock: Use the in-memory backend. Defaults to ``mocking_enabled()``.
        store: Store for the mock backend; the process-wide one if omitted.
        **kwargs: Options given as keywords, merged over ``options``.

    Returns:
        A real or mock client.

    Raises:
        ConfigurationError: For unrecognized options or missing credentials.
        UnknownRegionError: For a region the mock backend does not know.
    """
    config = ConnectionConfig.from_options(options, **kwargs)
    if mock is None:
        mock = mocking_enabled()

    if mock:
        logger.debug(f"Using mock AutoScaling backend for {config.region}")
        return MockAutoScalingClient(config, store=store)
    logger.debug(f"Using AutoScaling endpoint {config.endpoint}")
    return AutoScalingClient(config)


def connect_from_file(config_path: Optional[str] = None, configure_logging: bool = True) -> Backend:
    """Load a YAML settings file and connect with it.

    Args:
        config_path: Settings file; default locations are searched when omitted.
        configure_logging: Apply the file's logging section.
    """
    settings = ConfigManager(config_path).load_config()
    if configure_logging:
        setup_logging(settings.logging)

    mock = settings.mock or mocking_enabled()
    if mock:
        return MockAutoScalingClient(settings.connection)
    return AutoScalingClient(settings.connection)
