"""Loading client settings from YAML files.

A settings file looks like::

    connection:
      aws_access_key_id: ${AWS_ACCESS_KEY_ID}
      aws_secret_access_key: ${AWS_SECRET_ACCESS_KEY}
      region: ${AWS_REGION:us-east-1}
    logging:
      log_level: INFO
    mock: false

String values of the form ``${VAR}`` or ``${VAR:default}`` are replaced
from the environment.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.exceptions import ConfigurationError
from .models import ClientSettings, ConnectionConfig, LoggingConfig, parse_bool


logger = logging.getLogger(__name__)

ENV_REFERENCE = re.compile(r'^\$\{([^}:]+)(?::([^}]*))?\}$')


def substitute_environment(data: Any) -> Any:
    """Replace ``${VAR}``/``${VAR:default}`` strings anywhere in ``data``."""
    if isinstance(data, dict):
        return {key: substitute_environment(value) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_environment(item) for item in data]
    if isinstance(data, str):
        match = ENV_REFERENCE.match(data)
        if match is not None:
            return os.getenv(match.group(1), match.group(2))
    return data


class ConfigManager:
    """Finds, loads and validates a settings file."""

    DEFAULT_CONFIG_PATHS = [
        "~/.aws-autoscaling.yaml",
        "/etc/aws-autoscaling/config.yaml",
        "./aws-autoscaling.yaml",
    ]

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Settings file checked before the default locations.

        Raises:
            ConfigurationError: If no settings file exists.
        """
        self.config_path = self._find_config_file(config_path)
        self._settings: Optional[ClientSettings] = None

    def _candidate_paths(self, config_path: Optional[str]) -> List[str]:
        return ([config_path] if config_path else []) + list(self.DEFAULT_CONFIG_PATHS)

    def _find_config_file(self, config_path: Optional[str] = None) -> Path:
        candidates = self._candidate_paths(config_path)
        for candidate in candidates:
            path = Path(candidate).expanduser()
            if path.is_file():
                logger.info(f"Found configuration file: {path}")
                return path

        raise ConfigurationError(f"No configuration file found. Searched paths: {candidates}")

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file {self.config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a YAML object")
        return data

    def load_config(self) -> ClientSettings:
        """Load and validate the settings file.

        Returns:
            Parsed settings.

        Raises:
            ConfigurationError: If the file cannot be read or is invalid.
        """
        logger.info(f"Loading configuration from {self.config_path}")
        self._settings = self._parse_config(substitute_environment(self._read()))
        logger.info("Configuration loaded successfully")
        return self._settings

    def _parse_config(self, config_data: Dict[str, Any]) -> ClientSettings:
        connection_data = config_data.get('connection')
        if not connection_data:
            raise ConfigurationError("Connection configuration is required")

        try:
            logging_config = LoggingConfig(**(config_data.get('logging') or {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration parameter: {e}")
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}")

        return ClientSettings(
            connection=ConnectionConfig.from_options(connection_data),
            logging=logging_config,
            mock=bool(parse_bool(config_data.get('mock') or False, "mock")),
        )

    def reload_config(self) -> ClientSettings:
        """Read the settings file again."""
        logger.info("Reloading configuration")
        return self.load_config()

    def get_config(self) -> Optional[ClientSettings]:
        """The last loaded settings, or None."""
        return self._settings
