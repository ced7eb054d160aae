"""
AWS AutoScaling client binding

Signed Query API client for the AutoScaling control plane, with an
in-memory mock backend sharing the same operations.
"""

__version__ = "1.0.0"

from .api.client import AutoScalingClient
from .api.exceptions import AutoScalingError, IdentifierTaken, ResourceInUse, ValidationError
from .config.models import ConnectionConfig
from .core.exceptions import ConfigurationError, UnknownRegionError
from .mock.client import MockAutoScalingClient
from .mock.store import MockStore
from .service import connect, connect_from_file

__all__ = [
    "AutoScalingClient",
    "AutoScalingError",
    "ConfigurationError",
    "ConnectionConfig",
    "IdentifierTaken",
    "MockAutoScalingClient",
    "MockStore",
    "ResourceInUse",
    "UnknownRegionError",
    "ValidationError",
    "connect",
    "connect_from_file",
]
