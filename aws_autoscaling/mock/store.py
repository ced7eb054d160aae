"""Process-wide in-memory state backing the mock client."""

import copy
import logging
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

MOCK_REGIONS = (
    "ap-northeast-1",
    "ap-southeast-1",
    "eu-west-1",
    "sa-east-1",
    "us-east-1",
    "us-west-1",
    "us-west-2",
)

# Reference data copied into every new cell; never mutated by operations
DEFAULT_CELL: Dict[str, Any] = {
    "adjustment_types": [
        "ChangeInCapacity",
        "ExactCapacity",
        "PercentChangeInCapacity",
    ],
    "auto_scaling_groups": {},
    "scaling_policies": {},
    "scheduled_actions": {},
    "health_states": ["Healthy", "Unhealthy"],
    "launch_configurations": {},
    "metric_collection_types": {
        "granularities": ["1Minute"],
        "metrics": [
            "GroupMinSize",
            "GroupMaxSize",
            "GroupDesiredCapacity",
            "GroupInServiceInstances",
            "GroupPendingInstances",
            "GroupTerminatingInstances",
            "GroupTotalInstances",
        ],
    },
    "process_types": [
        "AZRebalance",
        "AlarmNotification",
        "HealthCheck",
        "Launch",
        "ReplaceUnhealthy",
        "ScheduledActions",
        "Terminate",
    ],
}


def new_cell() -> Dict[str, Any]:
    """A fresh cell with the default skeleton."""
    return copy.deepcopy(DEFAULT_CELL)


class MockStore:
    """Mock provider state keyed by region, then access key id.

    Cells are created on first access and removed by ``reset_data`` or
    ``reset``. There is no locking; share a store across threads only
    with external synchronization.
    """

    def __init__(self) -> None:
        self._regions: Dict[str, Dict[Optional[str], Dict[str, Any]]] = {}

    def data(self, region: str, key: Optional[str]) -> Dict[str, Any]:
        """Return the cell for ``(region, key)``, creating it if needed."""
        cells = self._regions.setdefault(region, {})
        if key not in cells:
            logger.debug(f"Creating mock state for {key!r} in {region}")
            cells[key] = new_cell()
        return cells[key]

    def has_data(self, region: str, key: Optional[str]) -> bool:
        return key in self._regions.get(region, {})

    def reset_data(self, region: str, key: Optional[str]) -> None:
        """Drop the cell for ``(region, key)``; other cells are untouched."""
        self._regions.get(region, {}).pop(key, None)

    def reset(self) -> None:
        """Drop every cell in every region."""
        self._regions.clear()


DEFAULT_STORE = MockStore()
