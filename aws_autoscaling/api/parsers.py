"""XML response parsing."""

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from lxml import etree


INTEGER_FIELDS = frozenset([
    "Cooldown",
    "DefaultCooldown",
    "DesiredCapacity",
    "HealthCheckGracePeriod",
    "MaxSize",
    "MinAdjustmentStep",
    "MinSize",
    "Progress",
    "ScalingAdjustment",
    "VolumeSize",
])

BOOLEAN_FIELDS = frozenset([
    "AssociatePublicIpAddress",
    "DeleteOnTermination",
    "EbsOptimized",
    "Enabled",
    "NoDevice",
    "PropagateAtLaunch",
])

TIMESTAMP_FIELDS = frozenset([
    "CreatedTime",
    "EndTime",
    "StartTime",
    "Time",
])

LIST_FIELDS = frozenset([
    "Activities",
    "AdjustmentTypes",
    "Alarms",
    "AutoScalingGroups",
    "AutoScalingInstances",
    "AvailabilityZones",
    "BlockDeviceMappings",
    "EnabledMetrics",
    "Granularities",
    "Instances",
    "LaunchConfigurations",
    "LoadBalancerNames",
    "Metrics",
    "NotificationConfigurations",
    "Processes",
    "ScalingPolicies",
    "ScheduledUpdateGroupActions",
    "SecurityGroups",
    "SuspendedProcesses",
    "Tags",
    "TerminationPolicies",
])

_parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def local_name(tag: str) -> str:
    return etree.QName(tag).localname


def parse_timestamp(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def coerce(name: str, text: Optional[str]) -> Any:
    """Convert leaf text to the Python type used for field ``name``."""
    if name in LIST_FIELDS:
        return []
    if text is None:
        return None
    text = text.strip()
    if name in INTEGER_FIELDS:
        return int(text)
    if name in BOOLEAN_FIELDS:
        return text.lower() == "true"
    if name in TIMESTAMP_FIELDS and text:
        return parse_timestamp(text)
    return text


def element_to_python(element: etree._Element) -> Any:
    """Recursively convert an element.

    Elements whose children are all ``member`` become lists, other elements
    with children become dicts keyed by local tag name, and leaves are
    coerced with ``coerce``.
    """
    name = local_name(element.tag)
    children = [child for child in element if isinstance(child.tag, str)]
    if not children:
        return coerce(name, element.text)
    if all(local_name(child.tag) == "member" for child in children):
        return [element_to_python(child) for child in children]
    return {local_name(child.tag): element_to_python(child) for child in children}


def parse_response(body: Union[bytes, str], result_key: Optional[str] = None) -> Dict[str, Any]:
    """Parse a response document.

    Args:
        body: Raw XML.
        result_key: Name of the ``<Action>Result`` element, if the action has one.

    Returns:
        ``{"ResponseMetadata": {...}, result_key: {...}}``.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    root = etree.fromstring(body, parser=_parser)
    parsed = element_to_python(root)
    if not isinstance(parsed, dict):
        parsed = {}
    if result_key is not None and not parsed.get(result_key):
        parsed[result_key] = {}
    parsed.setdefault("ResponseMetadata", {})
    return parsed


def response_parser(result_key: Optional[str]) -> Callable[[Union[bytes, str]], Dict[str, Any]]:
    """Parser bound to one operation's result element."""
    def parser(body: Union[bytes, str]) -> Dict[str, Any]:
        return parse_response(body, result_key)
    return parser
