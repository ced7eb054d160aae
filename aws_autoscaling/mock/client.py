"""In-memory stand-in for the AutoScaling API."""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..api.exceptions import IdentifierTaken, ResourceInUse, ValidationError
from ..api.operations import AutoScalingService, Operation
from ..config.models import ConnectionConfig
from ..core.exceptions import UnknownRegionError
from .store import DEFAULT_STORE, MOCK_REGIONS, MockStore


logger = logging.getLogger(__name__)

MOCK_ACCOUNT_ID = "123456789012"
MAX_RECORDS = 100
DEFAULT_MAX_RECORDS = 50

Record = Dict[str, Any]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _names(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def _tags(tags: Any, group_name: str) -> List[Record]:
    if not tags:
        return []
    if isinstance(tags, dict):
        tags = [{"Key": key, "Value": value} for key, value in tags.items()]
    return [
        {
            "Key": tag["Key"],
            "Value": tag.get("Value"),
            "PropagateAtLaunch": bool(tag.get("PropagateAtLaunch", False)),
            "ResourceId": tag.get("ResourceId", group_name),
            "ResourceType": tag.get("ResourceType", "auto-scaling-group"),
        }
        for tag in tags
    ]


def _paginate(items: List[Record], key: str, params: Dict[str, Any]) -> Tuple[List[Record], Optional[str]]:
    """Slice ``items`` by ``MaxRecords``; ``NextToken`` is the last name returned."""
    max_records = int(params.get("MaxRecords", DEFAULT_MAX_RECORDS))
    if not 1 <= max_records <= MAX_RECORDS:
        raise ValidationError(f"MaxRecords must be between 1 and {MAX_RECORDS}")

    start = 0
    token = params.get("NextToken")
    if token:
        names = [item[key] for item in items]
        if token not in names:
            raise ValidationError(f"Invalid NextToken: {token}")
        start = names.index(token) + 1

    page = items[start:start + max_records]
    next_token = page[-1][key] if page and start + max_records < len(items) else None
    return page, next_token


class MockAutoScalingClient(AutoScalingService):
    """Serves the AutoScaling operations from a ``MockStore``.

    State lives in the store cell for this client's region and access key,
    so two clients with the same key see the same groups.
    """

    def __init__(self, config: ConnectionConfig, store: Optional[MockStore] = None) -> None:
        """Initialize the mock client.

        Args:
            config: Connection configuration; only the region and access key
                id are used.
            store: State store. Defaults to the process-wide store.

        Raises:
            UnknownRegionError: If the region is not a mocked region.
            ConfigurationError: If credentials are missing.
        """
        if config.region not in MOCK_REGIONS:
            raise UnknownRegionError(f"Unknown region: {config.region!r}", field="region", value=config.region)
        if not config.use_iam_profile:
            config.require_credentials()

        self.config = config
        self.region = config.region
        self.aws_access_key_id = config.aws_access_key_id
        self.store = store if store is not None else DEFAULT_STORE

    @classmethod
    def reset(cls) -> None:
        """Clear all state in the process-wide store."""
        DEFAULT_STORE.reset()

    @property
    def data(self) -> Dict[str, Any]:
        """This client's cell, created with defaults on first access."""
        return self.store.data(self.region, self.aws_access_key_id)

    def reset_data(self) -> None:
        """Drop this client's cell."""
        self.store.reset_data(self.region, self.aws_access_key_id)

    def reload(self) -> None:
        pass

    def _call(self, operation: Operation, params: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Mock {operation.action} in {self.region}")
        handler: Callable[[Dict[str, Any]], Optional[Record]] = getattr(self, f"_{operation.name}")
        result = handler(params)
        response: Dict[str, Any] = {"ResponseMetadata": {"RequestId": str(uuid.uuid4())}}
        if operation.result_key is not None:
            response[operation.result_key] = copy.deepcopy(result or {})
        return response

    def _arn(self, resource: str) -> str:
        return f"arn:aws:autoscaling:{self.region}:{MOCK_ACCOUNT_ID}:{resource}"

    def _group(self, name: str) -> Record:
        group = self.data["auto_scaling_groups"].get(name)
        if group is None:
            raise ValidationError(f"AutoScalingGroup name not found - AutoScalingGroup {name} not found")
        return group

    def _launch_configuration(self, name: str) -> Record:
        configuration = self.data["launch_configurations"].get(name)
        if configuration is None:
            raise ValidationError(f"Launch configuration name not found - Launch configuration {name} not found")
        return configuration

    def _policy(self, name: str, group_name: Optional[str] = None) -> Record:
        for policy in self.data["scaling_policies"].values():
            if name in (policy["PolicyName"], policy["PolicyARN"]):
                if group_name is None or policy["AutoScalingGroupName"] == group_name:
                    return policy
        raise ValidationError(f"Policy {name} not found")

    def _instance(self, instance_id: str) -> Tuple[Record, Record]:
        for group in self.data["auto_scaling_groups"].values():
            for instance in group["Instances"]:
                if instance["InstanceId"] == instance_id:
                    return group, instance
        raise ValidationError(f"AutoScaling instance {instance_id} not found")

    @staticmethod
    def _check_bounds(min_size: int, max_size: int, desired: int) -> None:
        if min_size > max_size:
            raise ValidationError(
                f"Max bound, {max_size}, must be greater than or equal to min bound, {min_size}"
            )
        if not min_size <= desired <= max_size:
            raise ValidationError(
                f"Desired capacity:{desired} must be between the specified "
                f"min size:{min_size} and max size:{max_size}"
            )

    def _check_processes(self, processes: Optional[List[str]]) -> List[str]:
        if processes is None:
            return list(self.data["process_types"])
        for process in processes:
            if process not in self.data["process_types"]:
                raise ValidationError(f"Invalid scaling process name: {process}")
        return processes

    def _check_metrics(self, metrics: Optional[List[str]]) -> List[str]:
        known = self.data["metric_collection_types"]["metrics"]
        if metrics is None:
            return list(known)
        for metric in metrics:
            if metric not in known:
                raise ValidationError(f"Invalid metric name: {metric}")
        return metrics

    # Launch configurations

    def _create_launch_configuration(self, params: Dict[str, Any]) -> None:
        name = params["LaunchConfigurationName"]
        configurations = self.data["launch_configurations"]
        if name in configurations:
            raise IdentifierTaken(
                f"Launch Configuration by this name already exists - "
                f"A launch configuration already exists with the name {name}"
            )

        configurations[name] = {
            "LaunchConfigurationName": name,
            "LaunchConfigurationARN": self._arn(
                f"launchConfiguration:{uuid.uuid4()}:launchConfigurationName/{name}"
            ),
            "ImageId": params["ImageId"],
            "InstanceType": params["InstanceType"],
            "KeyName": params.get("KeyName"),
            "KernelId": params.get("KernelId"),
            "RamdiskId": params.get("RamdiskId"),
            "SecurityGroups": _names(params.get("SecurityGroups")) or [],
            "BlockDeviceMappings": list(params.get("BlockDeviceMappings") or []),
            "UserData": params.get("UserData"),
            "IamInstanceProfile": params.get("IamInstanceProfile"),
            "SpotPrice": params.get("SpotPrice"),
            "EbsOptimized": bool(params.get("EbsOptimized", False)),
            "AssociatePublicIpAddress": params.get("AssociatePublicIpAddress"),
            "InstanceMonitoring": {"Enabled": bool(params.get("InstanceMonitoring.Enabled", True))},
            "CreatedTime": _now(),
        }

    def _delete_launch_configuration(self, params: Dict[str, Any]) -> None:
        name = params["LaunchConfigurationName"]
        self._launch_configuration(name)
        for group in self.data["auto_scaling_groups"].values():
            if group["LaunchConfigurationName"] == name:
                raise ResourceInUse(
                    f"Cannot delete launch configuration {name} because it is attached to "
                    f"AutoScalingGroup {group['AutoScalingGroupName']}"
                )
        del self.data["launch_configurations"][name]

    def _describe_launch_configurations(self, params: Dict[str, Any]) -> Record:
        names = _names(params.get("LaunchConfigurationNames"))
        configurations = self.data["launch_configurations"]
        if names is None:
            items = list(configurations.values())
        else:
            items = [configurations[name] for name in names if name in configurations]
        page, next_token = _paginate(items, "LaunchConfigurationName", params)
        return {"LaunchConfigurations": page, "NextToken": next_token}

    # Groups

    def _create_auto_scaling_group(self, params: Dict[str, Any]) -> None:
        name = params["AutoScalingGroupName"]
        groups = self.data["auto_scaling_groups"]
        if name in groups:
            raise IdentifierTaken(
                f"AutoScalingGroup by this name already exists - A group with the name {name} already exists"
            )
        self._launch_configuration(params["LaunchConfigurationName"])

        min_size = int(params["MinSize"])
        max_size = int(params["MaxSize"])
        desired = int(params.get("DesiredCapacity", min_size))
        self._check_bounds(min_size, max_size, desired)

        groups[name] = {
            "AutoScalingGroupName": name,
            "AutoScalingGroupARN": self._arn(f"autoScalingGroup:{uuid.uuid4()}:autoScalingGroupName/{name}"),
            "AvailabilityZones": _names(params.get("AvailabilityZones")) or [],
            "CreatedTime": _now(),
            "DefaultCooldown": int(params.get("DefaultCooldown", 300)),
            "DesiredCapacity": desired,
            "EnabledMetrics": [],
            "HealthCheckGracePeriod": int(params.get("HealthCheckGracePeriod", 0)),
            "HealthCheckType": params.get("HealthCheckType", "EC2"),
            "Instances": [],
            "LaunchConfigurationName": params["LaunchConfigurationName"],
            "LoadBalancerNames": _names(params.get("LoadBalancerNames")) or [],
            "MaxSize": max_size,
            "MinSize": min_size,
            "NotificationConfigurations": [],
            "PlacementGroup": params.get("PlacementGroup"),
            "SuspendedProcesses": [],
            "Tags": _tags(params.get("Tags"), name),
            "TerminationPolicies": _names(params.get("TerminationPolicies")) or ["Default"],
            "VPCZoneIdentifier": params.get("VPCZoneIdentifier"),
        }

    def _update_auto_scaling_group(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        if "LaunchConfigurationName" in params:
            self._launch_configuration(params["LaunchConfigurationName"])

        min_size = int(params.get("MinSize", group["MinSize"]))
        max_size = int(params.get("MaxSize", group["MaxSize"]))
        if "DesiredCapacity" in params:
            desired = int(params["DesiredCapacity"])
        else:
            desired = max(min_size, min(group["DesiredCapacity"], max_size))
        self._check_bounds(min_size, max_size, desired)

        for key in ("DefaultCooldown", "HealthCheckGracePeriod"):
            if key in params:
                group[key] = int(params[key])
        for key in ("HealthCheckType", "LaunchConfigurationName", "PlacementGroup", "VPCZoneIdentifier"):
            if key in params:
                group[key] = params[key]
        for key in ("AvailabilityZones", "TerminationPolicies"):
            if key in params:
                group[key] = _names(params[key])
        group.update({"MinSize": min_size, "MaxSize": max_size, "DesiredCapacity": desired})

    def _delete_auto_scaling_group(self, params: Dict[str, Any]) -> None:
        name = params["AutoScalingGroupName"]
        group = self._group(name)
        if group["Instances"] and not params.get("ForceDelete"):
            raise ResourceInUse(
                "You cannot delete an AutoScalingGroup while there are instances "
                "or pending Spot instance request(s) still in the group."
            )
        del self.data["auto_scaling_groups"][name]
        for collection in ("scaling_policies", "scheduled_actions"):
            records = self.data[collection]
            for key in [key for key, record in records.items() if record["AutoScalingGroupName"] == name]:
                del records[key]

    def _describe_auto_scaling_groups(self, params: Dict[str, Any]) -> Record:
        names = _names(params.get("AutoScalingGroupNames"))
        groups = self.data["auto_scaling_groups"]
        if names is None:
            items = list(groups.values())
        else:
            items = [groups[name] for name in names if name in groups]
        page, next_token = _paginate(items, "AutoScalingGroupName", params)
        return {"AutoScalingGroups": page, "NextToken": next_token}

    def _apply_capacity(self, group: Record, desired: int) -> None:
        logger.debug(f"Mock group {group['AutoScalingGroupName']} desired capacity -> {desired}")
        group["DesiredCapacity"] = desired

    def _set_desired_capacity(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        desired = int(params["DesiredCapacity"])
        self._check_bounds(group["MinSize"], group["MaxSize"], desired)
        self._apply_capacity(group, desired)

    def _suspend_processes(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        processes = self._check_processes(_names(params.get("ScalingProcesses")))
        suspended = {process["ProcessName"] for process in group["SuspendedProcesses"]}
        for process in processes:
            if process not in suspended:
                group["SuspendedProcesses"].append({
                    "ProcessName": process,
                    "SuspensionReason": "User suspended at " + _now().strftime("%Y-%m-%dT%H:%M:%SZ"),
                })

    def _resume_processes(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        processes = set(self._check_processes(_names(params.get("ScalingProcesses"))))
        group["SuspendedProcesses"] = [
            process for process in group["SuspendedProcesses"] if process["ProcessName"] not in processes
        ]

    def _enable_metrics_collection(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        granularity = params["Granularity"]
        if granularity not in self.data["metric_collection_types"]["granularities"]:
            raise ValidationError(f"Invalid granularity: {granularity}")
        metrics = self._check_metrics(_names(params.get("Metrics")))
        enabled = {metric["Metric"] for metric in group["EnabledMetrics"]}
        for metric in metrics:
            if metric not in enabled:
                group["EnabledMetrics"].append({"Metric": metric, "Granularity": granularity})

    def _disable_metrics_collection(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        metrics = set(self._check_metrics(_names(params.get("Metrics"))))
        group["EnabledMetrics"] = [
            metric for metric in group["EnabledMetrics"] if metric["Metric"] not in metrics
        ]

    def _put_notification_configuration(self, params: Dict[str, Any]) -> None:
        group = self._group(params["AutoScalingGroupName"])
        topic_arn = params["TopicARN"]
        configurations = [
            configuration for configuration in group["NotificationConfigurations"]
            if configuration["TopicARN"] != topic_arn
        ]
        for notification_type in _names(params.get("NotificationTypes")) or []:
            configurations.append({
                "AutoScalingGroupName": group["AutoScalingGroupName"],
                "NotificationType": notification_type,
                "TopicARN": topic_arn,
            })
        group["NotificationConfigurations"] = configurations

    # Policies

    def _put_scaling_policy(self, params: Dict[str, Any]) -> Record:
        group_name = params["AutoScalingGroupName"]
        self._group(group_name)
        adjustment_type = params["AdjustmentType"]
        if adjustment_type not in self.data["adjustment_types"]:
            raise ValidationError(f"Invalid adjustment type: {adjustment_type}")

        name = params["PolicyName"]
        policies = self.data["scaling_policies"]
        existing = policies.get(name)
        if existing is not None and existing["AutoScalingGroupName"] == group_name:
            arn = existing["PolicyARN"]
        else:
            arn = self._arn(
                f"scalingPolicy:{uuid.uuid4()}:autoScalingGroupName/{group_name}:policyName/{name}"
            )

        policies[name] = {
            "PolicyName": name,
            "PolicyARN": arn,
            "AutoScalingGroupName": group_name,
            "AdjustmentType": adjustment_type,
            "ScalingAdjustment": int(params["ScalingAdjustment"]),
            "Cooldown": params.get("Cooldown"),
            "MinAdjustmentStep": params.get("MinAdjustmentStep"),
            "Alarms": [],
        }
        return {"PolicyARN": arn}

    def _delete_policy(self, params: Dict[str, Any]) -> None:
        policy = self._policy(params["PolicyName"], params.get("AutoScalingGroupName"))
        del self.data["scaling_policies"][policy["PolicyName"]]

    def _describe_policies(self, params: Dict[str, Any]) -> Record:
        group_name = params.get("AutoScalingGroupName")
        names = _names(params.get("PolicyNames"))
        items = [
            policy for policy in self.data["scaling_policies"].values()
            if (group_name is None or policy["AutoScalingGroupName"] == group_name)
            and (names is None or policy["PolicyName"] in names or policy["PolicyARN"] in names)
        ]
        page, next_token = _paginate(items, "PolicyName", params)
        return {"ScalingPolicies": page, "NextToken": next_token}

    def _execute_policy(self, params: Dict[str, Any]) -> None:
        policy = self._policy(params["PolicyName"], params.get("AutoScalingGroupName"))
        group = self._group(policy["AutoScalingGroupName"])
        desired = group["DesiredCapacity"]
        adjustment = policy["ScalingAdjustment"]

        if policy["AdjustmentType"] == "ExactCapacity":
            target = adjustment
        elif policy["AdjustmentType"] == "PercentChangeInCapacity":
            change = desired * adjustment / 100.0
            if 0 < abs(change) < 1:
                change = 1 if change > 0 else -1
            change = int(change)
            step = policy.get("MinAdjustmentStep")
            if step and abs(change) < int(step):
                change = int(step) if change >= 0 else -int(step)
            target = desired + change
        else:
            target = desired + adjustment

        self._apply_capacity(group, max(group["MinSize"], min(target, group["MaxSize"])))

    def _describe_adjustment_types(self, params: Dict[str, Any]) -> Record:
        return {"AdjustmentTypes": [{"AdjustmentType": name} for name in self.data["adjustment_types"]]}

    def _describe_metric_collection_types(self, params: Dict[str, Any]) -> Record:
        types = self.data["metric_collection_types"]
        return {
            "Granularities": [{"Granularity": name} for name in types["granularities"]],
            "Metrics": [{"Metric": name} for name in types["metrics"]],
        }

    def _describe_scaling_process_types(self, params: Dict[str, Any]) -> Record:
        return {"Processes": [{"ProcessName": name} for name in self.data["process_types"]]}

    def _describe_scaling_activities(self, params: Dict[str, Any]) -> Record:
        if params.get("AutoScalingGroupName") is not None:
            self._group(params["AutoScalingGroupName"])
        return {"Activities": [], "NextToken": None}

    # Scheduled actions

    def _put_scheduled_update_group_action(self, params: Dict[str, Any]) -> None:
        group_name = params["AutoScalingGroupName"]
        self._group(group_name)
        name = params["ScheduledActionName"]
        actions = self.data["scheduled_actions"]
        existing = actions.get(name)
        if existing is not None and existing["AutoScalingGroupName"] == group_name:
            arn = existing["ScheduledActionARN"]
        else:
            arn = self._arn(
                f"scheduledUpdateGroupAction:{uuid.uuid4()}:autoScalingGroupName/{group_name}"
                f":scheduledActionName/{name}"
            )

        actions[name] = {
            "ScheduledActionName": name,
            "ScheduledActionARN": arn,
            "AutoScalingGroupName": group_name,
            "Time": params.get("Time"),
            "StartTime": params.get("StartTime", params.get("Time")),
            "EndTime": params.get("EndTime"),
            "Recurrence": params.get("Recurrence"),
            "DesiredCapacity": params.get("DesiredCapacity"),
            "MinSize": params.get("MinSize"),
            "MaxSize": params.get("MaxSize"),
        }

    def _delete_scheduled_action(self, params: Dict[str, Any]) -> None:
        name = params["ScheduledActionName"]
        action = self.data["scheduled_actions"].get(name)
        if action is None or action["AutoScalingGroupName"] != params["AutoScalingGroupName"]:
            raise ValidationError(f"Scheduled action name not found - {name}")
        del self.data["scheduled_actions"][name]

    def _describe_scheduled_actions(self, params: Dict[str, Any]) -> Record:
        group_name = params.get("AutoScalingGroupName")
        names = _names(params.get("ScheduledActionNames"))
        items = [
            action for action in self.data["scheduled_actions"].values()
            if (group_name is None or action["AutoScalingGroupName"] == group_name)
            and (names is None or action["ScheduledActionName"] in names)
        ]
        page, next_token = _paginate(items, "ScheduledActionName", params)
        return {"ScheduledUpdateGroupActions": page, "NextToken": next_token}

    # Instances

    def _describe_auto_scaling_instances(self, params: Dict[str, Any]) -> Record:
        instance_ids = _names(params.get("InstanceIds"))
        items = []
        for group in self.data["auto_scaling_groups"].values():
            for instance in group["Instances"]:
                if instance_ids is None or instance["InstanceId"] in instance_ids:
                    items.append(dict(instance, AutoScalingGroupName=group["AutoScalingGroupName"]))
        page, next_token = _paginate(items, "InstanceId", params)
        return {"AutoScalingInstances": page, "NextToken": next_token}

    def _set_instance_health(self, params: Dict[str, Any]) -> None:
        health_status = params["HealthStatus"]
        if health_status not in self.data["health_states"]:
            raise ValidationError(f"Valid instance health states are: [{', '.join(self.data['health_states'])}]")
        _, instance = self._instance(params["InstanceId"])
        instance["HealthStatus"] = health_status

    def _terminate_instance_in_auto_scaling_group(self, params: Dict[str, Any]) -> Record:
        instance_id = params["InstanceId"]
        group, instance = self._instance(instance_id)
        group["Instances"].remove(instance)
        if params.get("ShouldDecrementDesiredCapacity"):
            self._apply_capacity(group, max(group["MinSize"], group["DesiredCapacity"] - 1))

        return {
            "Activity": {
                "ActivityId": str(uuid.uuid4()),
                "AutoScalingGroupName": group["AutoScalingGroupName"],
                "Cause": f"At {_now().strftime('%Y-%m-%dT%H:%M:%SZ')} instance {instance_id} was taken out of service "
                         f"in response to a user request.",
                "Description": f"Terminating EC2 instance: {instance_id}",
                "Progress": 0,
                "StartTime": _now(),
                "StatusCode": "InProgress",
            }
        }
