"""Operation table and the method surface shared by both backends.

Every public method builds a mapping of API parameter names to values
(lists left as lists) and hands it to ``_call`` together with the
operation name. The real client flattens, signs and posts the mapping;
the mock client applies it to its in-memory state. Optional API
parameters are passed through ``options`` using the API's own names.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..models.collections import Activities, Configurations, Groups, Instances, Policies, ScheduledActions
from .signing import flatten_members, indexed_tags


Options = Optional[Mapping[str, Any]]
Names = Union[None, str, Iterable[str]]


@dataclass(frozen=True)
class Operation:
    """Static description of one API action."""

    name: str
    action: str
    list_params: Tuple[str, ...] = ()
    idempotent: bool = False
    has_result: bool = True

    @property
    def result_key(self) -> Optional[str]:
        return f"{self.action}Result" if self.has_result else None

    def serialize(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Flatten structured parameters into the wire form, ``Action`` included."""
        params = dict(params)
        tags = params.pop("Tags", None)
        flat = flatten_members(params, self.list_params)
        flat.update(indexed_tags(tags))
        flat["Action"] = self.action
        return flat


def _operation(name: str, action: str, *list_params: str, idempotent: bool = False, has_result: bool = True) -> Operation:
    return Operation(name, action, tuple(list_params), idempotent, has_result)


OPERATIONS: Dict[str, Operation] = {op.name: op for op in [
    _operation("create_auto_scaling_group", "CreateAutoScalingGroup",
               "AvailabilityZones", "LoadBalancerNames", "TerminationPolicies", has_result=False),
    _operation("create_launch_configuration", "CreateLaunchConfiguration",
               "SecurityGroups", "BlockDeviceMappings", has_result=False),
    _operation("delete_auto_scaling_group", "DeleteAutoScalingGroup", has_result=False),
    _operation("delete_launch_configuration", "DeleteLaunchConfiguration", has_result=False),
    _operation("delete_policy", "DeletePolicy", has_result=False),
    _operation("delete_scheduled_action", "DeleteScheduledAction", has_result=False),
    _operation("describe_adjustment_types", "DescribeAdjustmentTypes", idempotent=True),
    _operation("describe_auto_scaling_groups", "DescribeAutoScalingGroups",
               "AutoScalingGroupNames", idempotent=True),
    _operation("describe_auto_scaling_instances", "DescribeAutoScalingInstances",
               "InstanceIds", idempotent=True),
    _operation("describe_launch_configurations", "DescribeLaunchConfigurations",
               "LaunchConfigurationNames", idempotent=True),
    _operation("describe_metric_collection_types", "DescribeMetricCollectionTypes", idempotent=True),
    _operation("describe_policies", "DescribePolicies", "PolicyNames", idempotent=True),
    _operation("describe_scaling_activities", "DescribeScalingActivities", "ActivityIds", idempotent=True),
    _operation("describe_scaling_process_types", "DescribeScalingProcessTypes", idempotent=True),
    _operation("describe_scheduled_actions", "DescribeScheduledActions",
               "ScheduledActionNames", idempotent=True),
    _operation("disable_metrics_collection", "DisableMetricsCollection", "Metrics", has_result=False),
    _operation("enable_metrics_collection", "EnableMetricsCollection", "Metrics", has_result=False),
    _operation("execute_policy", "ExecutePolicy", has_result=False),
    _operation("put_scaling_policy", "PutScalingPolicy"),
    _operation("put_scheduled_update_group_action", "PutScheduledUpdateGroupAction", has_result=False),
    _operation("put_notification_configuration", "PutNotificationConfiguration",
               "NotificationTypes", has_result=False),
    _operation("resume_processes", "ResumeProcesses", "ScalingProcesses", has_result=False),
    _operation("set_desired_capacity", "SetDesiredCapacity", has_result=False),
    _operation("set_instance_health", "SetInstanceHealth", has_result=False),
    _operation("suspend_processes", "SuspendProcesses", "ScalingProcesses", has_result=False),
    _operation("terminate_instance_in_auto_scaling_group", "TerminateInstanceInAutoScalingGroup"),
    _operation("update_auto_scaling_group", "UpdateAutoScalingGroup",
               "AvailabilityZones", "TerminationPolicies", has_result=False),
]}


def _as_list(values: Names) -> Optional[List[str]]:
    if values is None:
        return None
    if isinstance(values, str):
        return [values]
    return list(values)


def _merge(params: Dict[str, Any], options: Options) -> Dict[str, Any]:
    if options:
        params.update(options)
    return {key: value for key, value in params.items() if value is not None}


class AutoScalingService:
    """The AutoScaling operations, independent of the backend."""

    def _call(self, operation: Operation, params: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def _invoke(self, name: str, params: Dict[str, Any], options: Options = None) -> Dict[str, Any]:
        return self._call(OPERATIONS[name], _merge(params, options))

    def reload(self) -> None:
        raise NotImplementedError

    @property
    def groups(self) -> Groups:
        return Groups(self)

    @property
    def configurations(self) -> Configurations:
        return Configurations(self)

    @property
    def policies(self) -> Policies:
        return Policies(self)

    @property
    def instances(self) -> Instances:
        return Instances(self)

    @property
    def activities(self) -> Activities:
        return Activities(self)

    @property
    def scheduled_actions(self) -> ScheduledActions:
        return ScheduledActions(self)

    def create_auto_scaling_group(
        self,
        auto_scaling_group_name: str,
        availability_zones: Names,
        launch_configuration_name: str,
        max_size: int,
        min_size: int,
        options: Options = None,
    ) -> Dict[str, Any]:
        """Create an auto scaling group.

        Args:
            auto_scaling_group_name: Name of the new group.
            availability_zones: Zones the group launches instances into.
            launch_configuration_name: Launch configuration for new instances.
            max_size: Maximum group size.
            min_size: Minimum group size.
            options: Optional parameters, e.g. ``DefaultCooldown``,
                ``DesiredCapacity``, ``HealthCheckGracePeriod``,
                ``HealthCheckType``, ``LoadBalancerNames``, ``PlacementGroup``,
                ``Tags``, ``TerminationPolicies``, ``VPCZoneIdentifier``.

        Returns:
            Response metadata.
        """
        return self._invoke("create_auto_scaling_group", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "AvailabilityZones": _as_list(availability_zones),
            "LaunchConfigurationName": launch_configuration_name,
            "MaxSize": max_size,
            "MinSize": min_size,
        }, options)

    def create_launch_configuration(
        self,
        image_id: str,
        instance_type: str,
        launch_configuration_name: str,
        options: Options = None,
    ) -> Dict[str, Any]:
        """Create a launch configuration.

        ``UserData`` in ``options`` is given as plain text and base64
        encoded here. ``InstanceMonitoring.Enabled`` toggles detailed
        monitoring.
        """
        options = dict(options or {})
        user_data = options.pop("UserData", None)
        if user_data is not None:
            if isinstance(user_data, str):
                user_data = user_data.encode("utf-8")
            options["UserData"] = base64.b64encode(user_data).decode("ascii")
        return self._invoke("create_launch_configuration", {
            "ImageId": image_id,
            "InstanceType": instance_type,
            "LaunchConfigurationName": launch_configuration_name,
        }, options)

    def delete_auto_scaling_group(self, auto_scaling_group_name: str, options: Options = None) -> Dict[str, Any]:
        """Delete a group. Pass ``{"ForceDelete": True}`` to delete a group with instances."""
        return self._invoke("delete_auto_scaling_group", {
            "AutoScalingGroupName": auto_scaling_group_name,
        }, options)

    def delete_launch_configuration(self, launch_configuration_name: str) -> Dict[str, Any]:
        return self._invoke("delete_launch_configuration", {
            "LaunchConfigurationName": launch_configuration_name,
        })

    def delete_policy(self, auto_scaling_group_name: str, policy_name: str) -> Dict[str, Any]:
        return self._invoke("delete_policy", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "PolicyName": policy_name,
        })

    def delete_scheduled_action(self, auto_scaling_group_name: str, scheduled_action_name: str) -> Dict[str, Any]:
        return self._invoke("delete_scheduled_action", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "ScheduledActionName": scheduled_action_name,
        })

    def describe_adjustment_types(self) -> Dict[str, Any]:
        """List the policy adjustment types."""
        return self._invoke("describe_adjustment_types", {})

    def describe_auto_scaling_groups(self, options: Options = None) -> Dict[str, Any]:
        """Describe groups.

        Args:
            options: ``AutoScalingGroupNames`` (list), ``MaxRecords``,
                ``NextToken``.
        """
        return self._invoke("describe_auto_scaling_groups", {}, options)

    def describe_auto_scaling_instances(self, options: Options = None) -> Dict[str, Any]:
        """Describe instances. Filter with ``InstanceIds``; page with ``MaxRecords``/``NextToken``."""
        return self._invoke("describe_auto_scaling_instances", {}, options)

    def describe_launch_configurations(self, options: Options = None) -> Dict[str, Any]:
        """Describe launch configurations, optionally by ``LaunchConfigurationNames``."""
        return self._invoke("describe_launch_configurations", {}, options)

    def describe_metric_collection_types(self) -> Dict[str, Any]:
        return self._invoke("describe_metric_collection_types", {})

    def describe_policies(self, options: Options = None) -> Dict[str, Any]:
        """Describe policies, optionally by ``AutoScalingGroupName`` and ``PolicyNames``."""
        return self._invoke("describe_policies", {}, options)

    def describe_scaling_activities(self, options: Options = None) -> Dict[str, Any]:
        """Describe activities, optionally by ``ActivityIds`` or ``AutoScalingGroupName``."""
        return self._invoke("describe_scaling_activities", {}, options)

    def describe_scaling_process_types(self) -> Dict[str, Any]:
        return self._invoke("describe_scaling_process_types", {})

    def describe_scheduled_actions(self, options: Options = None) -> Dict[str, Any]:
        """Describe scheduled actions.

        Args:
            options: ``AutoScalingGroupName``, ``ScheduledActionNames``,
                ``StartTime``, ``EndTime``, ``MaxRecords``, ``NextToken``.
        """
        return self._invoke("describe_scheduled_actions", {}, options)

    def disable_metrics_collection(self, auto_scaling_group_name: str, options: Options = None) -> Dict[str, Any]:
        """Stop collecting group metrics; all of them unless ``Metrics`` is given."""
        return self._invoke("disable_metrics_collection", {
            "AutoScalingGroupName": auto_scaling_group_name,
        }, options)

    def enable_metrics_collection(
        self,
        auto_scaling_group_name: str,
        granularity: str,
        options: Options = None,
    ) -> Dict[str, Any]:
        """Start collecting group metrics; all of them unless ``Metrics`` is given."""
        return self._invoke("enable_metrics_collection", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "Granularity": granularity,
        }, options)

    def execute_policy(self, policy_name: str, options: Options = None) -> Dict[str, Any]:
        """Run a policy now. ``policy_name`` may be a name (with ``AutoScalingGroupName``) or an ARN."""
        return self._invoke("execute_policy", {"PolicyName": policy_name}, options)

    def put_scaling_policy(
        self,
        adjustment_type: str,
        auto_scaling_group_name: str,
        policy_name: str,
        scaling_adjustment: int,
        options: Options = None,
    ) -> Dict[str, Any]:
        """Create or replace a scaling policy.

        Args:
            adjustment_type: One of the names from ``describe_adjustment_types``.
            auto_scaling_group_name: Group the policy applies to.
            policy_name: Policy name.
            scaling_adjustment: Amount to scale by.
            options: ``Cooldown``, ``MinAdjustmentStep``.

        Returns:
            Response with ``PutScalingPolicyResult.PolicyARN``.
        """
        return self._invoke("put_scaling_policy", {
            "AdjustmentType": adjustment_type,
            "AutoScalingGroupName": auto_scaling_group_name,
            "PolicyName": policy_name,
            "ScalingAdjustment": scaling_adjustment,
        }, options)

    def put_scheduled_update_group_action(
        self,
        auto_scaling_group_name: str,
        scheduled_action_name: str,
        time: Any = None,
        options: Options = None,
    ) -> Dict[str, Any]:
        """Create or replace a scheduled action.

        ``options`` may carry ``DesiredCapacity``, ``MaxSize``, ``MinSize``,
        ``Recurrence``, ``StartTime`` and ``EndTime``.
        """
        return self._invoke("put_scheduled_update_group_action", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "ScheduledActionName": scheduled_action_name,
            "Time": time,
        }, options)

    def put_notification_configuration(
        self,
        auto_scaling_group_name: str,
        notification_types: Names,
        topic_arn: str,
    ) -> Dict[str, Any]:
        return self._invoke("put_notification_configuration", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "NotificationTypes": _as_list(notification_types),
            "TopicARN": topic_arn,
        })

    def resume_processes(self, auto_scaling_group_name: str, options: Options = None) -> Dict[str, Any]:
        """Resume suspended processes; all of them unless ``ScalingProcesses`` is given."""
        return self._invoke("resume_processes", {
            "AutoScalingGroupName": auto_scaling_group_name,
        }, options)

    def set_desired_capacity(
        self,
        auto_scaling_group_name: str,
        desired_capacity: int,
        options: Options = None,
    ) -> Dict[str, Any]:
        """Set the desired capacity. ``HonorCooldown`` may be passed in ``options``."""
        return self._invoke("set_desired_capacity", {
            "AutoScalingGroupName": auto_scaling_group_name,
            "DesiredCapacity": desired_capacity,
        }, options)

    def set_instance_health(self, health_status: str, instance_id: str, options: Options = None) -> Dict[str, Any]:
        return self._invoke("set_instance_health", {
            "HealthStatus": health_status,
            "InstanceId": instance_id,
        }, options)

    def suspend_processes(self, auto_scaling_group_name: str, options: Options = None) -> Dict[str, Any]:
        """Suspend processes; all of them unless ``ScalingProcesses`` is given."""
        return self._invoke("suspend_processes", {
            "AutoScalingGroupName": auto_scaling_group_name,
        }, options)

    def terminate_instance_in_auto_scaling_group(
        self,
        instance_id: str,
        should_decrement_desired_capacity: bool,
    ) -> Dict[str, Any]:
        """Terminate an instance, returning the resulting scaling activity."""
        return self._invoke("terminate_instance_in_auto_scaling_group", {
            "InstanceId": instance_id,
            "ShouldDecrementDesiredCapacity": bool(should_decrement_desired_capacity),
        })

    def update_auto_scaling_group(self, auto_scaling_group_name: str, options: Options = None) -> Dict[str, Any]:
        """Update a group.

        Args:
            auto_scaling_group_name: Group to update.
            options: Any of ``AvailabilityZones``, ``DefaultCooldown``,
                ``DesiredCapacity``, ``HealthCheckGracePeriod``,
                ``HealthCheckType``, ``LaunchConfigurationName``, ``MaxSize``,
                ``MinSize``, ``PlacementGroup``, ``TerminationPolicies``,
                ``VPCZoneIdentifier``.
        """
        return self._invoke("update_auto_scaling_group", {
            "AutoScalingGroupName": auto_scaling_group_name,
        }, options)
