"""Typed wrappers over AutoScaling response mappings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class Model:
    """Base for objects built from API records.

    ``service`` is the backend (real or mock) the object talks to when
    saved, updated or destroyed.
    """

    service: Any = field(default=None, repr=False, compare=False)

    def _require_service(self) -> Any:
        if self.service is None:
            raise RuntimeError(f"{type(self).__name__} is not attached to a service")
        return self.service


@dataclass
class Instance(Model):
    """An EC2 instance that belongs to a group."""

    id: Optional[str] = None
    auto_scaling_group_name: Optional[str] = None
    availability_zone: Optional[str] = None
    health_status: Optional[str] = None
    lifecycle_state: Optional[str] = None
    launch_configuration_name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], service: Any = None, group_name: Optional[str] = None) -> "Instance":
        return cls(
            service=service,
            id=data.get("InstanceId"),
            auto_scaling_group_name=data.get("AutoScalingGroupName", group_name),
            availability_zone=data.get("AvailabilityZone"),
            health_status=data.get("HealthStatus"),
            lifecycle_state=data.get("LifecycleState"),
            launch_configuration_name=data.get("LaunchConfigurationName"),
        )

    @property
    def healthy(self) -> bool:
        # Group descriptions say "Healthy", instance descriptions "HEALTHY"
        return self.health_status in ("Healthy", "HEALTHY")

    def set_health(self, health_status: str, should_respect_grace_period: Optional[bool] = None) -> None:
        options = {}
        if should_respect_grace_period is not None:
            options["ShouldRespectGracePeriod"] = should_respect_grace_period
        self._require_service().set_instance_health(health_status, self.id, options)
        self.health_status = health_status

    def terminate(self, should_decrement_desired_capacity: bool = False) -> "Activity":
        """Terminate this instance and return the scaling activity started for it."""
        response = self._require_service().terminate_instance_in_auto_scaling_group(
            self.id, should_decrement_desired_capacity
        )
        activity = response["TerminateInstanceInAutoScalingGroupResult"].get("Activity") or {}
        return Activity.from_api(activity, service=self.service)


@dataclass
class Activity(Model):
    """A scaling activity."""

    id: Optional[str] = None
    auto_scaling_group_name: Optional[str] = None
    cause: Optional[str] = None
    description: Optional[str] = None
    progress: Optional[int] = None
    status_code: Optional[str] = None
    status_message: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], service: Any = None) -> "Activity":
        return cls(
            service=service,
            id=data.get("ActivityId"),
            auto_scaling_group_name=data.get("AutoScalingGroupName"),
            cause=data.get("Cause"),
            description=data.get("Description"),
            progress=data.get("Progress"),
            status_code=data.get("StatusCode"),
            status_message=data.get("StatusMessage"),
            started_at=data.get("StartTime"),
            ended_at=data.get("EndTime"),
        )


@dataclass
class LaunchConfiguration(Model):
    """Template used by a group to launch instances."""

    id: Optional[str] = None
    arn: Optional[str] = None
    image_id: Optional[str] = None
    instance_type: Optional[str] = None
    key_name: Optional[str] = None
    kernel_id: Optional[str] = None
    ramdisk_id: Optional[str] = None
    security_groups: List[str] = field(default_factory=list)
    block_device_mappings: List[Dict[str, Any]] = field(default_factory=list)
    user_data: Optional[str] = None
    iam_instance_profile: Optional[str] = None
    spot_price: Optional[str] = None
    ebs_optimized: bool = False
    instance_monitoring: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], service: Any = None) -> "LaunchConfiguration":
        monitoring = data.get("InstanceMonitoring") or {}
        return cls(
            service=service,
            id=data.get("LaunchConfigurationName"),
            arn=data.get("LaunchConfigurationARN"),
            image_id=data.get("ImageId"),
            instance_type=data.get("InstanceType"),
            key_name=data.get("KeyName"),
            kernel_id=data.get("KernelId"),
            ramdisk_id=data.get("RamdiskId"),
            security_groups=list(data.get("SecurityGroups") or []),
            block_device_mappings=list(data.get("BlockDeviceMappings") or []),
            user_data=data.get("UserData"),
            iam_instance_profile=data.get("IamInstanceProfile"),
            spot_price=data.get("SpotPrice"),
            ebs_optimized=bool(data.get("EbsOptimized")),
            instance_monitoring=bool(monitoring.get("Enabled", True)),
            created_at=data.get("CreatedTime"),
        )

    def save(self) -> None:
        """Create the launch configuration. ``user_data`` is sent as plain text."""
        options = {
            "KeyName": self.key_name,
            "KernelId": self.kernel_id,
            "RamdiskId": self.ramdisk_id,
            "SecurityGroups": self.security_groups or None,
            "BlockDeviceMappings": self.block_device_mappings or None,
            "UserData": self.user_data,
            "IamInstanceProfile": self.iam_instance_profile,
            "SpotPrice": self.spot_price,
            "EbsOptimized": self.ebs_optimized or None,
            "InstanceMonitoring.Enabled": self.instance_monitoring,
        }
        self._require_service().create_launch_configuration(
            self.image_id,
            self.instance_type,
            self.id,
            {key: value for key, value in options.items() if value is not None},
        )

    def destroy(self) -> None:
        self._require_service().delete_launch_configuration(self.id)


@dataclass
class Policy(Model):
    """A scaling policy attached to a group."""

    id: Optional[str] = None
    arn: Optional[str] = None
    auto_scaling_group_name: Optional[str] = None
    adjustment_type: Optional[str] = None
    scaling_adjustment: Optional[int] = None
    cooldown: Optional[int] = None
    min_adjustment_step: Optional[int] = None
    alarms: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any], service: Any = None) -> "Policy":
        return cls(
            service=service,
            id=data.get("PolicyName"),
            arn=data.get("PolicyARN"),
            auto_scaling_group_name=data.get("AutoScalingGroupName"),
            adjustment_type=data.get("AdjustmentType"),
            scaling_adjustment=data.get("ScalingAdjustment"),
            cooldown=data.get("Cooldown"),
            min_adjustment_step=data.get("MinAdjustmentStep"),
            alarms=list(data.get("Alarms") or []),
        )

    def save(self) -> None:
        """Create or replace the policy and record its ARN."""
        options = {"Cooldown": self.cooldown, "MinAdjustmentStep": self.min_adjustment_step}
        response = self._require_service().put_scaling_policy(
            self.adjustment_type,
            self.auto_scaling_group_name,
            self.id,
            self.scaling_adjustment,
            {key: value for key, value in options.items() if value is not None},
        )
        self.arn = response["PutScalingPolicyResult"].get("PolicyARN")

    def destroy(self) -> None:
        self._require_service().delete_policy(self.auto_scaling_group_name, self.id)

    def execute(self, honor_cooldown: bool = False) -> None:
        options = {"AutoScalingGroupName": self.auto_scaling_group_name}
        if honor_cooldown:
            options["HonorCooldown"] = True
        self._require_service().execute_policy(self.id, options)


@dataclass
class ScheduledAction(Model):
    """A scheduled change to a group's size."""

    id: Optional[str] = None
    arn: Optional[str] = None
    auto_scaling_group_name: Optional[str] = None
    time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    recurrence: Optional[str] = None
    desired_capacity: Optional[int] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], service: Any = None) -> "ScheduledAction":
        return cls(
            service=service,
            id=data.get("ScheduledActionName"),
            arn=data.get("ScheduledActionARN"),
            auto_scaling_group_name=data.get("AutoScalingGroupName"),
            time=data.get("Time"),
            start_time=data.get("StartTime"),
            end_time=data.get("EndTime"),
            recurrence=data.get("Recurrence"),
            desired_capacity=data.get("DesiredCapacity"),
            min_size=data.get("MinSize"),
            max_size=data.get("MaxSize"),
        )

    def save(self) -> None:
        options = {
            "StartTime": self.start_time,
            "EndTime": self.end_time,
            "Recurrence": self.recurrence,
            "DesiredCapacity": self.desired_capacity,
            "MinSize": self.min_size,
            "MaxSize": self.max_size,
        }
        self._require_service().put_scheduled_update_group_action(
            self.auto_scaling_group_name,
            self.id,
            self.time,
            {key: value for key, value in options.items() if value is not None},
        )

    def destroy(self) -> None:
        self._require_service().delete_scheduled_action(self.auto_scaling_group_name, self.id)


@dataclass
class Group(Model):
    """An auto scaling group."""

    id: Optional[str] = None
    arn: Optional[str] = None
    availability_zones: List[str] = field(default_factory=list)
    launch_configuration_name: Optional[str] = None
    min_size: int = 0
    max_size: int = 0
    desired_capacity: Optional[int] = None
    default_cooldown: int = 300
    health_check_type: str = "EC2"
    health_check_grace_period: int = 0
    load_balancer_names: List[str] = field(default_factory=list)
    placement_group: Optional[str] = None
    vpc_zone_identifier: Optional[str] = None
    termination_policies: List[str] = field(default_factory=list)
    tags: Dict[str, Any] = field(default_factory=dict)
    instances: List[Instance] = field(default_factory=list)
    suspended_processes: List[str] = field(default_factory=list)
    enabled_metrics: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], service: Any = None) -> "Group":
        name = data.get("AutoScalingGroupName")
        return cls(
            service=service,
            id=name,
            arn=data.get("AutoScalingGroupARN"),
            availability_zones=list(data.get("AvailabilityZones") or []),
            launch_configuration_name=data.get("LaunchConfigurationName"),
            min_size=data.get("MinSize", 0),
            max_size=data.get("MaxSize", 0),
            desired_capacity=data.get("DesiredCapacity"),
            default_cooldown=data.get("DefaultCooldown", 300),
            health_check_type=data.get("HealthCheckType", "EC2"),
            health_check_grace_period=data.get("HealthCheckGracePeriod") or 0,
            load_balancer_names=list(data.get("LoadBalancerNames") or []),
            placement_group=data.get("PlacementGroup"),
            vpc_zone_identifier=data.get("VPCZoneIdentifier"),
            termination_policies=list(data.get("TerminationPolicies") or []),
            tags={tag["Key"]: tag.get("Value") for tag in data.get("Tags") or []},
            instances=[
                Instance.from_api(instance, service=service, group_name=name)
                for instance in data.get("Instances") or []
            ],
            suspended_processes=[process["ProcessName"] for process in data.get("SuspendedProcesses") or []],
            enabled_metrics=[metric["Metric"] for metric in data.get("EnabledMetrics") or []],
            created_at=data.get("CreatedTime"),
        )

    def _options(self) -> Dict[str, Any]:
        options = {
            "DefaultCooldown": self.default_cooldown,
            "DesiredCapacity": self.desired_capacity,
            "HealthCheckGracePeriod": self.health_check_grace_period,
            "HealthCheckType": self.health_check_type,
            "PlacementGroup": self.placement_group,
            "TerminationPolicies": self.termination_policies or None,
            "VPCZoneIdentifier": self.vpc_zone_identifier,
        }
        return {key: value for key, value in options.items() if value is not None}

    def save(self) -> None:
        """Create the group."""
        options = self._options()
        if self.load_balancer_names:
            options["LoadBalancerNames"] = self.load_balancer_names
        if self.tags:
            options["Tags"] = self.tags
        self._require_service().create_auto_scaling_group(
            self.id,
            self.availability_zones,
            self.launch_configuration_name,
            self.max_size,
            self.min_size,
            options,
        )

    def update(self) -> None:
        """Push the current attribute values to an existing group."""
        options = self._options()
        options.update({
            "AvailabilityZones": self.availability_zones or None,
            "LaunchConfigurationName": self.launch_configuration_name,
            "MaxSize": self.max_size,
            "MinSize": self.min_size,
        })
        self._require_service().update_auto_scaling_group(
            self.id, {key: value for key, value in options.items() if value is not None}
        )

    def destroy(self, force: bool = False) -> None:
        self._require_service().delete_auto_scaling_group(self.id, {"ForceDelete": True} if force else None)

    def set_desired_capacity(self, desired_capacity: int, honor_cooldown: bool = False) -> None:
        options = {"HonorCooldown": True} if honor_cooldown else None
        self._require_service().set_desired_capacity(self.id, desired_capacity, options)
        self.desired_capacity = desired_capacity

    def suspend_processes(self, processes: Optional[List[str]] = None) -> None:
        options = {"ScalingProcesses": processes} if processes else None
        self._require_service().suspend_processes(self.id, options)

    def resume_processes(self, processes: Optional[List[str]] = None) -> None:
        options = {"ScalingProcesses": processes} if processes else None
        self._require_service().resume_processes(self.id, options)
