"""Tests for models and collections backed by the mock client."""

import pytest

from aws_autoscaling.api.exceptions import ValidationError
from aws_autoscaling.config.models import ConnectionConfig
from aws_autoscaling.mock.client import MockAutoScalingClient
from aws_autoscaling.mock.store import MockStore
from aws_autoscaling.models import (
    Activities,
    Configurations,
    Group,
    Groups,
    Instance,
    Instances,
    LaunchConfiguration,
    Policies,
    Policy,
    ScheduledActions,
)


@pytest.fixture
def service():
    """Mock backend with an isolated store."""
    config = ConnectionConfig(aws_access_key_id="abc", aws_secret_access_key="secret")
    return MockAutoScalingClient(config, store=MockStore())


@pytest.fixture
def configuration(service):
    """A saved launch configuration."""
    configuration = Configurations(service).new(id="web-config", image_id="ami-1", instance_type="m1.small")
    configuration.save()
    return configuration


def save_group(service, name="web", **attributes):
    attributes.setdefault("availability_zones", ["us-east-1a"])
    attributes.setdefault("launch_configuration_name", "web-config")
    attributes.setdefault("min_size", 1)
    attributes.setdefault("max_size", 5)
    group = Groups(service).new(id=name, **attributes)
    group.save()
    return group


class TestLaunchConfigurationModel:
    """Test the launch configuration model."""

    def test_save_and_get(self, service, configuration):
        """Test a saved configuration can be fetched back."""
        fetched = Configurations(service).get("web-config")

        assert isinstance(fetched, LaunchConfiguration)
        assert fetched.image_id == "ami-1"
        assert fetched.instance_type == "m1.small"
        assert fetched.arn.startswith("arn:aws:autoscaling:")
        assert fetched.instance_monitoring is True
        assert fetched.service is service

    def test_user_data_is_encoded(self, service):
        """Test plain user data is base64 encoded on save."""
        Configurations(service).new(
            id="boot", image_id="ami-1", instance_type="m1.small", user_data="#!/bin/sh"
        ).save()
        assert Configurations(service).get("boot").user_data == "IyEvYmluL3No"

    def test_destroy(self, service, configuration):
        """Test destroying removes the configuration."""
        configuration.destroy()
        assert Configurations(service).get("web-config") is None

    def test_unattached_model(self):
        """Test models without a service refuse to talk to the API."""
        with pytest.raises(RuntimeError, match="not attached"):
            LaunchConfiguration(id="orphan").destroy()


class TestGroupModel:
    """Test the group model."""

    def test_save_and_get(self, service, configuration):
        """Test a saved group round trips through the API."""
        save_group(service, tags={"env": "prod"})

        group = Groups(service).get("web")
        assert isinstance(group, Group)
        assert group.min_size == 1
        assert group.max_size == 5
        assert group.desired_capacity == 1
        assert group.tags == {"env": "prod"}
        assert group.instances == []

    def test_get_missing(self, service):
        """Test getting an unknown group returns None."""
        assert Groups(service).get("missing") is None

    def test_update(self, service, configuration):
        """Test updating a group pushes changed attributes."""
        group = save_group(service)
        group.max_size = 8
        group.desired_capacity = 4
        group.health_check_type = "ELB"
        group.update()

        fetched = Groups(service).get("web")
        assert fetched.max_size == 8
        assert fetched.desired_capacity == 4
        assert fetched.health_check_type == "ELB"

    def test_set_desired_capacity(self, service, configuration):
        """Test desired capacity changes are tracked locally."""
        group = save_group(service)
        group.set_desired_capacity(3)
        assert group.desired_capacity == 3
        assert Groups(service).get("web").desired_capacity == 3

        with pytest.raises(ValidationError):
            group.set_desired_capacity(9)

    def test_processes(self, service, configuration):
        """Test suspending and resuming processes through the model."""
        group = save_group(service)
        group.suspend_processes(["Launch"])
        assert Groups(service).get("web").suspended_processes == ["Launch"]

        group.resume_processes()
        assert Groups(service).get("web").suspended_processes == []

    def test_destroy(self, service, configuration):
        """Test destroying a group, forcing when it has instances."""
        group = save_group(service)
        service.data["auto_scaling_groups"]["web"]["Instances"].append({"InstanceId": "i-1"})

        group.destroy(force=True)

        assert Groups(service).all() == []

    def test_instances_from_group(self, service, configuration):
        """Test group instances carry the group name."""
        save_group(service)
        service.data["auto_scaling_groups"]["web"]["Instances"].append(
            {"InstanceId": "i-1", "HealthStatus": "Healthy", "LifecycleState": "InService"}
        )

        instance = Groups(service).get("web").instances[0]
        assert instance.id == "i-1"
        assert instance.auto_scaling_group_name == "web"
        assert instance.healthy


class TestPolicyModel:
    """Test the policy model."""

    def test_save_records_arn(self, service, configuration):
        """Test saving a policy records its ARN."""
        save_group(service)
        policy = Policies(service).new(
            id="up", auto_scaling_group_name="web", adjustment_type="ChangeInCapacity", scaling_adjustment=2
        )
        policy.save()

        assert policy.arn.endswith("policyName/up")
        assert Policies(service, {"AutoScalingGroupName": "web"}).get("up").arn == policy.arn

    def test_execute_and_destroy(self, service, configuration):
        """Test executing then destroying a policy."""
        save_group(service)
        policy = Policy(
            service=service, id="up", auto_scaling_group_name="web",
            adjustment_type="ChangeInCapacity", scaling_adjustment=2,
        )
        policy.save()

        policy.execute()
        assert Groups(service).get("web").desired_capacity == 3

        policy.destroy()
        assert Policies(service).all() == []


class TestInstanceModel:
    """Test the instance model."""

    def test_health_and_terminate(self, service, configuration):
        """Test setting health and terminating an instance."""
        save_group(service, desired_capacity=2)
        service.data["auto_scaling_groups"]["web"]["Instances"].append(
            {"InstanceId": "i-1", "HealthStatus": "Healthy", "LifecycleState": "InService"}
        )

        instance = Instances(service).get("i-1")
        assert isinstance(instance, Instance)
        assert instance.auto_scaling_group_name == "web"

        instance.set_health("Unhealthy")
        assert not Instances(service).get("i-1").healthy

        activity = instance.terminate(should_decrement_desired_capacity=True)
        assert activity.status_code == "InProgress"
        assert Instances(service).all() == []
        assert Groups(service).get("web").desired_capacity == 1

    def test_healthy_accepts_both_spellings(self):
        """Test both health spellings count as healthy."""
        assert Instance(health_status="HEALTHY").healthy
        assert Instance(health_status="Healthy").healthy
        assert not Instance(health_status="UNHEALTHY").healthy


class TestScheduledActionModel:
    """Test the scheduled action model."""

    def test_save_and_destroy(self, service, configuration):
        """Test the scheduled action lifecycle through the model."""
        save_group(service)
        action = ScheduledActions(service).new(
            id="nightly", auto_scaling_group_name="web", recurrence="0 2 * * *", desired_capacity=2
        )
        action.save()

        fetched = ScheduledActions(service).get("nightly")
        assert fetched.recurrence == "0 2 * * *"
        assert fetched.desired_capacity == 2

        action.destroy()
        assert ScheduledActions(service).all() == []


class TestCollections:
    """Test collection paging."""

    def test_all_follows_next_token(self, service, configuration):
        """Test all() walks every page."""
        for name in ("a", "b", "c"):
            save_group(service, name)

        groups = Groups(service, {"MaxRecords": 1}).all()

        assert [group.id for group in groups] == ["a", "b", "c"]

    def test_each_is_lazy(self, service, configuration):
        """Test each() fetches pages only as needed."""
        for name in ("a", "b", "c"):
            save_group(service, name)
        calls = []
        original = service.describe_auto_scaling_groups

        def counting(options=None):
            calls.append(dict(options or {}))
            return original(options)

        service.describe_auto_scaling_groups = counting
        iterator = Groups(service, {"MaxRecords": 1}).each()

        assert next(iterator).id == "a"
        assert len(calls) == 1
        assert next(iterator).id == "b"
        assert calls[1]["NextToken"] == "a"

    def test_activities_empty(self, service, configuration):
        """Test the mock reports no activities."""
        save_group(service)
        assert Activities(service, {"AutoScalingGroupName": "web"}).all() == []

    def test_service_collections(self, service, configuration):
        """Test the service exposes a collection of each kind bound to itself."""
        save_group(service)

        for name, kind in [
            ("groups", Groups),
            ("configurations", Configurations),
            ("policies", Policies),
            ("instances", Instances),
            ("activities", Activities),
            ("scheduled_actions", ScheduledActions),
        ]:
            collection = getattr(service, name)
            assert isinstance(collection, kind)
            assert collection.service is service
        assert [group.id for group in service.groups.all()] == ["web"]
        assert [config.id for config in service.configurations.all()] == ["web-config"]


if __name__ == '__main__':
    pytest.main([__file__])
