"""Collections that page through ``describe_*`` results."""

from typing import Any, Dict, Iterator, List, Optional

from .models import Activity, Group, Instance, LaunchConfiguration, Policy, ScheduledAction


class Collection:
    """Base collection.

    Subclasses name the describe operation, the list inside its result,
    the filter that selects records by identity, and the model to build.
    """

    operation: str = ""
    result_key: str = ""
    list_key: str = ""
    identity_filter: str = ""
    model: type = None

    def __init__(self, service: Any, filters: Optional[Dict[str, Any]] = None) -> None:
        """Initialize collection.

        Args:
            service: Real or mock backend.
            filters: Extra describe options applied to every call.
        """
        self.service = service
        self.filters = dict(filters or {})

    def _pages(self, options: Dict[str, Any]) -> Iterator[List[Dict[str, Any]]]:
        options = dict(self.filters, **options)
        while True:
            response = getattr(self.service, self.operation)(options)
            result = response[self.result_key]
            yield result.get(self.list_key) or []
            next_token = result.get("NextToken")
            if not next_token:
                return
            options["NextToken"] = next_token

    def each(self, **options: Any) -> Iterator[Any]:
        """Yield models one at a time, fetching further pages as needed."""
        for page in self._pages(options):
            for record in page:
                yield self.model.from_api(record, service=self.service)

    def all(self, **options: Any) -> List[Any]:
        """Every record, following ``NextToken`` until exhausted."""
        return list(self.each(**options))

    def get(self, identity: str) -> Optional[Any]:
        """The record named ``identity``, or None."""
        for item in self.each(**{self.identity_filter: [identity]}):
            return item
        return None

    def new(self, **attributes: Any) -> Any:
        """An unsaved model bound to this collection's service."""
        return self.model(service=self.service, **attributes)


class Groups(Collection):
    operation = "describe_auto_scaling_groups"
    result_key = "DescribeAutoScalingGroupsResult"
    list_key = "AutoScalingGroups"
    identity_filter = "AutoScalingGroupNames"
    model = Group


class Configurations(Collection):
    operation = "describe_launch_configurations"
    result_key = "DescribeLaunchConfigurationsResult"
    list_key = "LaunchConfigurations"
    identity_filter = "LaunchConfigurationNames"
    model = LaunchConfiguration


class Policies(Collection):
    operation = "describe_policies"
    result_key = "DescribePoliciesResult"
    list_key = "ScalingPolicies"
    identity_filter = "PolicyNames"
    model = Policy


class Instances(Collection):
    operation = "describe_auto_scaling_instances"
    result_key = "DescribeAutoScalingInstancesResult"
    list_key = "AutoScalingInstances"
    identity_filter = "InstanceIds"
    model = Instance


class Activities(Collection):
    operation = "describe_scaling_activities"
    result_key = "DescribeScalingActivitiesResult"
    list_key = "Activities"
    identity_filter = "ActivityIds"
    model = Activity


class ScheduledActions(Collection):
    operation = "describe_scheduled_actions"
    result_key = "DescribeScheduledActionsResult"
    list_key = "ScheduledUpdateGroupActions"
    identity_filter = "ScheduledActionNames"
    model = ScheduledAction
