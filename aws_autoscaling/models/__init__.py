"""Typed models and collections over AutoScaling responses."""

from .collections import Activities, Configurations, Groups, Instances, Policies, ScheduledActions
from .models import Activity, Group, Instance, LaunchConfiguration, Policy, ScheduledAction

__all__ = [
    "Activities",
    "Activity",
    "Configurations",
    "Group",
    "Groups",
    "Instance",
    "Instances",
    "LaunchConfiguration",
    "Policies",
    "Policy",
    "ScheduledAction",
    "ScheduledActions",
]
