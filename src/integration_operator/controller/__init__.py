"""Integration reconciliation: the monitor action and its building blocks."""

from integration_operator.controller.action import Action
from integration_operator.controller.digest import compute_for_integration, lookup_resource_versions
from integration_operator.controller.kits import (
    find_highest_priority_ready_kit,
    integration_matches,
    is_integration_kit_reset_required,
    lookup_kits_for_integration,
)
from integration_operator.controller.monitor import MonitorAction
from integration_operator.controller.pods import are_pods_failing_statuses
from integration_operator.controller.probe import parse_health_check, probe_readiness
from integration_operator.controller.workload import (
    CronJobController,
    DeploymentController,
    KnativeServiceController,
    WorkloadController,
    new_controller,
)

__all__ = [
    "Action",
    "MonitorAction",
    "compute_for_integration",
    "lookup_resource_versions",
    "find_highest_priority_ready_kit",
    "integration_matches",
    "is_integration_kit_reset_required",
    "lookup_kits_for_integration",
    "are_pods_failing_statuses",
    "parse_health_check",
    "probe_readiness",
    "WorkloadController",
    "DeploymentController",
    "KnativeServiceController",
    "CronJobController",
    "new_controller",
]
