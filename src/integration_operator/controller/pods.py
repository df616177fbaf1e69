"""Pod failure scan."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from integration_operator.apis import (
    ConditionStatus,
    ContainerStatus,
    Integration,
    IntegrationPhase,
    Pod,
    PodConditionType,
)

UNSCHEDULABLE = "Unschedulable"
IMAGE_PULL_BACK_OFF = "ImagePullBackOff"
CRASH_LOOP_BACK_OFF = "CrashLoopBackOff"
TERMINATED_ERROR = "Error"


def _unschedulable_message(pods: Iterable[Pod]) -> str | None:
    for pod in pods:
        scheduled = pod.get_condition(PodConditionType.SCHEDULED)
        if (
            scheduled is not None
            and scheduled.status == ConditionStatus.FALSE
            and scheduled.reason == UNSCHEDULABLE
        ):
            return scheduled.message
    return None


def _container_failure_message(statuses: Iterable[ContainerStatus]) -> str | None:
    for container in statuses:
        waiting = container.state.waiting
        if waiting is not None and waiting.reason in (IMAGE_PULL_BACK_OFF, CRASH_LOOP_BACK_OFF):
            return waiting.message
        terminated = container.state.terminated
        if terminated is not None and terminated.reason == TERMINATED_ERROR:
            return terminated.message
    return None


def are_pods_failing_statuses(
    integration: Integration,
    pending: Sequence[Pod],
    running: Sequence[Pod],
) -> bool:
    """Detect pods that will not recover without intervention.

    Pending pods are checked for an unschedulable PodScheduled condition
    first. Then init and main containers of pending and non-terminating
    running pods are checked for image pull back-off, crash loop back-off
    and terminated-with-error states.

    On the first hit the Integration goes to phase Error with a Ready=False
    condition carrying the platform's message, and True is returned.
    Otherwise the Integration is left untouched.
    """
    message = _unschedulable_message(pending)
    if message is None:
        candidates = [*pending, *(pod for pod in running if not pod.is_terminating())]
        for pod in candidates:
            message = _container_failure_message(pod.all_container_statuses())
            if message is not None:
                break

    if message is None:
        return False

    integration.status.phase = IntegrationPhase.ERROR
    integration.set_ready_condition_error(message)
    return True


__all__ = ["are_pods_failing_statuses"]
