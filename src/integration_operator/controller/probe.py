"""
Readiness probe engine.

Pods that are not Ready yet are probed directly through the pod proxy, to
tell apart a runtime that is merely starting from one whose health checks
report failures. Each probe outcome is classified:

    success           → pod not ready yet, probe fine
    deadline exceeded → pod message "readiness probe timed out ..."
    other error       → pod message "readiness probe failed ...: <err>"
    503 + body        → health report parsed, every non-UP check recorded

A timeout or other error marks the runtime not ready; a DOWN check also
marks it failed. Failed wins over not ready when choosing the Ready reason.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pydantic

from integration_operator.apis import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
    GenericCondition,
    HealthCheck,
    HealthCheckState,
    Integration,
    IntegrationCondition,
    Pod,
    PodCondition,
    PodConditionType,
)
from integration_operator.core.errors import (
    HealthCheckParseError,
    IntegrationContainerNotFoundError,
    ProbeTimeoutError,
    ServiceUnavailableError,
)
from integration_operator.core.logging import get_logger
from integration_operator.core.settings import OperatorSettings
from integration_operator.platform.client import ProbeProxy
from integration_operator.trait.environment import Environment

logger = get_logger(__name__)


def parse_health_check(body: bytes) -> HealthCheck:
    """Parse a readiness endpoint health report.

    Raises:
        HealthCheckParseError: the body is not a valid health report
    """
    try:
        return HealthCheck.model_validate_json(body)
    except pydantic.ValidationError as exc:
        raise HealthCheckParseError(f"unable to parse health check: {exc}", cause=exc) from exc


def _set_pod_message(pod_condition: PodCondition, message: str) -> None:
    if pod_condition.condition is None:
        pod_condition.condition = GenericCondition(type=PodConditionType.READY)
    pod_condition.condition.message = message


async def probe_readiness(
    env: Environment,
    integration: Integration,
    pods: Sequence[Pod],
    prober: ProbeProxy,
    settings: OperatorSettings | None = None,
) -> tuple[int, bool]:
    """Probe the unready pods and update the Integration Ready condition.

    Returns:
        ``(ready_pods, probe_ok)``. ``probe_ok`` is False when any probed pod
        timed out, failed or reported a non-UP health check.

    Raises:
        IntegrationContainerNotFoundError: an unready pod has no integration container
        HealthCheckParseError: a 503 body is not a health report
    """
    settings = settings or env.settings
    container_name = env.get_integration_container_name()

    ready_condition = IntegrationCondition(type=ConditionType.READY, status=ConditionStatus.TRUE)
    ready_pods = 0
    unready_pods = 0
    runtime_ready = True
    runtime_failed = False

    for pod in pods:
        pod_condition = PodCondition(name=pod.name)
        ready_condition.pods.append(pod_condition)
        pod_ready = pod.get_condition(PodConditionType.READY)
        if pod_ready is not None:
            pod_condition.condition = pod_ready.model_copy()

        if pod.is_ready():
            ready_pods += 1
            continue
        unready_pods += 1

        container = pod.spec.get_container(container_name)
        if container is None:
            raise IntegrationContainerNotFoundError(pod.namespace, pod.name).with_context(
                integration=integration.name
            )
        probe = container.readiness_probe
        if probe is None or probe.http_get is None:
            continue

        timeout = probe.timeout_seconds or settings.probe_timeout_seconds
        http_get = probe.http_get
        try:
            await asyncio.wait_for(
                prober.proxy_get(pod, http_get.port, http_get.path, scheme=http_get.scheme),
                timeout,
            )
        except (asyncio.TimeoutError, ProbeTimeoutError):
            logger.debug("probe.timed_out", pod=pod.name, timeout=timeout)
            _set_pod_message(pod_condition, f"readiness probe timed out for Pod {pod.namespace}/{pod.name}")
            runtime_ready = False
        except ServiceUnavailableError as exc:
            health = parse_health_check(exc.body)
            for check in health.checks:
                if check.status == HealthCheckState.UP:
                    continue
                runtime_ready = False
                runtime_failed = True
                pod_condition.health.append(check)
        except Exception as exc:
            logger.debug("probe.failed", pod=pod.name, error=str(exc))
            _set_pod_message(pod_condition, f"readiness probe failed for Pod {pod.namespace}/{pod.name}: {exc}")
            runtime_ready = False

    if runtime_ready:
        return ready_pods, True

    ready_condition.status = ConditionStatus.FALSE
    ready_condition.reason = ConditionReason.ERROR if runtime_failed else ConditionReason.RUNTIME_NOT_READY
    ready_condition.message = f"{unready_pods}/{unready_pods + ready_pods} pods are not ready"
    integration.status.set_conditions(ready_condition)

    logger.info(
        "probe.runtime_not_ready",
        integration=integration.name,
        reason=ready_condition.reason,
        unready=unready_pods,
        total=unready_pods + ready_pods,
    )
    return ready_pods, False


__all__ = ["parse_health_check", "probe_readiness"]
