"""
Monitor action - keeps a deployed Integration's status in line with reality.

The monitor runs for Integrations in phase Deploying, Running or Error. One
pass reads the kit, the workload produced by the trait pipeline and the
Integration's pods, and rewrites ``status`` accordingly.

Pass outline:
    ::

        InitializationFailed? ──yes──▶ digest check only
              │ no
        resolve kit ──▶ kit failed and kit in Error? ──yes──▶ no change
              │
        digest changed? ──yes──▶ (reset kit?) initialize, store digest
              │ no
        higher priority ready kit? ──yes──▶ switch kit reference
              │
        trait pipeline ──fail──▶ phase Error, Ready=False InitializationFailed
              │
        workload controller ──no identity label──▶ Ready=False MonitoringPodsAvailable
              │
        list pods, count replicas, Deploying → Running
              │
        controller short-circuit │ pod failure scan │ probe engine │ ready condition

Declared unhealthy states are recorded on the Integration and never raise.
Platform errors, configuration errors and pipeline errors propagate; the
caller re-runs the pass later. The Integration passed to ``handle`` is
updated in place, also when an error is raised.

Tags:
    reconciliation, state-machine, readiness, integration-operator
"""

from __future__ import annotations

from collections.abc import Sequence

from integration_operator.apis import (
    INTEGRATION_LABEL,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Integration,
    IntegrationCondition,
    IntegrationKit,
    IntegrationKitPhase,
    IntegrationPhase,
    IntegrationStatus,
    Pod,
    PodPhase,
)
from integration_operator.controller.digest import compute_for_integration, lookup_resource_versions
from integration_operator.controller.kits import (
    find_highest_priority_ready_kit,
    higher_priority_than,
    is_integration_kit_reset_required,
    lookup_kits_for_integration,
)
from integration_operator.controller.pods import are_pods_failing_statuses
from integration_operator.controller.probe import probe_readiness
from integration_operator.controller.workload import WorkloadController, new_controller
from integration_operator.core.errors import (
    KitNotFoundError,
    MissingKitError,
    OperatorError,
    is_retryable,
)
from integration_operator.core.logging import LogContext, get_logger
from integration_operator.core.settings import OperatorSettings, get_settings
from integration_operator.platform.client import PlatformClient, ProbeProxy
from integration_operator.trait.catalog import TraitCatalog, apply as apply_traits
from integration_operator.trait.environment import Environment

logger = get_logger(__name__)

MONITORED_PHASES = (IntegrationPhase.DEPLOYING, IntegrationPhase.RUNNING, IntegrationPhase.ERROR)


def is_in_initialization_failed(status: IntegrationStatus) -> bool:
    if status.phase != IntegrationPhase.ERROR:
        return False
    ready = status.get_condition(ConditionType.READY)
    return (
        ready is not None
        and ready.status == ConditionStatus.FALSE
        and ready.reason == ConditionReason.INITIALIZATION_FAILED
    )


def is_in_integration_kit_failed(status: IntegrationStatus) -> bool:
    kit_available = status.get_condition(ConditionType.KIT_AVAILABLE)
    return (
        kit_available is not None
        and kit_available.status == ConditionStatus.FALSE
        and status.phase != IntegrationPhase.ERROR
    )


def identity_label_missing_message(integration: Integration, controller_name: str) -> str:
    return (
        f"Could not find `{INTEGRATION_LABEL}: {integration.name}` label in the {controller_name} "
        "template. Make sure to include this label in the template for Pod monitoring purposes."
    )


class MonitorAction:
    """
    Reconcile a deployed Integration against its pods and workload.

    Args:
        client: Platform object store access
        prober: Pod proxy used by the readiness probe engine
        catalog: Trait catalog run on every pass (built-in traits by default)
        settings: Operator settings (process settings by default)

    Example:
        action = MonitorAction(client, HttpxProbeProxy.from_settings(settings))
        if action.can_handle(integration):
            updated = await action.handle(integration)
    """

    name = "monitor"

    def __init__(
        self,
        client: PlatformClient,
        prober: ProbeProxy,
        catalog: TraitCatalog | None = None,
        settings: OperatorSettings | None = None,
    ):
        self.client = client
        self.prober = prober
        self.catalog = catalog or TraitCatalog.default()
        self.settings = settings or get_settings()

    def can_handle(self, integration: Integration) -> bool:
        return integration.status.phase in MONITORED_PHASES

    async def handle(self, integration: Integration) -> Integration | None:
        """Run one monitor pass. Returns None when the Integration needs no update."""
        async with LogContext(integration=integration.name, namespace=integration.namespace):
            result = await self._handle(integration)
            if result is not None:
                logger.debug("monitor.pass_completed", phase=result.status.phase.value)
            return result

    async def _handle(self, integration: Integration) -> Integration | None:
        if is_in_initialization_failed(integration.status):
            return await self.check_digest_and_rebuild(integration, None)

        kit = await self._get_kit(integration)

        if is_in_integration_kit_failed(integration.status) and kit.status.phase == IntegrationKitPhase.ERROR:
            return None

        changed = await self.check_digest_and_rebuild(integration, kit)
        if changed is not None:
            return changed

        await self._upgrade_kit(integration, kit)

        try:
            env = await apply_traits(
                self.client, integration, kit, catalog=self.catalog, settings=self.settings
            )
        except Exception as exc:
            integration.status.phase = IntegrationPhase.ERROR
            integration.set_ready_condition(
                ConditionStatus.FALSE, ConditionReason.INITIALIZATION_FAILED, str(exc)
            )
            logger.warning("monitor.initialization_failed", error=str(exc))
            raise

        return await self.monitor_pods(env, integration)

    async def _get_kit(self, integration: Integration) -> IntegrationKit:
        ref = integration.status.integration_kit
        if ref is None:
            raise MissingKitError(integration.name)

        namespace = ref.namespace or integration.namespace
        try:
            kit = await self.client.get(IntegrationKit, namespace, ref.name)
        except Exception as exc:
            raise KitNotFoundError(
                namespace, ref.name, cause=exc, retryable=is_retryable(exc)
            ).with_context(integration=integration.name) from exc
        if kit is None:
            raise KitNotFoundError(namespace, ref.name).with_context(integration=integration.name)
        return kit

    async def _upgrade_kit(self, integration: Integration, kit: IntegrationKit) -> None:
        kits = await lookup_kits_for_integration(self.client, integration, higher_priority_than(kit))
        priority_kit = find_highest_priority_ready_kit(kits)
        if priority_kit is None:
            return
        integration.set_integration_kit(priority_kit)
        logger.info("monitor.kit_upgraded", previous=kit.name, kit=priority_kit.name)

    async def check_digest_and_rebuild(
        self, integration: Integration, kit: IntegrationKit | None
    ) -> Integration | None:
        """Re-initialize the Integration when its digest changed.

        Returns the re-initialized Integration, or None when the stored
        digest is current.
        """
        configmaps, secrets = await lookup_resource_versions(self.client, integration)
        digest = compute_for_integration(integration, configmaps, secrets, self.settings.operator_version)
        if digest == integration.status.digest:
            return None

        logger.info("monitor.digest_changed", previous=integration.status.digest, digest=digest)
        if is_integration_kit_reset_required(integration, kit):
            integration.set_integration_kit(None)
        integration.initialize()
        integration.status.digest = digest
        return integration

    async def monitor_pods(self, env: Environment, integration: Integration) -> Integration:
        controller = new_controller(env, integration, self.client)

        # Pods are only found through the identity label on the pod template
        if not controller.has_identity_label():
            integration.status.set_conditions(
                IntegrationCondition(
                    type=ConditionType.READY,
                    status=ConditionStatus.FALSE,
                    reason=ConditionReason.MONITORING_PODS_AVAILABLE,
                    message=identity_label_missing_message(integration, controller.controller_name),
                )
            )
            return integration

        integration.status.selector = f"{INTEGRATION_LABEL}={integration.name}"

        labels = {INTEGRATION_LABEL: integration.name}
        pending = await self.client.list(
            Pod, integration.namespace, labels=labels, fields={"status.phase": PodPhase.PENDING}
        )
        running = await self.client.list(
            Pod, integration.namespace, labels=labels, fields={"status.phase": PodPhase.RUNNING}
        )
        integration.status.replicas = len(pending) + sum(1 for pod in running if not pod.is_terminating())

        if integration.status.phase == IntegrationPhase.DEPLOYING:
            integration.status.phase = IntegrationPhase.RUNNING

        await self.update_integration_phase_and_ready_condition(controller, env, integration, pending, running)
        return integration

    async def update_integration_phase_and_ready_condition(
        self,
        controller: WorkloadController,
        env: Environment,
        integration: Integration,
        pending: Sequence[Pod],
        running: Sequence[Pod],
    ) -> None:
        try:
            done = await controller.check_ready_condition()
        except Exception:
            await self._probe_for_insights(env, integration, running)
            raise
        if done:
            await self._probe_for_insights(env, integration, running)
            return

        if are_pods_failing_statuses(integration, pending, running):
            return

        ready_pods, probe_ok = await probe_readiness(env, integration, running, self.prober, self.settings)
        if not probe_ok:
            integration.status.phase = IntegrationPhase.ERROR
            return

        if controller.update_ready_condition(ready_pods):
            integration.status.phase = IntegrationPhase.RUNNING

    async def _probe_for_insights(self, env: Environment, integration: Integration, running: Sequence[Pod]) -> None:
        """Probe unready pods for runtime details once the workload reported a failure."""
        try:
            await probe_readiness(env, integration, running, self.prober, self.settings)
        except OperatorError as exc:
            logger.debug("monitor.probe_ignored", error=str(exc))


__all__ = [
    "MONITORED_PHASES",
    "MonitorAction",
    "is_in_initialization_failed",
    "is_in_integration_kit_failed",
    "identity_label_missing_message",
]
