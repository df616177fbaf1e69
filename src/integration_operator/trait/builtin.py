"""Built-in traits.

Exactly one workload trait applies per pass, selected by
``Environment.controller_strategy()``:

    cron (1000)  →  deployment (1100)  →  knative-service (1400)
                         │
                         ▼
              container (1600)  →  mount (1610)

Workload traits build the controller object, copy the observed status from
the live object, and mark their own ``<Kind>Available`` condition True and
the other two False. ``container`` then configures the integration container
of whichever workload was produced; ``mount`` validates the mount entries.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import ClassVar

from integration_operator.apis import (
    INTEGRATION_LABEL,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Container,
    CronJob,
    Deployment,
    KnativeService,
    ObjectMeta,
    PodSpec,
    PodTemplateSpec,
    Resource,
)
from integration_operator.apis.core import ContainerPort
from integration_operator.apis.workloads import (
    CronJobSpec,
    DeploymentSpec,
    JobSpec,
    JobTemplateSpec,
    KnativeServiceSpec,
    LabelSelectorSpec,
)
from integration_operator.core.errors import ValidationError
from integration_operator.core.logging import get_logger
from integration_operator.trait.base import Trait
from integration_operator.trait.environment import ControllerStrategy, Environment

logger = get_logger(__name__)


# ── Mount entries ────────────────────────────────────────────────────────

CONFIG_STORAGE_CONFIGMAP = "configmap"
CONFIG_STORAGE_SECRET = "secret"


@dataclass(frozen=True)
class ConfigEntry:
    """A parsed ``<storage>:<name>[/<key>]`` mount entry."""

    storage: str
    name: str
    key: str = ""


def parse_config_entry(value: str) -> ConfigEntry:
    """Parse a mount ``configs``/``resources`` entry.

    Raises:
        ValidationError: the entry is not ``configmap:`` or ``secret:``
            prefixed, or has an empty name
    """
    storage, sep, rest = value.partition(":")
    if not sep or storage not in (CONFIG_STORAGE_CONFIGMAP, CONFIG_STORAGE_SECRET):
        raise ValidationError(f"could not parse mount entry {value!r}: unsupported storage type")
    name, _, key = rest.partition("/")
    if not name:
        raise ValidationError(f"could not parse mount entry {value!r}: missing name")
    return ConfigEntry(storage=storage, name=name, key=key)


# ── Workload traits ──────────────────────────────────────────────────────


def _identity_labels(env: Environment) -> dict[str, str]:
    return {INTEGRATION_LABEL: env.integration.name}


def _pod_template(env: Environment) -> PodTemplateSpec:
    return PodTemplateSpec(
        metadata=ObjectMeta(labels=_identity_labels(env)),
        spec=PodSpec(
            containers=[
                Container(name=env.get_integration_container_name(), image=env.get_integration_image())
            ]
        ),
    )


def _object_meta(env: Environment) -> ObjectMeta:
    return ObjectMeta(
        name=env.integration.name,
        namespace=env.integration.namespace,
        labels=_identity_labels(env),
    )


class WorkloadTrait(Trait):
    """Common behaviour of the three workload traits."""

    strategy: ClassVar[ControllerStrategy]
    condition_type: ClassVar[str]
    condition_reason: ClassVar[str]
    kind_label: ClassVar[str]

    def trait_spec(self, env: Environment):
        return getattr(env.integration.spec.traits, self.id.replace("-", "_"), None)

    def applies_to(self, env: Environment) -> bool:
        spec = self.trait_spec(env)
        if spec is not None and spec.enabled is False:
            return False
        return env.controller_strategy() is self.strategy

    @abstractmethod
    def build(self, env: Environment) -> Resource:
        """Desired workload object for this pass, without observed status."""

    async def apply(self, env: Environment) -> None:
        obj = self.build(env)

        live = await env.client.get(type(obj), obj.namespace, obj.name)
        if live is not None:
            obj.status = live.status.model_copy(deep=True)
            obj.metadata.resource_version = live.metadata.resource_version

        env.resources.add(obj)
        self._mark_available(env, f"{self.kind_label} name is {obj.name}")

    def _mark_available(self, env: Environment, message: str) -> None:
        status = env.integration.status
        for condition_type in ConditionType.WORKLOADS:
            if condition_type == self.condition_type:
                status.set_condition(condition_type, ConditionStatus.TRUE, self.condition_reason, message)
            else:
                status.set_condition(condition_type, ConditionStatus.FALSE, ConditionReason.NOT_SELECTED)


class CronTrait(WorkloadTrait):
    id = "cron"
    order = 1000
    strategy = ControllerStrategy.CRON_JOB
    condition_type = ConditionType.CRON_JOB_AVAILABLE
    condition_reason = ConditionReason.CRON_JOB_AVAILABLE
    kind_label = "CronJob"

    def build(self, env: Environment) -> CronJob:
        cron = env.integration.spec.traits.cron
        spec = CronJobSpec(
            schedule=cron.schedule,
            job_template=JobTemplateSpec(
                metadata=ObjectMeta(labels=_identity_labels(env)),
                spec=JobSpec(template=_pod_template(env)),
            ),
        )
        if cron.concurrency_policy:
            spec.concurrency_policy = cron.concurrency_policy
        return CronJob(metadata=_object_meta(env), spec=spec)


class DeploymentTrait(WorkloadTrait):
    id = "deployment"
    order = 1100
    strategy = ControllerStrategy.DEPLOYMENT
    condition_type = ConditionType.DEPLOYMENT_AVAILABLE
    condition_reason = ConditionReason.DEPLOYMENT_AVAILABLE
    kind_label = "deployment"

    def build(self, env: Environment) -> Deployment:
        return Deployment(
            metadata=_object_meta(env),
            spec=DeploymentSpec(
                replicas=env.integration.spec.replicas,
                selector=LabelSelectorSpec(match_labels=_identity_labels(env)),
                template=_pod_template(env),
            ),
        )


class KnativeServiceTrait(WorkloadTrait):
    id = "knative-service"
    order = 1400
    strategy = ControllerStrategy.KNATIVE_SERVICE
    condition_type = ConditionType.KNATIVE_SERVICE_AVAILABLE
    condition_reason = ConditionReason.KNATIVE_SERVICE_AVAILABLE
    kind_label = "Knative service"

    def build(self, env: Environment) -> KnativeService:
        return KnativeService(
            metadata=_object_meta(env),
            spec=KnativeServiceSpec(template=_pod_template(env)),
        )


# ── Container / mount ────────────────────────────────────────────────────


def _workload_pod_spec(obj: Resource) -> PodSpec | None:
    if isinstance(obj, Deployment):
        return obj.spec.template.spec
    if isinstance(obj, KnativeService):
        return obj.spec.template.spec
    if isinstance(obj, CronJob):
        return obj.spec.job_template.spec.template.spec
    return None


class ContainerTrait(Trait):
    """Configures the integration container of the produced workload."""

    id = "container"
    order = 1600

    def applies_to(self, env: Environment) -> bool:
        spec = env.integration.spec.traits.container
        return spec is None or spec.enabled is not False

    async def apply(self, env: Environment) -> None:
        spec = env.integration.spec.traits.container
        name = env.get_integration_container_name()
        image = env.get_integration_image()

        workload = env.resources.get_controller(lambda obj: True)
        if workload is None:
            return
        pod_spec = _workload_pod_spec(workload)
        container = pod_spec.get_container(name)
        if container is None:
            container = Container(name=name)
            pod_spec.containers.append(container)

        if image:
            container.image = image
        if spec is not None and spec.port is not None:
            container.ports = [ContainerPort(name="http", container_port=spec.port)]


class MountTrait(Trait):
    """Validates mount entries; a malformed entry fails the pass."""

    id = "mount"
    order = 1610

    def applies_to(self, env: Environment) -> bool:
        spec = env.integration.spec.traits.mount
        return spec is not None and spec.enabled is not False

    async def apply(self, env: Environment) -> None:
        spec = env.integration.spec.traits.mount
        entries = [parse_config_entry(value) for value in [*spec.configs, *spec.resources]]
        logger.debug("trait.mount_entries", integration=env.integration.name, count=len(entries))


def builtin_traits() -> list[Trait]:
    return [
        CronTrait(),
        DeploymentTrait(),
        KnativeServiceTrait(),
        ContainerTrait(),
        MountTrait(),
    ]


__all__ = [
    "ConfigEntry",
    "parse_config_entry",
    "WorkloadTrait",
    "CronTrait",
    "DeploymentTrait",
    "KnativeServiceTrait",
    "ContainerTrait",
    "MountTrait",
    "builtin_traits",
]
