"""Integration, IntegrationKit and IntegrationPlatform resources.

The Integration status is the durable contract other controllers read:
``phase``, ``digest``, ``replicas``, ``selector``, ``conditions`` and the
``integration_kit`` reference. It is only ever mutated by reconciliation
actions.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import ConfigDict, Field

from integration_operator.apis.meta import (
    APIModel,
    ConditionStatus,
    GenericCondition,
    ObjectReference,
    Resource,
    utcnow,
)

# ── Labels & annotations ─────────────────────────────────────────────────

GROUP = "operator.integration.io"

INTEGRATION_LABEL = f"{GROUP}/integration"
KIT_PRIORITY_LABEL = f"{GROUP}/kit.priority"
KIT_TYPE_LABEL = f"{GROUP}/kit.type"
RUNTIME_VERSION_LABEL = f"{GROUP}/runtime.version"
RUNTIME_PROVIDER_LABEL = f"{GROUP}/runtime.provider"

OPERATOR_ID_ANNOTATION = f"{GROUP}/operator.id"
INTEGRATION_PROFILE_ANNOTATION = f"{GROUP}/integration-profile"
INTEGRATION_PROFILE_NAMESPACE_ANNOTATION = f"{GROUP}/integration-profile.namespace"

KIT_TYPE_PLATFORM = "platform"
KIT_TYPE_USER = "user"
KIT_TYPE_EXTERNAL = "external"
KIT_TYPE_SYNTHETIC = "synthetic"


def get_operator_id(resource: Resource) -> str:
    return resource.annotations.get(OPERATOR_ID_ANNOTATION, "")


def get_integration_profile(resource: Resource) -> str:
    return resource.annotations.get(INTEGRATION_PROFILE_ANNOTATION, "")


def get_integration_profile_namespace(resource: Resource) -> str:
    return resource.annotations.get(INTEGRATION_PROFILE_NAMESPACE_ANNOTATION, "")


# ── Phases, condition types, reasons ─────────────────────────────────────


class IntegrationPhase(str, Enum):
    NONE = ""
    INITIALIZATION = "Initialization"
    BUILDING_KIT = "Building Kit"
    DEPLOYING = "Deploying"
    RUNNING = "Running"
    ERROR = "Error"


class IntegrationKitPhase(str, Enum):
    NONE = ""
    INITIALIZATION = "Initialization"
    WAITING_FOR_PLATFORM = "Waiting For Platform"
    BUILD_SUBMITTED = "Build Submitted"
    BUILD_RUNNING = "Build Running"
    READY = "Ready"
    ERROR = "Error"


class IntegrationPlatformPhase(str, Enum):
    NONE = ""
    CREATING = "Creating"
    READY = "Ready"
    ERROR = "Error"


class ConditionType:
    READY = "Ready"
    KIT_AVAILABLE = "IntegrationKitAvailable"
    DEPLOYMENT_AVAILABLE = "DeploymentAvailable"
    KNATIVE_SERVICE_AVAILABLE = "KnativeServiceAvailable"
    CRON_JOB_AVAILABLE = "CronJobAvailable"

    WORKLOADS = (DEPLOYMENT_AVAILABLE, KNATIVE_SERVICE_AVAILABLE, CRON_JOB_AVAILABLE)


class ConditionReason:
    ERROR = "Error"
    INITIALIZATION_FAILED = "InitializationFailed"
    MONITORING_PODS_AVAILABLE = "MonitoringPodsAvailable"
    RUNTIME_NOT_READY = "RuntimeNotReady"
    KIT_AVAILABLE = "IntegrationKitAvailable"
    DEPLOYMENT_AVAILABLE = "DeploymentAvailable"
    DEPLOYMENT_READY = "DeploymentReady"
    DEPLOYMENT_PROGRESSING = "DeploymentProgressing"
    KNATIVE_SERVICE_AVAILABLE = "KnativeServiceAvailable"
    KNATIVE_SERVICE_READY = "KnativeServiceReady"
    CRON_JOB_AVAILABLE = "CronJobAvailable"
    CRON_JOB_CREATED = "CronJobCreated"
    CRON_JOB_ACTIVE = "CronJobActive"
    LAST_JOB_SUCCEEDED = "LastJobSucceeded"
    LAST_JOB_FAILED = "LastJobFailed"
    NOT_SELECTED = "NotSelected"


# ── Health report ────────────────────────────────────────────────────────


class HealthCheckState:
    UP = "UP"
    DOWN = "DOWN"


class HealthCheckResponse(APIModel):
    """A single named check of a runtime health report."""

    name: str
    status: str = HealthCheckState.UP
    data: dict[str, Any] = Field(default_factory=dict)


class HealthCheck(APIModel):
    """Runtime health report as served by a readiness endpoint."""

    status: str = HealthCheckState.UP
    checks: list[HealthCheckResponse] = Field(default_factory=list)


# ── Conditions ───────────────────────────────────────────────────────────


class PodCondition(APIModel):
    """Per-pod detail attached to the Integration ready condition."""

    name: str
    condition: GenericCondition | None = None
    health: list[HealthCheckResponse] = Field(default_factory=list)


class IntegrationCondition(APIModel):
    type: str
    status: str = ConditionStatus.UNKNOWN
    reason: str = ""
    message: str = ""
    last_update_time: datetime | None = None
    last_transition_time: datetime | None = None
    pods: list[PodCondition] = Field(default_factory=list)

    def same_as(self, other: IntegrationCondition) -> bool:
        return (
            self.status == other.status
            and self.reason == other.reason
            and self.message == other.message
            and self.pods == other.pods
        )


# ── Traits configuration ─────────────────────────────────────────────────


class TraitSpec(APIModel):
    enabled: bool | None = None


class ContainerTraitSpec(TraitSpec):
    name: str | None = None
    image: str | None = None
    port: int | None = None


class MountTraitSpec(TraitSpec):
    configs: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    hot_reload: bool | None = None


class DeploymentTraitSpec(TraitSpec):
    progress_deadline_seconds: int | None = None


class KnativeServiceTraitSpec(TraitSpec):
    min_scale: int | None = None
    max_scale: int | None = None


class CronTraitSpec(TraitSpec):
    schedule: str | None = None
    concurrency_policy: str | None = None


class Traits(APIModel):
    """Trait configuration declared on an Integration.

    Configuration for traits this core does not know is kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    container: ContainerTraitSpec | None = None
    mount: MountTraitSpec | None = None
    deployment: DeploymentTraitSpec | None = None
    knative_service: KnativeServiceTraitSpec | None = Field(default=None, alias="knative-service")
    cron: CronTraitSpec | None = None


# ── Integration ──────────────────────────────────────────────────────────


class IntegrationSpec(APIModel):
    replicas: int | None = None
    profile: str = ""
    dependencies: list[str] = Field(default_factory=list)
    sources: list[dict[str, Any]] = Field(default_factory=list)
    traits: Traits = Field(default_factory=Traits)


class IntegrationStatus(APIModel):
    phase: IntegrationPhase = IntegrationPhase.NONE
    digest: str = ""
    replicas: int | None = None
    selector: str = ""
    profile: str = ""
    runtime_version: str = ""
    runtime_provider: str = ""
    dependencies: list[str] = Field(default_factory=list)
    integration_kit: ObjectReference | None = None
    conditions: list[IntegrationCondition] = Field(default_factory=list)

    def get_condition(self, condition_type: str) -> IntegrationCondition | None:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def set_condition(
        self,
        condition_type: str,
        status: str,
        reason: str = "",
        message: str = "",
    ) -> None:
        self.set_conditions(
            IntegrationCondition(type=condition_type, status=status, reason=reason, message=message)
        )

    def set_conditions(self, *conditions: IntegrationCondition) -> None:
        """Overwrite the given condition types, leaving every other type untouched.

        ``last_transition_time`` only moves when the condition status changes.
        """
        for condition in conditions:
            now = utcnow()
            condition = condition.model_copy(deep=True)
            if condition.last_update_time is None:
                condition.last_update_time = now
            if condition.last_transition_time is None:
                condition.last_transition_time = now

            current = self.get_condition(condition.type)
            if current is not None and current.same_as(condition):
                continue
            if current is not None and current.status == condition.status:
                condition.last_transition_time = current.last_transition_time

            self.remove_condition(condition.type)
            self.conditions.append(condition)

    def remove_condition(self, condition_type: str) -> None:
        self.conditions = [c for c in self.conditions if c.type != condition_type]

    def is_condition_true(self, condition_type: str) -> bool:
        condition = self.get_condition(condition_type)
        return condition is not None and condition.status == ConditionStatus.TRUE


class Integration(Resource):
    kind: ClassVar[str] = "Integration"

    spec: IntegrationSpec = Field(default_factory=IntegrationSpec)
    status: IntegrationStatus = Field(default_factory=IntegrationStatus)

    def initialize(self) -> None:
        """Reset the status to its initial state.

        The kit reference and the resolved runtime survive: dropping the kit
        is a separate decision taken by the caller.
        """
        profile = self.spec.profile or self.status.profile
        self.status = IntegrationStatus(
            phase=IntegrationPhase.INITIALIZATION,
            profile=profile,
            runtime_version=self.status.runtime_version,
            runtime_provider=self.status.runtime_provider,
            dependencies=list(self.status.dependencies),
            integration_kit=self.status.integration_kit,
        )

    def set_integration_kit(self, kit: IntegrationKit | None) -> None:
        if kit is None:
            self.status.integration_kit = None
            return

        status = ConditionStatus.TRUE
        message = kit.name
        if kit.status.phase != IntegrationKitPhase.READY:
            status = ConditionStatus.FALSE
            if kit.status.phase == IntegrationKitPhase.NONE:
                message = "creating a new integration kit"
            else:
                message = f"integration kit {kit.namespace}/{kit.name} is in state {kit.status.phase.value!r}"

        self.status.set_condition(
            ConditionType.KIT_AVAILABLE, status, ConditionReason.KIT_AVAILABLE, message
        )
        self.status.integration_kit = ObjectReference(
            kind=IntegrationKit.kind, name=kit.name, namespace=kit.namespace
        )

    def set_ready_condition(self, status: str, reason: str, message: str = "") -> None:
        self.status.set_condition(ConditionType.READY, status, reason, message)

    def set_ready_condition_error(self, message: str) -> None:
        self.set_ready_condition(ConditionStatus.FALSE, ConditionReason.ERROR, message)

    def is_condition_true(self, condition_type: str) -> bool:
        return self.status.is_condition_true(condition_type)


# ── IntegrationKit ───────────────────────────────────────────────────────


class IntegrationKitSpec(APIModel):
    image: str = ""
    dependencies: list[str] = Field(default_factory=list)


class IntegrationKitStatus(APIModel):
    phase: IntegrationKitPhase = IntegrationKitPhase.NONE
    image: str = ""
    runtime_version: str = ""
    runtime_provider: str = ""
    failure: str = ""


class IntegrationKit(Resource):
    kind: ClassVar[str] = "IntegrationKit"

    spec: IntegrationKitSpec = Field(default_factory=IntegrationKitSpec)
    status: IntegrationKitStatus = Field(default_factory=IntegrationKitStatus)


# ── IntegrationPlatform ──────────────────────────────────────────────────


class IntegrationPlatformSpec(APIModel):
    cluster: str = "Kubernetes"
    profile: str = ""


class IntegrationPlatformStatus(APIModel):
    phase: IntegrationPlatformPhase = IntegrationPlatformPhase.NONE


class IntegrationPlatform(Resource):
    kind: ClassVar[str] = "IntegrationPlatform"

    spec: IntegrationPlatformSpec = Field(default_factory=IntegrationPlatformSpec)
    status: IntegrationPlatformStatus = Field(default_factory=IntegrationPlatformStatus)
