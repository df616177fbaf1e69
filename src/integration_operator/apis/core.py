"""Pods, containers, probes, config maps and secrets."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from integration_operator.apis.meta import (
    APIModel,
    ConditionStatus,
    GenericCondition,
    ObjectMeta,
    Resource,
    find_condition,
)


class PodPhase:
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class PodConditionType:
    SCHEDULED = "PodScheduled"
    READY = "Ready"
    INITIALIZED = "Initialized"
    CONTAINERS_READY = "ContainersReady"


# ── Containers ───────────────────────────────────────────────────────────


class HTTPGetAction(APIModel):
    path: str = "/"
    port: int | str = 8080
    scheme: str = "HTTP"


class Probe(APIModel):
    http_get: HTTPGetAction | None = None
    initial_delay_seconds: int = 0
    timeout_seconds: int = 0
    period_seconds: int = 0
    failure_threshold: int = 0


class ContainerPort(APIModel):
    name: str = ""
    container_port: int


class Container(APIModel):
    name: str
    image: str = ""
    ports: list[ContainerPort] = Field(default_factory=list)
    readiness_probe: Probe | None = None
    liveness_probe: Probe | None = None


class PodSpec(APIModel):
    containers: list[Container] = Field(default_factory=list)
    init_containers: list[Container] = Field(default_factory=list)

    def get_container(self, name: str) -> Container | None:
        for container in self.containers:
            if container.name == name:
                return container
        return None


class PodTemplateSpec(APIModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)


# ── Container status ─────────────────────────────────────────────────────


class ContainerStateWaiting(APIModel):
    reason: str = ""
    message: str = ""


class ContainerStateTerminated(APIModel):
    reason: str = ""
    message: str = ""
    exit_code: int = 0


class ContainerStateRunning(APIModel):
    started_at: str | None = None


class ContainerState(APIModel):
    waiting: ContainerStateWaiting | None = None
    running: ContainerStateRunning | None = None
    terminated: ContainerStateTerminated | None = None


class ContainerStatus(APIModel):
    name: str
    ready: bool = False
    restart_count: int = 0
    state: ContainerState = Field(default_factory=ContainerState)


# ── Pod ──────────────────────────────────────────────────────────────────


class PodStatus(APIModel):
    phase: str = PodPhase.PENDING
    conditions: list[GenericCondition] = Field(default_factory=list)
    container_statuses: list[ContainerStatus] = Field(default_factory=list)
    init_container_statuses: list[ContainerStatus] = Field(default_factory=list)


class Pod(Resource):
    kind: ClassVar[str] = "Pod"

    spec: PodSpec = Field(default_factory=PodSpec)
    status: PodStatus = Field(default_factory=PodStatus)

    def get_condition(self, condition_type: str) -> GenericCondition | None:
        return find_condition(self.status.conditions, condition_type)

    def is_ready(self) -> bool:
        ready = self.get_condition(PodConditionType.READY)
        return ready is not None and ready.status == ConditionStatus.TRUE

    def is_terminating(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def all_container_statuses(self) -> list[ContainerStatus]:
        """Init container statuses followed by main container statuses."""
        return [*self.status.init_container_statuses, *self.status.container_statuses]


class ConfigMap(Resource):
    kind: ClassVar[str] = "ConfigMap"

    data: dict[str, str] = Field(default_factory=dict)


class Secret(Resource):
    kind: ClassVar[str] = "Secret"

    data: dict[str, str] = Field(default_factory=dict)
