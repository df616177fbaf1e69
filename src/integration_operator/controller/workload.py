"""
Workload controllers - readiness semantics per workload kind.

An Integration runs as exactly one of three workload kinds. The trait pass
marks the chosen kind with its ``<Kind>Available`` condition and leaves the
desired object in the ResourceCollection; ``new_controller`` turns that
pair into the matching controller variant.

Each variant answers two questions for the monitor:

- ``check_ready_condition()``: does the workload itself report a terminal
  failure (deadline exceeded, revision failed, last job failed)? When True
  the monitor stops there.
- ``update_ready_condition(ready_pods)``: given the ready pod count, set the
  Integration Ready condition and report whether the workload is ready.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from integration_operator.apis import (
    INTEGRATION_LABEL,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    CronJob,
    Deployment,
    DeploymentConditionType,
    Integration,
    IntegrationPhase,
    Job,
    JobConditionType,
    KnativeService,
    PodSpec,
    Resource,
)
from integration_operator.core.errors import ControllerNotFoundError, UnsupportedControllerError
from integration_operator.platform.client import PlatformClient
from integration_operator.trait.environment import Environment

PROGRESS_DEADLINE_EXCEEDED = "ProgressDeadlineExceeded"
REVISION_FAILED = "RevisionFailed"
KNATIVE_READY = "Ready"


class WorkloadController(ABC):
    """Readiness view over one workload object of the current pass."""

    kind_name: ClassVar[str]

    def __init__(self, obj: Resource, integration: Integration, client: PlatformClient):
        self.obj = obj
        self.integration = integration
        self.client = client

    @property
    def controller_name(self) -> str:
        return f"{self.kind_name}/{self.obj.name}"

    @property
    @abstractmethod
    def pod_spec(self) -> PodSpec:
        """Pod template spec of the workload.

        Part of the variant contract for callers that need the desired
        containers. Readiness probes are read from the live pods instead.
        """

    @property
    @abstractmethod
    def template_labels(self) -> dict[str, str]:
        ...

    def has_identity_label(self) -> bool:
        return INTEGRATION_LABEL in self.template_labels

    @abstractmethod
    async def check_ready_condition(self) -> bool:
        ...

    @abstractmethod
    def update_ready_condition(self, ready_pods: int) -> bool:
        ...

    def _fail(self, message: str) -> None:
        self.integration.status.phase = IntegrationPhase.ERROR
        self.integration.set_ready_condition_error(message)


class DeploymentController(WorkloadController):
    kind_name = "Deployment"
    obj: Deployment

    @property
    def pod_spec(self) -> PodSpec:
        return self.obj.spec.template.spec

    @property
    def template_labels(self) -> dict[str, str]:
        return self.obj.spec.template.metadata.labels

    async def check_ready_condition(self) -> bool:
        progressing = self.obj.get_condition(DeploymentConditionType.PROGRESSING)
        if (
            progressing is not None
            and progressing.status == ConditionStatus.FALSE
            and progressing.reason == PROGRESS_DEADLINE_EXCEEDED
        ):
            self._fail(progressing.message)
            return True
        return False

    def update_ready_condition(self, ready_pods: int) -> bool:
        replicas = self.integration.spec.replicas
        if replicas is None:
            replicas = 1

        # ready_pods counts pods of every revision, so >= holds while scaling down
        if ready_pods >= replicas:
            self.integration.set_ready_condition(
                ConditionStatus.TRUE,
                ConditionReason.DEPLOYMENT_READY,
                f"{ready_pods}/{replicas} ready replicas",
            )
            return True

        updated = self.obj.status.updated_replicas
        if updated < replicas:
            message = f"{updated}/{replicas} updated replicas"
        else:
            message = f"{ready_pods}/{replicas} ready replicas"
        self.integration.set_ready_condition(
            ConditionStatus.FALSE, ConditionReason.DEPLOYMENT_PROGRESSING, message
        )
        return False


class KnativeServiceController(WorkloadController):
    kind_name = "KnativeService"
    obj: KnativeService

    @property
    def pod_spec(self) -> PodSpec:
        return self.obj.spec.template.spec

    @property
    def template_labels(self) -> dict[str, str]:
        return self.obj.spec.template.metadata.labels

    async def check_ready_condition(self) -> bool:
        ready = self.obj.get_condition(KNATIVE_READY)
        if ready is not None and ready.status == ConditionStatus.FALSE and ready.reason == REVISION_FAILED:
            self._fail(ready.message)
            return True
        return False

    def update_ready_condition(self, ready_pods: int) -> bool:
        ready = self.obj.get_condition(KNATIVE_READY)
        if ready is not None and ready.status == ConditionStatus.TRUE:
            self.integration.set_ready_condition(ConditionStatus.TRUE, ConditionReason.KNATIVE_SERVICE_READY)
            return True

        reason = ready.reason if ready is not None else ""
        message = ready.message if ready is not None else ""
        self.integration.set_ready_condition(ConditionStatus.FALSE, reason, message)
        return False


class CronJobController(WorkloadController):
    kind_name = "CronJob"
    obj: CronJob

    def __init__(self, obj: Resource, integration: Integration, client: PlatformClient):
        super().__init__(obj, integration, client)
        self.last_completed_job: Job | None = None

    @property
    def pod_spec(self) -> PodSpec:
        return self.obj.spec.job_template.spec.template.spec

    @property
    def template_labels(self) -> dict[str, str]:
        return self.obj.spec.job_template.spec.template.metadata.labels

    async def check_ready_condition(self) -> bool:
        last_schedule = self.obj.status.last_schedule_time
        if last_schedule is None or self.obj.status.active:
            return False

        jobs = await self.client.list(
            Job, self.integration.namespace, labels={INTEGRATION_LABEL: self.integration.name}
        )
        threshold = last_schedule
        for job in jobs:
            created = job.metadata.creation_timestamp
            if job.status.active == 0 and (created is None or created < threshold):
                continue
            self.last_completed_job = job
            if created is not None:
                threshold = created

        if self.last_completed_job is not None:
            failed = self.last_completed_job.get_condition(JobConditionType.FAILED)
            if failed is not None and failed.status == ConditionStatus.TRUE:
                self.integration.set_ready_condition(
                    ConditionStatus.FALSE,
                    ConditionReason.LAST_JOB_FAILED,
                    f"last job {self.last_completed_job.name} failed: {failed.message}",
                )
                self.integration.status.phase = IntegrationPhase.ERROR
                return True
        return False

    def update_ready_condition(self, ready_pods: int) -> bool:
        status = self.obj.status
        if status.last_schedule_time is None:
            self.integration.set_ready_condition(
                ConditionStatus.TRUE, ConditionReason.CRON_JOB_CREATED, "cronjob created"
            )
            return True
        if status.active:
            self.integration.set_ready_condition(
                ConditionStatus.TRUE, ConditionReason.CRON_JOB_ACTIVE, "cronjob active"
            )
            return True

        job = self.last_completed_job
        if job is not None:
            complete = job.get_condition(JobConditionType.COMPLETE)
            if complete is not None and complete.status == ConditionStatus.TRUE:
                self.integration.set_ready_condition(
                    ConditionStatus.TRUE,
                    ConditionReason.LAST_JOB_SUCCEEDED,
                    f"last job {job.name} completed successfully",
                )
                return True

        self.integration.set_ready_condition(ConditionStatus.UNKNOWN, "")
        return False


_VARIANTS: tuple[tuple[str, type[Resource], type[WorkloadController]], ...] = (
    (ConditionType.DEPLOYMENT_AVAILABLE, Deployment, DeploymentController),
    (ConditionType.KNATIVE_SERVICE_AVAILABLE, KnativeService, KnativeServiceController),
    (ConditionType.CRON_JOB_AVAILABLE, CronJob, CronJobController),
)


def new_controller(env: Environment, integration: Integration, client: PlatformClient) -> WorkloadController:
    """Select the controller variant marked available by the trait pass.

    Raises:
        UnsupportedControllerError: no workload available condition is True
        ControllerNotFoundError: the pass produced no object of that kind
    """
    for condition_type, model, controller_cls in _VARIANTS:
        if not integration.is_condition_true(condition_type):
            continue
        obj = env.resources.get_controller(lambda candidate: isinstance(candidate, model))
        if obj is None:
            raise ControllerNotFoundError(integration.name, model.kind)
        return controller_cls(obj, integration, client)
    raise UnsupportedControllerError(integration.name)


__all__ = [
    "WorkloadController",
    "DeploymentController",
    "KnativeServiceController",
    "CronJobController",
    "new_controller",
]
