"""Workload kinds an Integration can be materialized as."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pydantic import Field

from integration_operator.apis.core import PodTemplateSpec
from integration_operator.apis.meta import (
    APIModel,
    GenericCondition,
    ObjectMeta,
    ObjectReference,
    Resource,
    find_condition,
)


class DeploymentConditionType:
    AVAILABLE = "Available"
    PROGRESSING = "Progressing"
    REPLICA_FAILURE = "ReplicaFailure"


class JobConditionType:
    COMPLETE = "Complete"
    FAILED = "Failed"


# ── Deployment ───────────────────────────────────────────────────────────


class LabelSelectorSpec(APIModel):
    match_labels: dict[str, str] = Field(default_factory=dict)


class DeploymentSpec(APIModel):
    replicas: int | None = None
    selector: LabelSelectorSpec = Field(default_factory=LabelSelectorSpec)
    template: PodTemplateSpec = Field(default_factory=PodTemplateSpec)


class DeploymentStatus(APIModel):
    replicas: int = 0
    updated_replicas: int = 0
    ready_replicas: int = 0
    available_replicas: int = 0
    conditions: list[GenericCondition] = Field(default_factory=list)


class Deployment(Resource):
    kind: ClassVar[str] = "Deployment"

    spec: DeploymentSpec = Field(default_factory=DeploymentSpec)
    status: DeploymentStatus = Field(default_factory=DeploymentStatus)

    def get_condition(self, condition_type: str) -> GenericCondition | None:
        return find_condition(self.status.conditions, condition_type)


# ── Knative Service ──────────────────────────────────────────────────────


class KnativeServiceSpec(APIModel):
    template: PodTemplateSpec = Field(default_factory=PodTemplateSpec)


class KnativeServiceStatus(APIModel):
    url: str = ""
    latest_ready_revision_name: str = ""
    conditions: list[GenericCondition] = Field(default_factory=list)


class KnativeService(Resource):
    kind: ClassVar[str] = "Service.serving.knative.dev"

    spec: KnativeServiceSpec = Field(default_factory=KnativeServiceSpec)
    status: KnativeServiceStatus = Field(default_factory=KnativeServiceStatus)

    def get_condition(self, condition_type: str) -> GenericCondition | None:
        return find_condition(self.status.conditions, condition_type)


# ── CronJob / Job ────────────────────────────────────────────────────────


class JobSpec(APIModel):
    template: PodTemplateSpec = Field(default_factory=PodTemplateSpec)
    backoff_limit: int | None = None
    active_deadline_seconds: int | None = None


class JobTemplateSpec(APIModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: JobSpec = Field(default_factory=JobSpec)


class CronJobSpec(APIModel):
    schedule: str = ""
    concurrency_policy: str = "Forbid"
    job_template: JobTemplateSpec = Field(default_factory=JobTemplateSpec)


class CronJobStatus(APIModel):
    active: list[ObjectReference] = Field(default_factory=list)
    last_schedule_time: datetime | None = None
    last_successful_time: datetime | None = None


class CronJob(Resource):
    kind: ClassVar[str] = "CronJob"

    spec: CronJobSpec = Field(default_factory=CronJobSpec)
    status: CronJobStatus = Field(default_factory=CronJobStatus)


class JobStatus(APIModel):
    active: int = 0
    succeeded: int = 0
    failed: int = 0
    conditions: list[GenericCondition] = Field(default_factory=list)


class Job(Resource):
    kind: ClassVar[str] = "Job"

    spec: JobSpec = Field(default_factory=JobSpec)
    status: JobStatus = Field(default_factory=JobStatus)

    def get_condition(self, condition_type: str) -> GenericCondition | None:
        return find_condition(self.status.conditions, condition_type)
