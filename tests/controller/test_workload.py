"""Tests for the workload controller variants."""

import pytest

from integration_operator.apis import (
    INTEGRATION_LABEL,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Container,
    CronJob,
    Deployment,
    DeploymentConditionType,
    GenericCondition,
    IntegrationPhase,
    Job,
    JobConditionType,
    KnativeService,
    ObjectMeta,
    ObjectReference,
    PodSpec,
    PodTemplateSpec,
)
from integration_operator.apis.workloads import (
    CronJobSpec,
    CronJobStatus,
    DeploymentSpec,
    DeploymentStatus,
    JobSpec,
    JobStatus,
    JobTemplateSpec,
    KnativeServiceSpec,
    KnativeServiceStatus,
)
from integration_operator.controller.workload import (
    PROGRESS_DEADLINE_EXCEEDED,
    REVISION_FAILED,
    CronJobController,
    DeploymentController,
    KnativeServiceController,
    new_controller,
)
from integration_operator.core.errors import ControllerNotFoundError, UnsupportedControllerError
from integration_operator.platform import InMemoryPlatformClient
from integration_operator.trait.environment import Environment
from tests._support.builders import at, make_integration, make_kit, make_platform

LABELS = {INTEGRATION_LABEL: "hello"}


def _meta(name: str = "hello", **kwargs) -> ObjectMeta:
    return ObjectMeta(name=name, namespace="default", **kwargs)


def _template(labels=None) -> PodTemplateSpec:
    return PodTemplateSpec(metadata=ObjectMeta(labels=LABELS if labels is None else labels))


def _ready(integration):
    return integration.status.get_condition(ConditionType.READY)


# ── Deployment ───────────────────────────────────────────────────────────


def _deployment(*, updated=0, conditions=()) -> Deployment:
    return Deployment(
        metadata=_meta(),
        spec=DeploymentSpec(template=_template()),
        status=DeploymentStatus(updated_replicas=updated, conditions=list(conditions)),
    )


class TestDeploymentController:
    @pytest.mark.asyncio
    async def test_progress_deadline_exceeded(self):
        integration = make_integration()
        deployment = _deployment(
            conditions=[
                GenericCondition(
                    type=DeploymentConditionType.PROGRESSING,
                    status=ConditionStatus.FALSE,
                    reason=PROGRESS_DEADLINE_EXCEEDED,
                    message='ReplicaSet "hello-7d9" has timed out progressing.',
                )
            ]
        )
        controller = DeploymentController(deployment, integration, InMemoryPlatformClient())

        assert await controller.check_ready_condition() is True
        assert integration.status.phase == IntegrationPhase.ERROR
        assert _ready(integration).reason == ConditionReason.ERROR
        assert _ready(integration).message == 'ReplicaSet "hello-7d9" has timed out progressing.'

    @pytest.mark.asyncio
    async def test_progressing_is_not_a_failure(self):
        integration = make_integration()
        deployment = _deployment(
            conditions=[
                GenericCondition(
                    type=DeploymentConditionType.PROGRESSING,
                    status=ConditionStatus.TRUE,
                    reason="NewReplicaSetAvailable",
                )
            ]
        )
        controller = DeploymentController(deployment, integration, InMemoryPlatformClient())

        assert await controller.check_ready_condition() is False
        assert _ready(integration) is None

    def test_ready_defaults_to_one_replica(self):
        integration = make_integration()
        controller = DeploymentController(_deployment(updated=1), integration, InMemoryPlatformClient())

        assert controller.update_ready_condition(1) is True
        ready = _ready(integration)
        assert ready.status == ConditionStatus.TRUE
        assert ready.reason == ConditionReason.DEPLOYMENT_READY
        assert ready.message == "1/1 ready replicas"

    def test_scaling_down_counts_as_ready(self):
        integration = make_integration(replicas=2)
        controller = DeploymentController(_deployment(updated=2), integration, InMemoryPlatformClient())

        assert controller.update_ready_condition(3) is True
        assert _ready(integration).message == "3/2 ready replicas"

    def test_rollout_in_progress(self):
        integration = make_integration(replicas=3)
        controller = DeploymentController(_deployment(updated=1), integration, InMemoryPlatformClient())

        assert controller.update_ready_condition(1) is False
        ready = _ready(integration)
        assert ready.status == ConditionStatus.FALSE
        assert ready.reason == ConditionReason.DEPLOYMENT_PROGRESSING
        assert ready.message == "1/3 updated replicas"

    def test_updated_but_not_ready(self):
        integration = make_integration(replicas=3)
        controller = DeploymentController(_deployment(updated=3), integration, InMemoryPlatformClient())

        assert controller.update_ready_condition(2) is False
        assert _ready(integration).message == "2/3 ready replicas"

    def test_identity_label(self):
        integration = make_integration()
        with_label = DeploymentController(_deployment(), integration, InMemoryPlatformClient())
        without_label = DeploymentController(
            Deployment(metadata=_meta(), spec=DeploymentSpec(template=_template({"app": "hello"}))),
            integration,
            InMemoryPlatformClient(),
        )

        assert with_label.has_identity_label()
        assert not without_label.has_identity_label()
        assert with_label.controller_name == "Deployment/hello"


# ── Knative Service ──────────────────────────────────────────────────────


def _service(*conditions: GenericCondition) -> KnativeService:
    return KnativeService(
        metadata=_meta(),
        spec=KnativeServiceSpec(template=_template()),
        status=KnativeServiceStatus(conditions=list(conditions)),
    )


class TestKnativeServiceController:
    @pytest.mark.asyncio
    async def test_revision_failed(self):
        integration = make_integration()
        service = _service(
            GenericCondition(
                type="Ready", status=ConditionStatus.FALSE, reason=REVISION_FAILED, message="image pull failed"
            )
        )
        controller = KnativeServiceController(service, integration, InMemoryPlatformClient())

        assert await controller.check_ready_condition() is True
        assert integration.status.phase == IntegrationPhase.ERROR
        assert _ready(integration).message == "image pull failed"

    @pytest.mark.asyncio
    async def test_ready(self):
        integration = make_integration()
        controller = KnativeServiceController(
            _service(GenericCondition(type="Ready", status=ConditionStatus.TRUE)),
            integration,
            InMemoryPlatformClient(),
        )

        assert await controller.check_ready_condition() is False
        assert controller.update_ready_condition(0) is True
        assert _ready(integration).reason == ConditionReason.KNATIVE_SERVICE_READY

    def test_not_ready_mirrors_service_condition(self):
        integration = make_integration()
        controller = KnativeServiceController(
            _service(
                GenericCondition(
                    type="Ready",
                    status=ConditionStatus.UNKNOWN,
                    reason="RevisionMissing",
                    message="Configuration is waiting for a Revision to become ready.",
                )
            ),
            integration,
            InMemoryPlatformClient(),
        )

        assert controller.update_ready_condition(0) is False
        ready = _ready(integration)
        assert ready.status == ConditionStatus.FALSE
        assert ready.reason == "RevisionMissing"
        assert ready.message == "Configuration is waiting for a Revision to become ready."

    def test_missing_ready_condition(self):
        integration = make_integration()
        controller = KnativeServiceController(_service(), integration, InMemoryPlatformClient())

        assert controller.update_ready_condition(0) is False
        assert (_ready(integration).reason, _ready(integration).message) == ("", "")


# ── CronJob ──────────────────────────────────────────────────────────────


def _cronjob(*, last_schedule=None, active=()) -> CronJob:
    return CronJob(
        metadata=_meta(),
        spec=CronJobSpec(
            schedule="*/5 * * * *",
            job_template=JobTemplateSpec(spec=JobSpec(template=_template())),
        ),
        status=CronJobStatus(last_schedule_time=last_schedule, active=list(active)),
    )


def _job(name: str, created: str, *, active=0, complete=False, failed_message=None) -> Job:
    conditions = []
    if complete:
        conditions.append(GenericCondition(type=JobConditionType.COMPLETE, status=ConditionStatus.TRUE))
    if failed_message is not None:
        conditions.append(
            GenericCondition(
                type=JobConditionType.FAILED,
                status=ConditionStatus.TRUE,
                reason="BackoffLimitExceeded",
                message=failed_message,
            )
        )
    return Job(
        metadata=_meta(name, labels=dict(LABELS), creation_timestamp=at(created)),
        status=JobStatus(active=active, conditions=conditions),
    )


class TestCronJobController:
    @pytest.mark.asyncio
    async def test_never_scheduled(self):
        integration = make_integration()
        controller = CronJobController(_cronjob(), integration, InMemoryPlatformClient())

        assert await controller.check_ready_condition() is False
        assert controller.update_ready_condition(0) is True
        ready = _ready(integration)
        assert ready.reason == ConditionReason.CRON_JOB_CREATED
        assert ready.message == "cronjob created"

    @pytest.mark.asyncio
    async def test_active(self):
        integration = make_integration()
        cronjob = _cronjob(
            last_schedule=at("2026-01-01T10:00:00+00:00"),
            active=[ObjectReference(kind="Job", name="hello-1", namespace="default")],
        )
        controller = CronJobController(cronjob, integration, InMemoryPlatformClient())

        assert await controller.check_ready_condition() is False
        assert controller.update_ready_condition(0) is True
        assert _ready(integration).reason == ConditionReason.CRON_JOB_ACTIVE
        assert _ready(integration).message == "cronjob active"

    @pytest.mark.asyncio
    async def test_last_job_failed(self):
        client = InMemoryPlatformClient()
        client.add(
            _job("hello-old", "2026-01-01T09:00:00+00:00", complete=True),
            _job("hello-new", "2026-01-01T10:00:05+00:00", failed_message="Job has reached the specified backoff limit"),
        )
        integration = make_integration()
        controller = CronJobController(_cronjob(last_schedule=at("2026-01-01T10:00:00+00:00")), integration, client)

        assert await controller.check_ready_condition() is True
        assert controller.last_completed_job.name == "hello-new"
        assert integration.status.phase == IntegrationPhase.ERROR
        ready = _ready(integration)
        assert ready.status == ConditionStatus.FALSE
        assert ready.reason == ConditionReason.LAST_JOB_FAILED
        assert ready.message == "last job hello-new failed: Job has reached the specified backoff limit"

    @pytest.mark.asyncio
    async def test_last_job_succeeded(self):
        client = InMemoryPlatformClient()
        client.add(
            _job("hello-a", "2026-01-01T10:00:05+00:00", complete=True),
            _job("hello-b", "2026-01-01T10:05:05+00:00", complete=True),
        )
        integration = make_integration()
        controller = CronJobController(_cronjob(last_schedule=at("2026-01-01T10:00:00+00:00")), integration, client)

        assert await controller.check_ready_condition() is False
        assert controller.update_ready_condition(0) is True
        ready = _ready(integration)
        assert ready.reason == ConditionReason.LAST_JOB_SUCCEEDED
        assert ready.message == "last job hello-b completed successfully"

    @pytest.mark.asyncio
    async def test_jobs_before_last_schedule_are_ignored(self):
        client = InMemoryPlatformClient()
        client.add(_job("hello-old", "2026-01-01T09:00:00+00:00", failed_message="boom"))
        integration = make_integration()
        controller = CronJobController(_cronjob(last_schedule=at("2026-01-01T10:00:00+00:00")), integration, client)

        assert await controller.check_ready_condition() is False
        assert controller.last_completed_job is None
        assert controller.update_ready_condition(0) is False
        ready = _ready(integration)
        assert ready.status == ConditionStatus.UNKNOWN
        assert ready.reason == ""


# ── new_controller ───────────────────────────────────────────────────────


def _env(integration, *resources) -> Environment:
    env = Environment(
        client=InMemoryPlatformClient(),
        settings=None,
        platform=make_platform(),
        integration=integration,
        integration_kit=make_kit(),
    )
    env.resources.add_all(resources)
    return env


class TestPodSpec:
    @pytest.mark.parametrize(
        "controller_cls, build",
        [
            (DeploymentController, lambda t: Deployment(metadata=_meta(), spec=DeploymentSpec(template=t))),
            (KnativeServiceController, lambda t: KnativeService(metadata=_meta(), spec=KnativeServiceSpec(template=t))),
            (
                CronJobController,
                lambda t: CronJob(metadata=_meta(), spec=CronJobSpec(job_template=JobTemplateSpec(spec=JobSpec(template=t)))),
            ),
        ],
    )
    def test_pod_spec_is_the_template_spec(self, controller_cls, build):
        template = _template()
        template.spec = PodSpec(containers=[Container(name="integration", image="registry.local/app:1")])

        controller = controller_cls(build(template), make_integration(), InMemoryPlatformClient())

        assert controller.pod_spec.get_container("integration").image == "registry.local/app:1"


class TestNewController:
    @pytest.mark.parametrize(
        "condition_type, resource, expected",
        [
            (ConditionType.DEPLOYMENT_AVAILABLE, _deployment(), DeploymentController),
            (ConditionType.KNATIVE_SERVICE_AVAILABLE, _service(), KnativeServiceController),
            (ConditionType.CRON_JOB_AVAILABLE, _cronjob(), CronJobController),
        ],
    )
    def test_selects_variant(self, condition_type, resource, expected):
        integration = make_integration()
        integration.status.set_condition(condition_type, ConditionStatus.TRUE, condition_type)

        controller = new_controller(_env(integration, resource), integration, InMemoryPlatformClient())

        assert isinstance(controller, expected)
        assert controller.obj is resource

    def test_no_available_condition(self):
        integration = make_integration()
        with pytest.raises(UnsupportedControllerError, match="hello"):
            new_controller(_env(integration, _deployment()), integration, InMemoryPlatformClient())

    def test_available_but_missing_object(self):
        integration = make_integration()
        integration.status.set_condition(
            ConditionType.DEPLOYMENT_AVAILABLE, ConditionStatus.TRUE, ConditionReason.DEPLOYMENT_AVAILABLE
        )
        with pytest.raises(ControllerNotFoundError, match="Deployment"):
            new_controller(_env(integration, _service()), integration, InMemoryPlatformClient())
