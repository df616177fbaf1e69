"""Resource schemas exchanged with the platform object store."""

from integration_operator.apis.core import (
    ConfigMap,
    Container,
    ContainerState,
    ContainerStateTerminated,
    ContainerStateWaiting,
    ContainerStatus,
    HTTPGetAction,
    Pod,
    PodConditionType,
    PodPhase,
    PodSpec,
    PodStatus,
    PodTemplateSpec,
    Probe,
    Secret,
)
from integration_operator.apis.integration import (
    INTEGRATION_LABEL,
    INTEGRATION_PROFILE_ANNOTATION,
    INTEGRATION_PROFILE_NAMESPACE_ANNOTATION,
    KIT_PRIORITY_LABEL,
    KIT_TYPE_EXTERNAL,
    KIT_TYPE_LABEL,
    KIT_TYPE_PLATFORM,
    KIT_TYPE_SYNTHETIC,
    KIT_TYPE_USER,
    OPERATOR_ID_ANNOTATION,
    RUNTIME_PROVIDER_LABEL,
    RUNTIME_VERSION_LABEL,
    ConditionReason,
    ConditionType,
    HealthCheck,
    HealthCheckResponse,
    HealthCheckState,
    Integration,
    IntegrationCondition,
    IntegrationKit,
    IntegrationKitPhase,
    IntegrationPhase,
    IntegrationPlatform,
    IntegrationPlatformPhase,
    IntegrationSpec,
    IntegrationStatus,
    PodCondition,
    Traits,
    get_integration_profile,
    get_integration_profile_namespace,
    get_operator_id,
)
from integration_operator.apis.meta import (
    APIModel,
    ConditionStatus,
    GenericCondition,
    ObjectMeta,
    ObjectReference,
    Resource,
)
from integration_operator.apis.workloads import (
    CronJob,
    Deployment,
    DeploymentConditionType,
    Job,
    JobConditionType,
    KnativeService,
)

__all__ = [
    "ConfigMap",
    "Container",
    "ContainerState",
    "ContainerStateTerminated",
    "ContainerStateWaiting",
    "ContainerStatus",
    "HTTPGetAction",
    "Pod",
    "PodConditionType",
    "PodPhase",
    "PodSpec",
    "PodStatus",
    "PodTemplateSpec",
    "Probe",
    "Secret",
    "INTEGRATION_LABEL",
    "INTEGRATION_PROFILE_ANNOTATION",
    "INTEGRATION_PROFILE_NAMESPACE_ANNOTATION",
    "KIT_PRIORITY_LABEL",
    "KIT_TYPE_EXTERNAL",
    "KIT_TYPE_LABEL",
    "KIT_TYPE_PLATFORM",
    "KIT_TYPE_SYNTHETIC",
    "KIT_TYPE_USER",
    "OPERATOR_ID_ANNOTATION",
    "RUNTIME_PROVIDER_LABEL",
    "RUNTIME_VERSION_LABEL",
    "ConditionReason",
    "ConditionType",
    "HealthCheck",
    "HealthCheckResponse",
    "HealthCheckState",
    "Integration",
    "IntegrationCondition",
    "IntegrationKit",
    "IntegrationKitPhase",
    "IntegrationPhase",
    "IntegrationPlatform",
    "IntegrationPlatformPhase",
    "IntegrationSpec",
    "IntegrationStatus",
    "PodCondition",
    "Traits",
    "get_integration_profile",
    "get_integration_profile_namespace",
    "get_operator_id",
    "APIModel",
    "ConditionStatus",
    "GenericCondition",
    "ObjectMeta",
    "ObjectReference",
    "Resource",
    "CronJob",
    "Deployment",
    "DeploymentConditionType",
    "Job",
    "JobConditionType",
    "KnativeService",
]
