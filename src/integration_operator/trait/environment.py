"""Per-pass reconciliation context.

An ``Environment`` is built fresh for every pass. It references the
Integration, its kit and the platform, and owns the ``ResourceCollection``
the traits fill with desired objects. Nothing in it survives the pass.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from integration_operator.apis import (
    CronJob,
    Deployment,
    Integration,
    IntegrationKit,
    IntegrationPlatform,
    IntegrationPlatformPhase,
    KnativeService,
    Resource,
    get_operator_id,
)
from integration_operator.core.errors import (
    KitNotFoundError,
    MissingKitError,
    PlatformNotFoundError,
)
from integration_operator.core.logging import get_logger
from integration_operator.core.settings import OperatorSettings
from integration_operator.platform.client import PlatformClient

logger = get_logger(__name__)

R = TypeVar("R", bound=Resource)

WORKLOAD_KINDS: tuple[type[Resource], ...] = (Deployment, KnativeService, CronJob)


class ControllerStrategy(str, Enum):
    """Which workload kind materializes the Integration."""

    DEPLOYMENT = "deployment"
    KNATIVE_SERVICE = "knative-service"
    CRON_JOB = "cron-job"


class ResourceCollection:
    """Ordered, append-only set of desired objects.

    Insertion order is preserved: traits later in the pipeline may look up
    and amend what earlier traits added.
    """

    def __init__(self) -> None:
        self._items: list[Resource] = []

    def add(self, obj: Resource) -> None:
        self._items.append(obj)

    def add_all(self, objects: list[Resource]) -> None:
        self._items.extend(objects)

    def items(self) -> list[Resource]:
        return list(self._items)

    @property
    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._items))

    def get(self, predicate: Callable[[Resource], bool]) -> Resource | None:
        for obj in self._items:
            if predicate(obj):
                return obj
        return None

    def of_kind(self, model: type[R]) -> list[R]:
        return [obj for obj in self._items if isinstance(obj, model)]

    def visit(self, model: type[R], visitor: Callable[[R], None]) -> None:
        for obj in self.of_kind(model):
            visitor(obj)

    def get_controller(self, predicate: Callable[[Resource], bool]) -> Resource | None:
        """Return the first workload object (Deployment, KnativeService, CronJob) matching ``predicate``."""
        for obj in self._items:
            if isinstance(obj, WORKLOAD_KINDS) and predicate(obj):
                return obj
        return None

    def remove(self, predicate: Callable[[Resource], bool]) -> Resource | None:
        """Remove and return the first object matching ``predicate``."""
        for index, obj in enumerate(self._items):
            if predicate(obj):
                return self._items.pop(index)
        return None


@dataclass
class Environment:
    client: PlatformClient
    settings: OperatorSettings
    platform: IntegrationPlatform
    integration: Integration
    integration_kit: IntegrationKit | None
    executed_traits: list[str] = field(default_factory=list)
    resources: ResourceCollection = field(default_factory=ResourceCollection)

    def get_integration_container_name(self) -> str:
        container = self.integration.spec.traits.container
        if container is not None and container.name:
            return container.name
        return self.settings.integration_container_name

    def get_integration_image(self) -> str:
        container = self.integration.spec.traits.container
        if container is not None and container.image:
            return container.image
        if self.integration_kit is None:
            return ""
        return self.integration_kit.status.image or self.integration_kit.spec.image

    def controller_strategy(self) -> ControllerStrategy:
        traits = self.integration.spec.traits
        if traits.cron is not None and traits.cron.schedule and traits.cron.enabled is not False:
            return ControllerStrategy.CRON_JOB
        if traits.knative_service is not None and traits.knative_service.enabled:
            return ControllerStrategy.KNATIVE_SERVICE
        return ControllerStrategy.DEPLOYMENT

    def is_trait_executed(self, trait_id: str) -> bool:
        return trait_id in self.executed_traits


async def lookup_platform(
    client: PlatformClient, integration: Integration, settings: OperatorSettings
) -> IntegrationPlatform:
    """Find the ready platform for the Integration's namespace.

    The Integration namespace is searched first, then the operator namespace.
    Among ready platforms, one carrying the Integration's operator id wins;
    Integrations without an operator id annotation use ``settings.operator_id``.
    """
    operator_id = get_operator_id(integration) or settings.operator_id
    for namespace in dict.fromkeys([integration.namespace, settings.operator_namespace]):
        platforms = await client.list(IntegrationPlatform, namespace)
        ready = [p for p in platforms if p.status.phase == IntegrationPlatformPhase.READY]
        if not ready:
            continue
        for candidate in ready:
            if operator_id and get_operator_id(candidate) == operator_id:
                return candidate
        return ready[0]
    raise PlatformNotFoundError(integration.namespace).with_context(integration=integration.name)


async def lookup_kit(client: PlatformClient, integration: Integration) -> IntegrationKit:
    """Resolve the kit referenced by ``integration.status.integration_kit``."""
    ref = integration.status.integration_kit
    if ref is None:
        raise MissingKitError(integration.name)
    namespace = ref.namespace or integration.namespace
    kit = await client.get(IntegrationKit, namespace, ref.name)
    if kit is None:
        raise KitNotFoundError(namespace, ref.name).with_context(integration=integration.name)
    return kit


async def new_environment(
    client: PlatformClient,
    integration: Integration,
    kit: IntegrationKit | None = None,
    *,
    settings: OperatorSettings,
) -> Environment:
    """Assemble a fresh Environment. Never mutates the Integration."""
    platform = await lookup_platform(client, integration, settings)
    if kit is None:
        kit = await lookup_kit(client, integration)

    logger.debug(
        "environment.created",
        integration=integration.name,
        platform=platform.name,
        kit=kit.name,
    )
    return Environment(
        client=client,
        settings=settings,
        platform=platform,
        integration=integration,
        integration_kit=kit,
    )


__all__ = [
    "WORKLOAD_KINDS",
    "ControllerStrategy",
    "ResourceCollection",
    "Environment",
    "lookup_platform",
    "lookup_kit",
    "new_environment",
]
