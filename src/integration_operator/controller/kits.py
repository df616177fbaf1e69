"""Integration kit lookup, matching and priority selection."""

from __future__ import annotations

from collections.abc import Sequence

from integration_operator.apis import (
    KIT_PRIORITY_LABEL,
    KIT_TYPE_EXTERNAL,
    KIT_TYPE_LABEL,
    KIT_TYPE_PLATFORM,
    KIT_TYPE_SYNTHETIC,
    RUNTIME_PROVIDER_LABEL,
    RUNTIME_VERSION_LABEL,
    Integration,
    IntegrationKit,
    IntegrationKitPhase,
    get_integration_profile,
    get_integration_profile_namespace,
    get_operator_id,
)
from integration_operator.core.errors import InvalidPriorityLabelError
from integration_operator.platform.client import (
    LabelSelector,
    PlatformClient,
    Requirement,
    SelectorOperator,
)

DEFAULT_KIT_PRIORITY = "0"

SHAREABLE_KIT_TYPES = (KIT_TYPE_PLATFORM, KIT_TYPE_EXTERNAL, KIT_TYPE_SYNTHETIC)


def kit_priority(kit: IntegrationKit) -> str:
    return kit.labels.get(KIT_PRIORITY_LABEL, DEFAULT_KIT_PRIORITY)


def higher_priority_than(kit: IntegrationKit) -> Requirement:
    """Label requirement selecting kits with a strictly higher priority than ``kit``.

    Raises:
        InvalidPriorityLabelError: the priority label of ``kit`` is not an integer
    """
    value = kit_priority(kit)
    try:
        int(value)
    except ValueError as exc:
        raise InvalidPriorityLabelError(kit.name, value, cause=exc) from exc
    return Requirement(KIT_PRIORITY_LABEL, SelectorOperator.GREATER_THAN, (value,))


def integration_matches(integration: Integration, kit: IntegrationKit) -> bool:
    """Whether ``kit`` can run ``integration``."""
    if kit.status.phase == IntegrationKitPhase.ERROR:
        return False
    if get_operator_id(integration) != get_operator_id(kit):
        return False
    return set(integration.status.dependencies) == set(kit.spec.dependencies)


async def lookup_kits_for_integration(
    client: PlatformClient,
    integration: Integration,
    *requirements: Requirement,
) -> list[IntegrationKit]:
    """List kits compatible with ``integration``.

    Kits are searched in the namespace of the current kit reference (or the
    Integration namespace), restricted to the Integration runtime and to
    shareable kit types, then filtered with ``integration_matches``.
    """
    ref = integration.status.integration_kit
    namespace = ref.namespace if ref is not None and ref.namespace else integration.namespace

    labels = {}
    if integration.status.runtime_version:
        labels[RUNTIME_VERSION_LABEL] = integration.status.runtime_version
    if integration.status.runtime_provider:
        labels[RUNTIME_PROVIDER_LABEL] = integration.status.runtime_provider

    selector = LabelSelector.of(
        labels,
        Requirement(KIT_TYPE_LABEL, SelectorOperator.IN, SHAREABLE_KIT_TYPES),
        *requirements,
    )
    kits = await client.list(IntegrationKit, namespace, labels=selector)
    return [kit for kit in kits if integration_matches(integration, kit)]


def find_highest_priority_ready_kit(kits: Sequence[IntegrationKit]) -> IntegrationKit | None:
    """Pick the ready kit with the highest priority label.

    Only priorities strictly above 0 are selected, and on ties the first kit
    encountered wins.

    Raises:
        InvalidPriorityLabelError: a ready kit's priority label is not an integer
    """
    selected = None
    priority = 0
    for kit in kits:
        if kit.status.phase != IntegrationKitPhase.READY:
            continue
        value = kit.labels.get(KIT_PRIORITY_LABEL)
        try:
            p = int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidPriorityLabelError(kit.name, value, cause=exc) from exc
        if p > priority:
            selected = kit
            priority = p
    return selected


def is_integration_kit_reset_required(integration: Integration, kit: IntegrationKit | None) -> bool:
    """Whether the kit reference must be dropped on re-initialization.

    True when the Integration declares an operator id, integration profile
    or profile namespace that differs from the kit's.
    """
    if kit is None:
        return False
    for getter in (get_operator_id, get_integration_profile, get_integration_profile_namespace):
        wanted = getter(integration)
        if wanted and wanted != getter(kit):
            return True
    return False


__all__ = [
    "DEFAULT_KIT_PRIORITY",
    "kit_priority",
    "higher_priority_than",
    "integration_matches",
    "lookup_kits_for_integration",
    "find_highest_priority_ready_kit",
    "is_integration_kit_reset_required",
]
