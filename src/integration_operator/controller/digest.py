"""Integration digest.

The digest summarizes everything that, when changed, requires the
Integration to be re-initialized: its spec, the operator version, and the
resource versions of hot-reloaded configmaps and secrets. Resource version
lists are sorted before hashing, so listing order never changes the digest.
"""

from __future__ import annotations

from collections.abc import Iterable

from integration_operator.apis import ConfigMap, Integration, Secret
from integration_operator.core.errors import ValidationError
from integration_operator.core.hashing import compute_digest, sorted_values
from integration_operator.core.logging import get_logger
from integration_operator.platform.client import PlatformClient
from integration_operator.trait.builtin import CONFIG_STORAGE_CONFIGMAP, parse_config_entry

logger = get_logger(__name__)


def compute_for_integration(
    integration: Integration,
    configmaps: Iterable[str] = (),
    secrets: Iterable[str] = (),
    operator_version: str = "",
) -> str:
    """Digest of the Integration spec plus watched resource versions."""
    spec = integration.spec.model_dump(mode="json", by_alias=True, exclude_none=True)
    return compute_digest(
        operator_version,
        spec,
        sorted_values(configmaps),
        sorted_values(secrets),
    )


async def lookup_resource_versions(
    client: PlatformClient, integration: Integration
) -> tuple[list[str], list[str]]:
    """Return ``(configmap_versions, secret_versions)`` worth watching.

    Only mount entries of an Integration with hot reload enabled are watched.
    Entries that do not parse as ``configmap:``/``secret:`` are skipped.
    """
    configmaps: list[str] = []
    secrets: list[str] = []

    mount = integration.spec.traits.mount
    if mount is None or not mount.hot_reload:
        return configmaps, secrets

    for value in [*mount.configs, *mount.resources]:
        try:
            entry = parse_config_entry(value)
        except ValidationError:
            logger.debug("digest.entry_skipped", integration=integration.name, entry=value)
            continue

        if entry.storage == CONFIG_STORAGE_CONFIGMAP:
            configmaps.append(await client.lookup_resource_version(ConfigMap, integration.namespace, entry.name))
        else:
            secrets.append(await client.lookup_resource_version(Secret, integration.namespace, entry.name))

    return configmaps, secrets


__all__ = ["compute_for_integration", "lookup_resource_versions"]
