"""
Shared pytest fixtures and configuration for integration-operator tests.

This module provides:
- Settings isolated from the process environment and ``.env``
- An in-memory platform pre-loaded with a ready IntegrationPlatform
- A scripted probe proxy
- A deployed Integration whose digest is current

Usage:
    Fixtures are auto-discovered by pytest::

        @pytest.mark.asyncio
        async def test_something(monitor, client, deployed_integration):
            ...
"""

import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from integration_operator.apis import Integration, IntegrationKit
from integration_operator.controller import MonitorAction
from integration_operator.core.settings import OperatorSettings, get_settings
from integration_operator.platform import InMemoryPlatformClient, StaticProbeProxy
from integration_operator.trait import TraitCatalog

from tests._support.builders import (
    make_integration,
    make_kit,
    make_platform,
    with_current_digest,
)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "test_monitor" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Process settings are cached; reset them around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> OperatorSettings:
    return OperatorSettings(
        _env_file=None,
        operator_namespace="operators",
        operator_version="1.0.0",
        probe_timeout_seconds=0.5,
    )


# =============================================================================
# Platform
# =============================================================================


@pytest.fixture
def client() -> InMemoryPlatformClient:
    """In-memory store holding a ready platform in the default namespace."""
    store = InMemoryPlatformClient()
    store.add(make_platform())
    return store


@pytest.fixture
def prober() -> StaticProbeProxy:
    return StaticProbeProxy()


@pytest.fixture
def catalog() -> TraitCatalog:
    return TraitCatalog.default()


@pytest.fixture
def kit(client: InMemoryPlatformClient) -> IntegrationKit:
    kit = make_kit()
    client.add(kit)
    return kit


@pytest.fixture
def deployed_integration(kit: IntegrationKit, settings: OperatorSettings) -> Integration:
    """An Integration in phase Deploying, bound to ``kit``, with a current digest."""
    return with_current_digest(make_integration(kit=kit), settings.operator_version)


@pytest.fixture
def monitor(
    client: InMemoryPlatformClient,
    prober: StaticProbeProxy,
    catalog: TraitCatalog,
    settings: OperatorSettings,
) -> MonitorAction:
    return MonitorAction(client, prober, catalog, settings)
