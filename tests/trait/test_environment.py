"""Tests for Environment construction and the ResourceCollection."""

import pytest

from integration_operator.apis import (
    ConfigMap,
    CronJob,
    Deployment,
    IntegrationPlatformPhase,
    ObjectMeta,
    ObjectReference,
)
from integration_operator.core.errors import (
    KitNotFoundError,
    MissingKitError,
    PlatformNotFoundError,
)
from integration_operator.trait.environment import (
    ControllerStrategy,
    Environment,
    ResourceCollection,
    new_environment,
)
from tests._support.builders import make_integration, make_kit, make_platform


def _named(model, name):
    return model(metadata=ObjectMeta(name=name, namespace="default"))


# ── ResourceCollection ───────────────────────────────────────────────────


class TestResourceCollection:
    def test_preserves_insertion_order(self):
        resources = ResourceCollection()
        resources.add(_named(ConfigMap, "a"))
        resources.add_all([_named(Deployment, "b"), _named(ConfigMap, "c")])

        assert [obj.name for obj in resources.items()] == ["a", "b", "c"]
        assert [obj.name for obj in resources] == ["a", "b", "c"]
        assert resources.size == 3
        assert len(resources) == 3

    def test_items_is_a_copy(self):
        resources = ResourceCollection()
        resources.items().append(_named(ConfigMap, "x"))
        assert resources.size == 0

    def test_get_first_match(self):
        resources = ResourceCollection()
        resources.add_all([_named(ConfigMap, "a"), _named(ConfigMap, "b")])
        assert resources.get(lambda obj: obj.name.startswith(("a", "b"))).name == "a"
        assert resources.get(lambda obj: obj.name == "z") is None

    def test_get_controller_only_returns_workloads(self):
        resources = ResourceCollection()
        resources.add_all([_named(ConfigMap, "hello"), _named(CronJob, "hello")])

        controller = resources.get_controller(lambda obj: obj.name == "hello")
        assert isinstance(controller, CronJob)

    def test_visit_by_kind(self):
        resources = ResourceCollection()
        resources.add_all([_named(ConfigMap, "a"), _named(Deployment, "b"), _named(ConfigMap, "c")])

        seen = []
        resources.visit(ConfigMap, lambda cm: seen.append(cm.name))
        assert seen == ["a", "c"]

    def test_remove(self):
        resources = ResourceCollection()
        resources.add_all([_named(ConfigMap, "a"), _named(ConfigMap, "b")])

        removed = resources.remove(lambda obj: obj.name == "a")
        assert removed.name == "a"
        assert [obj.name for obj in resources] == ["b"]
        assert resources.remove(lambda obj: obj.name == "a") is None


# ── Environment ──────────────────────────────────────────────────────────


class TestEnvironmentHelpers:
    def _env(self, settings, **integration_kwargs) -> Environment:
        return Environment(
            client=None,
            settings=settings,
            platform=make_platform(),
            integration=make_integration(**integration_kwargs),
            integration_kit=make_kit(),
        )

    def test_container_name_defaults_to_settings(self, settings):
        assert self._env(settings).get_integration_container_name() == "integration"

    def test_container_name_from_trait(self, settings):
        env = self._env(settings, traits={"container": {"name": "camel"}})
        assert env.get_integration_container_name() == "camel"

    def test_image_from_kit(self, settings):
        assert self._env(settings).get_integration_image() == "registry.local/default/kit-1:latest"

    @pytest.mark.parametrize(
        "traits, expected",
        [
            ({}, ControllerStrategy.DEPLOYMENT),
            ({"knative-service": {"enabled": True}}, ControllerStrategy.KNATIVE_SERVICE),
            ({"knative-service": {"enabled": False}}, ControllerStrategy.DEPLOYMENT),
            ({"cron": {"schedule": "*/5 * * * *"}}, ControllerStrategy.CRON_JOB),
            ({"cron": {"schedule": "*/5 * * * *", "enabled": False}}, ControllerStrategy.DEPLOYMENT),
            (
                {"cron": {"schedule": "0 * * * *"}, "knative-service": {"enabled": True}},
                ControllerStrategy.CRON_JOB,
            ),
        ],
    )
    def test_controller_strategy(self, settings, traits, expected):
        assert self._env(settings, traits=traits).controller_strategy() is expected

    def test_is_trait_executed(self, settings):
        env = self._env(settings)
        env.executed_traits.append("deployment")
        assert env.is_trait_executed("deployment")
        assert not env.is_trait_executed("cron")


class TestNewEnvironment:
    @pytest.mark.asyncio
    async def test_resolves_platform_and_kit_reference(self, client, kit, settings):
        integration = make_integration(kit=kit)

        env = await new_environment(client, integration, settings=settings)

        assert env.platform.name == "integration-platform"
        assert env.integration_kit.name == kit.name
        assert env.resources.size == 0
        assert env.executed_traits == []

    @pytest.mark.asyncio
    async def test_supplied_kit_is_used(self, client, settings):
        other = make_kit("kit-2")
        env = await new_environment(client, make_integration(), other, settings=settings)
        assert env.integration_kit is other

    @pytest.mark.asyncio
    async def test_does_not_mutate_integration(self, client, kit, settings):
        integration = make_integration(kit=kit)
        before = integration.model_copy(deep=True)

        await new_environment(client, integration, settings=settings)

        assert integration == before

    @pytest.mark.asyncio
    async def test_falls_back_to_operator_namespace_platform(self, kit, settings):
        from integration_operator.platform import InMemoryPlatformClient

        client = InMemoryPlatformClient()
        client.add(make_platform(namespace="default", phase=IntegrationPlatformPhase.CREATING))
        client.add(make_platform(name="global", namespace="operators"))

        env = await new_environment(client, make_integration(), kit, settings=settings)
        assert env.platform.name == "global"

    @pytest.mark.asyncio
    async def test_prefers_platform_of_matching_operator(self, client, kit, settings):
        client.add(make_platform(name="camel-b", operator_id="camel-b"))
        integration = make_integration(annotations={"operator.integration.io/operator.id": "camel-b"})

        env = await new_environment(client, integration, kit, settings=settings)
        assert env.platform.name == "camel-b"

    @pytest.mark.asyncio
    async def test_operator_setting_selects_platform_for_unannotated_integration(self, client, kit):
        from integration_operator.core.settings import OperatorSettings

        client.add(make_platform(name="camel-b", operator_id="camel-b"))
        settings = OperatorSettings(_env_file=None, operator_namespace="operators", operator_id="camel-b")

        env = await new_environment(client, make_integration(), kit, settings=settings)
        assert env.platform.name == "camel-b"

    @pytest.mark.asyncio
    async def test_integration_annotation_wins_over_operator_setting(self, client, kit):
        from integration_operator.core.settings import OperatorSettings

        client.add(make_platform(name="camel-b", operator_id="camel-b"))
        settings = OperatorSettings(_env_file=None, operator_namespace="operators", operator_id="camel-b")
        integration = make_integration(annotations={"operator.integration.io/operator.id": "camel-c"})

        env = await new_environment(client, integration, kit, settings=settings)
        assert env.platform.name == "integration-platform"

    @pytest.mark.asyncio
    async def test_no_platform(self, kit, settings):
        from integration_operator.platform import InMemoryPlatformClient

        with pytest.raises(PlatformNotFoundError):
            await new_environment(InMemoryPlatformClient(), make_integration(), kit, settings=settings)

    @pytest.mark.asyncio
    async def test_missing_kit_reference(self, client, settings):
        with pytest.raises(MissingKitError, match="no kit set on integration hello"):
            await new_environment(client, make_integration(), settings=settings)

    @pytest.mark.asyncio
    async def test_kit_gone(self, client, settings):
        integration = make_integration()
        integration.status.integration_kit = ObjectReference(name="gone", namespace="default")

        with pytest.raises(KitNotFoundError, match="unable to find integration kit default/gone"):
            await new_environment(client, integration, settings=settings)
