"""Tests for TraitCatalog ordering, validation and application."""

from __future__ import annotations

import pytest

from integration_operator.core.errors import PipelineError, TraitCatalogError, TraitError
from integration_operator.trait import Trait, TraitCatalog, apply
from integration_operator.trait.environment import Environment
from tests._support.builders import make_integration


# ── Helpers ──────────────────────────────────────────────────────────────


class _RecordingTrait(Trait):
    """Trait with instance-level id/order that records when it runs."""

    def __init__(self, trait_id: str, order: int = 0, requires: tuple[str, ...] = (), applies: bool = True):
        self.id = trait_id
        self.order = order
        self.requires = requires
        self._applies = applies
        self.calls = 0

    def applies_to(self, env: Environment) -> bool:
        return self._applies

    async def apply(self, env: Environment) -> None:
        self.calls += 1


class _FailingTrait(_RecordingTrait):
    async def apply(self, env: Environment) -> None:
        raise RuntimeError("cannot build")


# ── Ordering ─────────────────────────────────────────────────────────────


class TestOrdering:
    def test_sorted_by_order_then_id(self):
        catalog = TraitCatalog(
            [
                _RecordingTrait("b", 10),
                _RecordingTrait("a", 10),
                _RecordingTrait("z", 1),
            ]
        )
        assert catalog.ids() == ["z", "a", "b"]

    def test_requires_wins_over_order(self):
        catalog = TraitCatalog(
            [
                _RecordingTrait("late", 100),
                _RecordingTrait("early", 1, requires=("late",)),
            ]
        )
        assert catalog.ids() == ["late", "early"]

    def test_registration_order_is_irrelevant(self):
        traits = [_RecordingTrait("a", 2), _RecordingTrait("b", 1), _RecordingTrait("c", 3)]
        assert TraitCatalog(traits).ids() == TraitCatalog(reversed(traits)).ids()

    def test_default_catalog(self):
        catalog = TraitCatalog.default()
        assert catalog.ids() == ["cron", "deployment", "knative-service", "container", "mount"]
        assert catalog.get("mount").order == 1610
        assert catalog.get("nope") is None
        assert len(catalog) == 5


# ── Validation ───────────────────────────────────────────────────────────


class TestValidation:
    def test_duplicate_ids(self):
        with pytest.raises(TraitCatalogError, match="duplicate"):
            TraitCatalog([_RecordingTrait("a"), _RecordingTrait("a")])

    def test_unknown_requirement(self):
        with pytest.raises(TraitCatalogError, match="unknown"):
            TraitCatalog([_RecordingTrait("a", requires=("ghost",))])

    def test_cycle(self):
        with pytest.raises(TraitCatalogError, match="cycle"):
            TraitCatalog(
                [
                    _RecordingTrait("a", requires=("b",)),
                    _RecordingTrait("b", requires=("c",)),
                    _RecordingTrait("c", requires=("a",)),
                ]
            )


# ── Application ──────────────────────────────────────────────────────────


def _env(settings) -> Environment:
    return Environment(
        client=None,
        settings=settings,
        platform=None,
        integration=make_integration(),
        integration_kit=None,
    )


class TestCatalogApply:
    @pytest.mark.asyncio
    async def test_runs_applicable_traits_and_records_them(self, settings):
        first = _RecordingTrait("first", 1)
        skipped = _RecordingTrait("skipped", 2, applies=False)
        last = _RecordingTrait("last", 3)
        env = _env(settings)

        await TraitCatalog([last, skipped, first]).apply(env)

        assert env.executed_traits == ["first", "last"]
        assert (first.calls, skipped.calls, last.calls) == (1, 0, 1)

    @pytest.mark.asyncio
    async def test_failure_aborts_and_names_trait(self, settings):
        after = _RecordingTrait("after", 2)
        env = _env(settings)

        with pytest.raises(TraitError) as exc_info:
            await TraitCatalog([_FailingTrait("broken", 1), after]).apply(env)

        assert exc_info.value.trait == "broken"
        assert "cannot build" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert after.calls == 0
        assert env.executed_traits == []


class TestApply:
    @pytest.mark.asyncio
    async def test_returns_environment_with_resources(self, client, kit, catalog, settings):
        env = await apply(client, make_integration(kit=kit), catalog=catalog, settings=settings)

        assert env.executed_traits == ["deployment", "container"]
        assert [type(obj).kind for obj in env.resources.items()] == ["Deployment"]

    @pytest.mark.asyncio
    async def test_trait_failure_is_wrapped(self, client, kit, settings):
        catalog = TraitCatalog([_FailingTrait("broken")])

        with pytest.raises(PipelineError) as exc_info:
            await apply(client, make_integration(kit=kit), catalog=catalog, settings=settings)

        assert str(exc_info.value).startswith("error during trait customization before deployment")
        assert isinstance(exc_info.value.cause, TraitError)
        assert exc_info.value.reason == "InitializationFailed"
