"""
Trait catalog - resolves traits into one static execution order and runs them.

The catalog is built once per process and passed explicitly to whoever needs
to run the pipeline. Construction validates the trait graph:

1. Trait ids are unique
2. Every ``requires`` entry names a trait in the catalog
3. The ``requires`` graph is a DAG (no cycles)
4. Topological sort, ties broken by (``order``, ``id``)

Running the catalog is sequential: for each trait in order, if it applies to
the Environment, it is applied and recorded in ``env.executed_traits``. The
first failure aborts the pass; there is no retry inside a pass.
"""

from __future__ import annotations

import heapq
from collections import defaultdict
from collections.abc import Iterable

from integration_operator.apis import Integration, IntegrationKit
from integration_operator.core.errors import (
    PipelineError,
    TraitCatalogError,
    TraitError,
)
from integration_operator.core.logging import get_logger
from integration_operator.core.settings import OperatorSettings, get_settings
from integration_operator.platform.client import PlatformClient
from integration_operator.trait.base import Trait
from integration_operator.trait.environment import Environment, new_environment

logger = get_logger(__name__)


class TraitCatalog:
    """
    Immutable, ordered set of traits.

    Example:
        catalog = TraitCatalog.default()
        env = await apply(client, integration, catalog=catalog, settings=settings)
        desired = env.resources.items()
    """

    def __init__(self, traits: Iterable[Trait]):
        traits = tuple(traits)
        self._validate_unique(traits)
        self._validate_requirements(traits)
        self._validate_no_cycles(traits)
        self._traits = self._topological_sort(traits)

    @classmethod
    def default(cls) -> TraitCatalog:
        """Catalog of the built-in traits."""
        from integration_operator.trait.builtin import builtin_traits

        return cls(builtin_traits())

    @property
    def traits(self) -> tuple[Trait, ...]:
        return self._traits

    def ids(self) -> list[str]:
        return [trait.id for trait in self._traits]

    def get(self, trait_id: str) -> Trait | None:
        for trait in self._traits:
            if trait.id == trait_id:
                return trait
        return None

    def __len__(self) -> int:
        return len(self._traits)

    def __repr__(self) -> str:
        return f"TraitCatalog({self.ids()})"

    async def apply(self, env: Environment) -> None:
        """Run every applicable trait against ``env`` in catalog order.

        Raises:
            TraitError: naming the failing trait, with the cause chained
        """
        for trait in self._traits:
            try:
                if not trait.applies_to(env):
                    continue
                await trait.apply(env)
            except TraitError:
                raise
            except Exception as exc:
                raise TraitError(
                    trait.id,
                    str(exc),
                    cause=exc,
                ).with_context(integration=env.integration.name, namespace=env.integration.namespace) from exc

            env.executed_traits.append(trait.id)
            logger.debug("trait.applied", trait=trait.id, resources=env.resources.size)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_unique(traits: tuple[Trait, ...]) -> None:
        seen: set[str] = set()
        duplicates = []
        for trait in traits:
            if trait.id in seen:
                duplicates.append(trait.id)
            seen.add(trait.id)
        if duplicates:
            raise TraitCatalogError(f"duplicate trait ids: {sorted(set(duplicates))}")

    @staticmethod
    def _validate_requirements(traits: tuple[Trait, ...]) -> None:
        ids = {trait.id for trait in traits}
        for trait in traits:
            missing = [dep for dep in trait.requires if dep not in ids]
            if missing:
                raise TraitCatalogError(
                    f"trait {trait.id!r} requires unknown traits: {missing}"
                ).with_context(trait=trait.id)

    @staticmethod
    def _validate_no_cycles(traits: tuple[Trait, ...]) -> None:
        """
        Three-color DFS over ``requires``.

        Meeting a node that is on the current path (GRAY) means a cycle; the
        reported cycle is the path slice from that node back to itself.
        """
        WHITE, GRAY, BLACK = 0, 1, 2

        graph = {trait.id: list(trait.requires) for trait in traits}
        color = {trait.id: WHITE for trait in traits}
        path: list[str] = []

        def dfs(node: str) -> list[str] | None:
            color[node] = GRAY
            path.append(node)
            for neighbor in graph[node]:
                if color[neighbor] == GRAY:
                    return path[path.index(neighbor):] + [neighbor]
                if color[neighbor] == WHITE:
                    cycle = dfs(neighbor)
                    if cycle:
                        return cycle
            color[node] = BLACK
            path.pop()
            return None

        for trait in traits:
            if color[trait.id] == WHITE:
                cycle = dfs(trait.id)
                if cycle:
                    raise TraitCatalogError(f"trait dependency cycle: {' -> '.join(cycle)}")

    @staticmethod
    def _topological_sort(traits: tuple[Trait, ...]) -> tuple[Trait, ...]:
        """Kahn's algorithm with a heap keyed on (order, id)."""
        by_id = {trait.id: trait for trait in traits}
        dependents: dict[str, list[str]] = defaultdict(list)
        in_degree = {trait.id: len(trait.requires) for trait in traits}
        for trait in traits:
            for dep in trait.requires:
                dependents[dep].append(trait.id)

        ready = [(trait.order, trait.id) for trait in traits if in_degree[trait.id] == 0]
        heapq.heapify(ready)
        result: list[Trait] = []

        while ready:
            _, trait_id = heapq.heappop(ready)
            result.append(by_id[trait_id])
            for dependent in dependents[trait_id]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (by_id[dependent].order, dependent))

        if len(result) != len(traits):
            remaining = sorted(set(by_id) - {trait.id for trait in result})
            raise TraitCatalogError(f"trait order incomplete, remaining: {remaining}")
        return tuple(result)


async def apply(
    client: PlatformClient,
    integration: Integration,
    kit: IntegrationKit | None = None,
    *,
    catalog: TraitCatalog,
    settings: OperatorSettings | None = None,
) -> Environment:
    """Build an Environment for ``integration`` and run the catalog on it.

    Returns the Environment; ``env.resources.items()`` is the desired-object
    list for this pass.
    """
    settings = settings or get_settings()
    env = await new_environment(client, integration, kit, settings=settings)

    try:
        await catalog.apply(env)
    except TraitError as exc:
        raise PipelineError(
            f"error during trait customization before deployment: {exc}",
            context=exc.context,
            cause=exc,
        ) from exc

    logger.debug(
        "trait.pipeline_applied",
        integration=integration.name,
        traits=env.executed_traits,
        resources=env.resources.size,
    )
    return env


__all__ = ["TraitCatalog", "apply"]
